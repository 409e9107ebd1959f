"""Update engine for stored value documents.

A stored record holds one nested JSON-like document. Clients never send the
whole document back; they send a *patch* containing only the fields to change.
This module owns how a patch is combined with the stored document:

- `sanitize` strips entries that carry nothing persistable (nulls, empty
  mappings, empty lists).
- `deep_merge` overlays the sanitized patch onto the stored document,
  recursing into nested mappings and replacing everything else wholesale.
- `plan_unset` turns explicit nulls in the *original* patch into dotted field
  paths that must be removed from storage. Omitting a field means "leave it
  alone"; sending `null` means "delete it".
- `apply_unset` removes those paths from a document.

Everything here is pure: inputs are never mutated and nothing can fail.
"""

from collections.abc import Mapping

SEPARATOR = "."


def _is_mapping(value):
    return isinstance(value, Mapping)


def _is_sequence(value):
    return isinstance(value, (list, tuple))


def sanitize(patch):
    """Return a copy of `patch` without entries that carry no information.

    Rules, applied recursively:
        - `None` values are dropped.
        - nested mappings are sanitized; an empty result drops the key.
        - lists are kept only when non-empty (their items are kept verbatim).
        - any other value (including `0`, `False`, `""`) is kept as-is.

    Args:
        patch: Mapping of field names to JSON-like values.

    Returns:
        dict: The sanitized patch. `sanitize` is idempotent.
    """
    result = {}
    for key, value in patch.items():
        if value is None:
            continue

        if _is_mapping(value):
            nested = sanitize(value)
            if nested:
                result[key] = nested
        elif _is_sequence(value):
            if len(value) > 0:
                result[key] = value
        else:
            result[key] = value

    return result


def deep_merge(base, patch):
    """Overlay `patch` onto `base` and return the combined document.

    Only keys present in `patch` change. Nested mappings are merged key by key;
    scalars and lists in the patch replace the base value outright. If either
    side is not a mapping there is nothing to merge into, so the patch wins.

    Args:
        base: The currently stored document.
        patch: A sanitized patch.

    Returns:
        The merged document. Neither argument is modified.
    """
    if not (_is_mapping(base) and _is_mapping(patch)):
        return patch

    output = dict(base)
    for key, value in patch.items():
        if _is_mapping(value) and key in base:
            output[key] = deep_merge(base[key], value)
        else:
            output[key] = value

    return output


def plan_unset(patch, prefix=""):
    """Collect dotted paths for every field the patch explicitly nulls out.

    Must be called with the original (unsanitized) patch, since sanitizing
    discards the nulls this function looks for.

    Example:
        >>> plan_unset({"a": {"x": None, "y": 5}}, "values")
        {'values.a.x'}

    Args:
        patch: The patch as submitted by the client.
        prefix: Path of the document the patch applies to, if any.

    Returns:
        set[str]: Flat set of paths to remove.
    """
    paths = set()
    for key, value in patch.items():
        path = f"{prefix}{SEPARATOR}{key}" if prefix else str(key)

        if value is None:
            paths.add(path)
        elif _is_mapping(value):
            paths |= plan_unset(value, path)

    return paths


def apply_unset(document, paths):
    """Return a copy of `document` with every path in `paths` removed.

    Paths that run through a missing key or a non-mapping value are ignored.
    Only the mappings along a removed path are copied; untouched branches are
    shared with `document`.
    """
    result = dict(document)
    for path in paths:
        result = _remove_path(result, path.split(SEPARATOR))
    return result


def _remove_path(node, parts):
    head = parts[0]
    if head not in node:
        return node

    if len(parts) == 1:
        trimmed = dict(node)
        del trimmed[head]
        return trimmed

    child = node[head]
    if not _is_mapping(child):
        return node

    updated = dict(node)
    updated[head] = _remove_path(child, parts[1:])
    return updated
