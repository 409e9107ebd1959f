"""Error types surfaced by the value store and its HTTP layer.

Every error carries the client-facing `message` and the HTTP `status_code` it
maps to. The application installs a single exception handler (see
`valuestore.main`) that renders any `ValueStoreError` into the response
envelope, so routes and the store just raise.
"""

import logging
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class ValueStoreError(Exception):
    """Base class for all value store errors."""

    status_code = 500

    def __init__(self, message):
        self.message = message
        super().__init__(message)


class ValidationError(ValueStoreError):
    """Missing or malformed request fields, or a malformed id."""

    status_code = 400


class Unauthorized(ValueStoreError):
    """Bearer token missing, wrong, or not configured."""

    status_code = 401


class NotFound(ValueStoreError):
    """No record exists for the addressed id."""

    status_code = 404


class NoOp(ValueStoreError):
    """An update was requested without any values to apply."""

    status_code = 400


class StorageFailure(ValueStoreError):
    """The database did not accept a write, or something unexpected broke."""

    status_code = 500


@contextmanager
def storage_errors(message):
    """Translate unexpected failures inside the block into `StorageFailure`.

    `ValueStoreError`s pass through untouched. Anything else is logged with its
    traceback and replaced by a `StorageFailure` carrying only `message`, so
    internal details never reach the client.

    Args:
        message: Generic client-facing message, e.g. "Failed to save values".
    """
    try:
        yield
    except ValueStoreError:
        raise
    except Exception as exc:
        logger.exception("%s: %s", message, exc)
        raise StorageFailure(message) from exc
