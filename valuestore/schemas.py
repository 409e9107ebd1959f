"""API schemas.

Request bodies are validated with Pydantic. Fields are optional at the schema
level so that a missing field is reported with the service's own 400 message
rather than a generic validation error; wrong *types* (e.g. `values` that is
not an object) are still rejected by Pydantic.

Every response uses the same envelope:

    {"status": "success" | "error", "message": "...", "data": {...}}

`data` is omitted when there is nothing to return.
"""

from typing import Any

from pydantic import BaseModel


class ValuesIn(BaseModel):
    """Body of `POST /api/values`."""

    account: str | None = None
    project: str | None = None
    values: dict[str, Any] | None = None


class ValuesUpdate(BaseModel):
    """Body of `PUT /api/values/{id}`."""

    values: dict[str, Any] | None = None


def envelope(status, message, data=None):
    """Build a response body, dropping `data` when there is none."""
    body = {"status": status, "message": message}
    if data is not None:
        body["data"] = data
    return body


def success(message, data=None):
    return envelope("success", message, data)


def error(message):
    return envelope("error", message)
