"""Bearer-token authorization.

A single shared token, configured via `AUTH_TOKEN`, guards the
account/project-addressed routes. The `Authorization` header must be exactly
`Bearer <token>`. Without a configured token every check fails closed.
"""

import logging
import secrets

from fastapi import Header, Request

from .errors import Unauthorized

logger = logging.getLogger(__name__)


def is_authorized(header, token):
    """Return True if `header` carries the configured bearer `token`."""
    if not token:
        logger.warning("AUTH_TOKEN is not configured; rejecting request")
        return False
    if header is None:
        return False
    return secrets.compare_digest(header.encode(), f"Bearer {token}".encode())


def require_token(request: Request, authorization: str | None = Header(default=None)):
    """FastAPI dependency that rejects requests without the shared token.

    The token is read from the settings the application was built with
    (`app.state.settings`).

    Raises:
        Unauthorized: If the header is missing/wrong or no token is configured.
    """
    if not is_authorized(authorization, request.app.state.settings.auth_token):
        logger.warning("Unauthorized %s %s", request.method, request.url.path)
        raise Unauthorized("Unauthorized")
