"""FastAPI application factory / entrypoint.

This service exposes HTTP endpoints for:
- reading and upserting the value document of an (account, project) pair
- reading, updating and deleting records by id
- health checks

Operational notes:
- The application is built by `create_app(settings)`; nothing connects to the
  database at import time. Run it with `python -m valuestore` or
  `uvicorn --factory valuestore.main:create_app`.
- The database handle is opened in the lifespan startup hook (creating tables
  and indexes if needed) and disposed at shutdown.
- Every error, including unknown routes and malformed bodies, is returned in
  the `{status, message}` envelope.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .db import Database
from .errors import ValueStoreError
from .logging_setup import configure_logging, log_requests
from .routes import router
from .schemas import error
from .settings import get_settings

logger = logging.getLogger(__name__)


class CollapseLeadingSlashes:
    """ASGI middleware that rewrites `//api/values` style paths to `/api/values`."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http" and scope["path"].startswith("//"):
            scope = dict(scope, path="/" + scope["path"].lstrip("/"))
        await self.app(scope, receive, send)


@asynccontextmanager
async def lifespan(app):
    app.state.db.open()
    logger.info("Value store started")
    try:
        yield
    finally:
        app.state.db.close()
        logger.info("Value store stopped")


def create_app(settings=None):
    """Build the FastAPI application.

    Args:
        settings: Explicit `Settings`; defaults to `get_settings()` (environment).

    Returns:
        FastAPI: The configured application. Its database opens on startup.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Value Store API", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.db = Database.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)
    app.add_middleware(CollapseLeadingSlashes)

    app.include_router(router)
    _install_exception_handlers(app)

    @app.get("/health")
    def health():
        """Health check endpoint.

        Returns a minimal payload used by containers and orchestrators to
        determine whether the process is up and able to serve requests.

        Returns:
            dict: `{"status": "ok", "service": "valuestore"}`.
        """
        return {"status": "ok", "service": "valuestore"}

    return app


def _install_exception_handlers(app):
    @app.exception_handler(ValueStoreError)
    async def handle_value_store_error(request: Request, exc: ValueStoreError):
        return JSONResponse(status_code=exc.status_code, content=error(exc.message))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        logger.warning("Malformed request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content=error("Invalid request payload"))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        message = "Not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=error(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error("Internal server error"))


def main():
    """Entrypoint for the service container.

    Loads settings from the environment, configures logging and serves the
    application with uvicorn on `HOST:PORT`.
    """
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
