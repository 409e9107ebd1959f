"""Database handle and request-scoped sessions.

The `Database` object owns the SQLAlchemy engine and session factory. It is
built explicitly by the application factory, opened in the lifespan startup
hook and disposed at shutdown, then exposed to route handlers through the
FastAPI dependency `get_db`.

Design goals:
- no process-wide engine created at import time
- short-lived, request-scoped DB sessions
- safe teardown/rollback on errors
"""

import logging

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)


class Database:
    """Explicitly managed connection to the value store database.

    Args:
        url: SQLAlchemy database URL.
        pool_size: Persistent connections kept by the pool (server databases only).
        max_overflow: Extra connections allowed above `pool_size`.
        connect_timeout: Seconds to wait when opening a connection.
    """

    def __init__(self, url, pool_size=10, max_overflow=5, connect_timeout=5):
        self.url = make_url(url)
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.connect_timeout = connect_timeout

        self.engine = None
        self.SessionLocal = None

    @classmethod
    def from_settings(cls, settings):
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            connect_timeout=settings.db_connect_timeout,
        )

    def _engine_options(self):
        if self.url.get_backend_name() == "sqlite":
            options = {"connect_args": {"check_same_thread": False}}
            if self.url.database in (None, "", ":memory:"):
                # in-memory databases vanish with their connection
                options["poolclass"] = StaticPool
            return options

        return {
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_pre_ping": True,
            "connect_args": {"connect_timeout": self.connect_timeout},
        }

    def open(self):
        """Create the engine and make sure the schema exists."""
        if self.engine is not None:
            return

        self.engine = create_engine(self.url, **self._engine_options())
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

        Base.metadata.create_all(self.engine)
        logger.info("Database ready (%s)", self.url.render_as_string(hide_password=True))

    def close(self):
        """Dispose of pooled connections."""
        if self.engine is None:
            return

        self.engine.dispose()
        self.engine = None
        self.SessionLocal = None
        logger.info("Database connection closed")

    def session(self):
        if self.SessionLocal is None:
            raise RuntimeError("Database is not open")
        return self.SessionLocal()


def get_db(request: Request):
    """FastAPI dependency that yields a request-scoped SQLAlchemy session.

    Route handlers declare `db: Session = Depends(get_db)` to receive a session
    bound to the application's `Database` (stored on `app.state.db`).

    Yields:
        sqlalchemy.orm.Session: An open session for the duration of the request.

    Notes:
        Transaction boundaries are controlled by `ValueStore`, which commits
        each mutation and rolls back on failure. Any transaction still open
        when the request ends is rolled back by `close()`.
    """
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()
