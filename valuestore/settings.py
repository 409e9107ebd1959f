"""Service configuration.

All configuration lives on a single pydantic-settings `Settings` object read
from environment variables (and an optional `.env` file). Required values are
validated when the application starts, so a missing `DATABASE_URL` fails fast
instead of on the first request.

Environment variables:
- `DATABASE_URL`: SQLAlchemy URL, e.g. `postgresql+psycopg2://user:pw@host/db`.
- `AUTH_TOKEN`: shared bearer token. When unset, authorized routes reject
  every request.
- `LOG_LEVEL`, `CORS_ORIGINS`, `HOST`, `PORT`
- `DB_POOL_SIZE`, `DB_MAX_OVERFLOW`, `DB_CONNECT_TIMEOUT`: connection pool
  tuning for server databases (ignored for SQLite).
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str
    auth_token: str | None = None

    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    db_pool_size: int = 10
    db_max_overflow: int = 5
    db_connect_timeout: int = 5

    host: str = "0.0.0.0"
    port: int = 3000


@lru_cache
def get_settings():
    """Return the process-wide settings, loading them on first use."""
    return Settings()
