"""Shared fixtures for the value store tests.

Each test gets a fresh application bound to a private in-memory SQLite
database, so tests never see each other's records.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from valuestore.db import Database
from valuestore.main import create_app
from valuestore.settings import Settings

TOKEN = "test-token"


@pytest.fixture(autouse=True)
def root_logger():
    """Restore the root logger after each test; `create_app` configures it."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    try:
        yield root
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", auth_token=TOKEN)


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {TOKEN}"}


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.open()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def session(database):
    db = database.session()
    try:
        yield db
    finally:
        db.close()
