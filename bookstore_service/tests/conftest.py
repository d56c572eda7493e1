"""
Pytest configuration and fixtures for bookstore_service tests.

The service runs with ``app/`` as its working directory, so the app
directory goes on sys.path the same way here. Every test gets its own
SQLite file under tmp_path.
"""

import os
import sys

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'app')))

from config import Settings  # noqa: E402
from db.database import StoreClient  # noqa: E402
from db.init_db import init_db  # noqa: E402
from main import create_app  # noqa: E402
from storefront.client import CartClient  # noqa: E402
from storefront.events import CartEvents  # noqa: E402

GUEST = "guest-user"


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'bookstore.db'}"


@pytest.fixture
def settings(db_url):
    return Settings(db_url=db_url, guest_user_id=GUEST, log_level="DEBUG")


@pytest.fixture
def test_client(settings):
    """FastAPI TestClient with the full lifespan (engine, tables, teardown)."""
    with TestClient(create_app(settings)) as client:
        yield client


@pytest_asyncio.fixture
async def database(db_url):
    store = StoreClient(db_url)
    database = store.database()
    await init_db(database)
    yield database
    await store.close()


@pytest_asyncio.fixture
async def session(database):
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture
async def cart_client(settings, database):
    """CartClient wired to the app in-process through httpx.ASGITransport."""
    app = create_app(settings)
    app.state.db = database
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield CartClient(http=http)


@pytest.fixture
def events():
    return CartEvents()
