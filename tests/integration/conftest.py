"""Integration test fixtures for the remote store.

The remote adapter runs against an in-memory SQLite database (aiosqlite) with
the same SQLModel tables it uses in production.
"""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.strategist.adapters.remote import RemoteStorageAdapter
from src.strategist.core.auth import SessionAuthProvider
from src.strategist.core.db import create_tables, get_session_factory
from tests.factories import OWNER


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Fresh in-memory database per test, with tables created."""
    # StaticPool keeps the single in-memory connection alive across sessions
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return get_session_factory(engine)


@pytest.fixture
def auth() -> SessionAuthProvider:
    """Signed in as the project owner. Call sign_in/sign_out to switch users."""
    provider = SessionAuthProvider()
    provider.sign_in(OWNER.id, OWNER.email)
    return provider


@pytest.fixture
def remote_adapter(
    auth: SessionAuthProvider, session_factory: async_sessionmaker[AsyncSession]
) -> RemoteStorageAdapter:
    return RemoteStorageAdapter(auth, session_factory)


@pytest.fixture
async def remote_project(remote_adapter: RemoteStorageAdapter) -> dict:
    """A project owned by OWNER."""
    result = await remote_adapter.create_project({"name": "Acme CU"})
    assert result.error is None, result.error
    return result.data
