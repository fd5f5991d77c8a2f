"""Service test fixtures — async SQLite store, in-memory store, wired service.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - `store` is parametrized: each store-backed test runs against both
      InMemoryGroupStore and SqlGroupStore
    - `service` uses the same store instance the test inspects

Design Decisions:
    - SQLite in-memory: fast, no external dependency; FOR UPDATE is a no-op
      there, so races are exercised through the version guard
    - seed() fixture builds groups through the public service API only
"""

import pytest

from groupkeeper.db.base import Base
from groupkeeper.infrastructure.database import DatabaseSessionManager
from groupkeeper.infrastructure.memory_group_store import InMemoryGroupStore
from groupkeeper.infrastructure.sql_group_store import SqlGroupStore
from groupkeeper.services.grouping_service import GroupingService
from groupkeeper.services.transaction_coordinator import TransactionCoordinator
import groupkeeper.models  # noqa: F401


@pytest.fixture
async def db_manager():
    manager = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield manager
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await manager.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request, db_manager):
    if request.param == "memory":
        return InMemoryGroupStore()
    return SqlGroupStore(db_manager)


@pytest.fixture
def service(store):
    return GroupingService(store, TransactionCoordinator(store))


@pytest.fixture
def seed(service):
    """Create a group and add members to it; fails the test on any error."""

    async def _seed(name: str, *members: str, description: str | None = None):
        created = await service.create_group(name, description)
        assert created.ok, created
        for member in members:
            added = await service.add_member(name, member)
            assert added.ok, added

    return _seed
