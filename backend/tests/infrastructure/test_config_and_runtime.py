"""Settings and runtime wiring.

Tests cover:
    - postgresql:// URLs normalized for asyncpg
    - grouping_runtime builds a working service for each backend
"""

import logging

from groupkeeper.config import Settings
from groupkeeper.infrastructure.memory_group_store import InMemoryGroupStore
from groupkeeper.infrastructure.sql_group_store import SqlGroupStore
from groupkeeper.main import build_store, grouping_runtime


def test_postgres_url_normalized():
    settings = Settings(database_url="postgresql://u:p@host:5432/db")
    assert settings.database_url == "postgresql+asyncpg://u:p@host:5432/db"


def test_async_urls_left_alone():
    settings = Settings(database_url="sqlite+aiosqlite:///groups.db")
    assert settings.database_url == "sqlite+aiosqlite:///groups.db"


async def test_build_store_selects_backend():
    memory_store, manager = build_store(Settings(store_backend="memory"))
    assert isinstance(memory_store, InMemoryGroupStore)
    assert manager is None

    sql_store, manager = build_store(Settings(
        store_backend="sql", database_url="sqlite+aiosqlite:///:memory:",
    ))
    assert isinstance(sql_store, SqlGroupStore)
    assert await manager.health_check() is True
    await manager.dispose()


async def test_memory_runtime_serves_operations():
    handlers_before = list(logging.root.handlers)
    settings = Settings(store_backend="memory", log_format="text")
    async with grouping_runtime(settings) as service:
        assert (await service.create_group("north")).ok
        assert (await service.add_member("north", "a1")).ok
        view = await service.view_composition("north")
        assert view.payload == {"members": ["a1"]}
    assert logging.root.handlers == handlers_before


async def test_sql_runtime_reports_missing_schema_as_failure():
    settings = Settings(
        store_backend="sql", database_url="sqlite+aiosqlite:///:memory:",
    )
    async with grouping_runtime(settings) as service:
        listing = await service.list_groups()
        # no migrations applied: the missing table is a DatabaseError value
        assert listing.to_response()["error"] == "DatabaseError"
