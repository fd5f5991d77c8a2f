"""Groupkeeper Runtime — wires settings, logging, store, and coordinator into a GroupingService.

Invariants:
    - The store backend is chosen once, from settings.store_backend
    - The database engine is created on entry and disposed on exit
    - Components are constructed explicitly, leaves first (no auto-discovery)

Design Decisions:
    - Async context manager over module-level singletons: the calling layer
      (request router, worker, script) owns the lifecycle
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from groupkeeper.config import Settings, get_settings
from groupkeeper.core.repository_protocols import GroupStore
from groupkeeper.infrastructure.database import DatabaseSessionManager
from groupkeeper.infrastructure.memory_group_store import InMemoryGroupStore
from groupkeeper.infrastructure.observability import setup_logging
from groupkeeper.infrastructure.sql_group_store import SqlGroupStore
from groupkeeper.services.grouping_service import GroupingService
from groupkeeper.services.transaction_coordinator import TransactionCoordinator

logger = logging.getLogger(__name__)


def build_store(
    settings: Settings,
) -> tuple[GroupStore, DatabaseSessionManager | None]:
    """Construct the configured store, plus its session manager when SQL-backed."""
    if settings.store_backend == "memory":
        return InMemoryGroupStore(), None
    manager = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        timeout_seconds=settings.transaction_timeout_seconds,
    )
    return SqlGroupStore(manager), manager


@asynccontextmanager
async def grouping_runtime(
    settings: Settings | None = None,
) -> AsyncIterator[GroupingService]:
    """Startup/shutdown lifecycle around a ready-to-use GroupingService."""
    settings = settings or get_settings()
    handler = setup_logging(settings.log_level, settings.log_format)
    store, manager = build_store(settings)
    coordinator = TransactionCoordinator(store)
    logger.info(
        f"Groupkeeper started with {settings.store_backend} store",
        extra={"operation": "startup"},
    )
    try:
        yield GroupingService(store, coordinator)
    finally:
        if manager is not None:
            await manager.dispose()
        logger.info(
            "Groupkeeper shutting down", extra={"operation": "shutdown"},
        )
        logging.root.removeHandler(handler)
