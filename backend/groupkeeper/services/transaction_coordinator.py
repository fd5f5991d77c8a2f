"""Transaction Coordinator — runs store writes as all-or-nothing units and maps outcomes.

Invariants:
    - apply_all() hands every step to one transactional_multi_update call:
      either all steps commit or none do
    - A write, once handed to the store, runs to completion: cancelling the
      caller never cancels the transaction, so the reported outcome is always
      the outcome the store actually reached
    - Store outcomes and GroupkeeperError are returned as Failure values; the
      coordinator never raises to the service
    - No automatic retry: Conflict goes back to the caller

Design Decisions:
    - asyncio.shield around the store call: a cancellation landing during
      COMMIT would otherwise report "nothing applied" for a durable write
    - Time bounds live in the database (lock_timeout / statement_timeout, see
      infrastructure/database.py); an aborted transaction arrives here as
      ConcurrencyError and maps to Conflict
    - Single-record writes share the same mapping so every write path logs alike
"""

import asyncio
import logging
from typing import Awaitable, Sequence

from groupkeeper.core.domain_types import Group, StoreOutcome
from groupkeeper.core.errors import ErrorKind, Failure, GroupkeeperError
from groupkeeper.core.membership import UpdateStep
from groupkeeper.core.repository_protocols import GroupStore

logger = logging.getLogger(__name__)


class TransactionCoordinator:
    """Executes conditional writes against a GroupStore with uniform outcome handling."""

    def __init__(self, store: GroupStore):
        self._store = store
        self._detached: set[asyncio.Future] = set()

    async def insert(self, operation: str, group: Group) -> Failure | None:
        """Insert a brand-new group; DUPLICATE maps to DuplicateName."""
        return await self._run(
            operation, [group.name], self._store.insert_if_absent(group),
        )

    async def apply(self, operation: str, step: UpdateStep) -> Failure | None:
        """Single-record conditional update."""
        return await self._run(
            operation, [step.name], self._store.conditional_update(step),
        )

    async def apply_all(
        self, operation: str, steps: Sequence[UpdateStep],
    ) -> Failure | None:
        """Multi-record update as one atomic unit."""
        return await self._run(
            operation,
            [s.name for s in steps],
            self._store.transactional_multi_update(steps),
        )

    async def _run(
        self, operation: str, groups: list[str], write: Awaitable[StoreOutcome],
    ) -> Failure | None:
        extra = {"operation": operation, "groups": groups}
        task = asyncio.ensure_future(write)
        try:
            outcome = await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.done():
                logger.warning(
                    f"{operation} caller cancelled; transaction left to finish",
                    extra={**extra, "outcome": "detached"},
                )
                self._detached.add(task)
                task.add_done_callback(self._detached.discard)
                task.add_done_callback(_log_detached_outcome(operation, extra))
            raise
        except GroupkeeperError as e:
            log = logger.warning if e.kind is ErrorKind.CONFLICT else logger.error
            log(
                f"{operation} aborted: {e.message}",
                extra={**extra, "outcome": e.kind.value},
            )
            return e.to_failure()

        if outcome is StoreOutcome.APPLIED:
            logger.debug(
                f"{operation} committed", extra={**extra, "outcome": "applied"},
            )
            return None
        if outcome is StoreOutcome.DUPLICATE:
            return Failure(
                ErrorKind.DUPLICATE_NAME, f"Group '{groups[0]}' already exists.",
            )
        logger.warning(
            f"{operation} lost a concurrent update",
            extra={**extra, "outcome": "conflict"},
        )
        return Failure(
            ErrorKind.CONFLICT,
            f"{operation} conflicted with a concurrent change to "
            f"{', '.join(repr(g) for g in groups)}; no changes were applied.",
        )


def _log_detached_outcome(operation: str, extra: dict):
    """Record how a write finished after its caller stopped waiting."""

    def _done(task: asyncio.Future) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                f"{operation} finished after cancellation with error: {error}",
                extra={**extra, "outcome": "database_error"},
            )
            return
        logger.info(
            f"{operation} finished after cancellation: {task.result().value}",
            extra={**extra, "outcome": task.result().value},
        )

    return _done
