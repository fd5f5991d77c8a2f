"""SQL Group Store — GroupStore over SQLAlchemy async with versioned conditional writes.

Invariants:
    - Every call opens its own session: one call, one transaction
    - Multi-step calls run inside a single session.begin() block; a rejected
      step or a unique-key violation rolls back every earlier step
    - All participating rows are locked FOR UPDATE up front, in name order
      (where the dialect supports it), then written with
      UPDATE ... WHERE version = :read_version; rowcount != 1 means a concurrent
      commit won and the whole call reports CONFLICT
    - Expectations are evaluated by core/membership.py, never re-implemented here

Design Decisions:
    - IntegrityError caught inside the session block: a duplicate name is an
      outcome (DUPLICATE / CONFLICT), not a DatabaseError
    - synchronize_session=False on UPDATE: rows are read once, up front, and
      later steps see the records this call already wrote
"""

import logging
from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from groupkeeper.core.domain_types import Group, GroupName, StoreOutcome
from groupkeeper.core.membership import UpdateStep, lock_order, resolve_step
from groupkeeper.infrastructure.database import DatabaseSessionManager
from groupkeeper.models.group import GroupModel

logger = logging.getLogger(__name__)


class _StepRejected(Exception):
    """Raised inside a transaction to force rollback of all prior steps."""

    def __init__(self, name: GroupName):
        super().__init__(f"Expectation failed for group '{name}'")
        self.name = name


class SqlGroupStore:
    """Group persistence backed by the `groups` table."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def find_by_name(self, name: GroupName) -> Group | None:
        async with self._db.session() as db:
            model = await db.get(GroupModel, name)
            return model.to_domain() if model else None

    async def list_groups(self, archived: bool | None = None) -> list[Group]:
        query = select(GroupModel).order_by(
            GroupModel.created_at, GroupModel.name,
        )
        if archived is not None:
            query = query.where(GroupModel.archived.is_(archived))
        async with self._db.session() as db:
            result = await db.execute(query)
            return [m.to_domain() for m in result.scalars().all()]

    async def insert_if_absent(self, group: Group) -> StoreOutcome:
        async with self._db.session() as db:
            try:
                async with db.begin():
                    db.add(GroupModel.from_domain(group))
                    await db.flush()
            except IntegrityError:
                logger.info(
                    f"Insert rejected, '{group.name}' already exists",
                    extra={"group": group.name, "outcome": "duplicate"},
                )
                return StoreOutcome.DUPLICATE
        return StoreOutcome.APPLIED

    async def conditional_update(self, step: UpdateStep) -> StoreOutcome:
        return await self.transactional_multi_update([step])

    async def transactional_multi_update(
        self, steps: Sequence[UpdateStep],
    ) -> StoreOutcome:
        async with self._db.session() as db:
            try:
                async with db.begin():
                    current = await self._lock_rows(db, steps)
                    for step in steps:
                        current[step.name] = await self._apply_step(
                            db, step, current.get(step.name),
                        )
            except _StepRejected as e:
                logger.info(
                    f"Transaction rolled back: {e}",
                    extra={"group": e.name, "outcome": "conflict"},
                )
                return StoreOutcome.CONFLICT
            except IntegrityError:
                logger.info(
                    "Transaction rolled back: group created concurrently",
                    extra={"groups": [s.name for s in steps], "outcome": "conflict"},
                )
                return StoreOutcome.CONFLICT
        return StoreOutcome.APPLIED

    async def _lock_rows(
        self, db: AsyncSession, steps: Sequence[UpdateStep],
    ) -> dict[GroupName, Group]:
        """Read every participating row FOR UPDATE, locking in name order."""
        result = await db.execute(
            select(GroupModel)
            .where(GroupModel.name.in_(lock_order(steps)))
            .order_by(GroupModel.name)
            .with_for_update()
        )
        return {m.name: m.to_domain() for m in result.scalars().all()}

    async def _apply_step(
        self, db: AsyncSession, step: UpdateStep, current: Group | None,
    ) -> Group:
        updated = resolve_step(current, step)
        if updated is None:
            raise _StepRejected(step.name)

        if current is None:
            db.add(GroupModel.from_domain(updated))
            await db.flush()
            return updated

        written = await db.execute(
            update(GroupModel)
            .where(GroupModel.name == step.name)
            .where(GroupModel.version == current.version)
            .values(
                members=list(updated.members),
                archived=updated.archived,
                version=updated.version,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        if written.rowcount != 1:
            raise _StepRejected(step.name)
        return updated
