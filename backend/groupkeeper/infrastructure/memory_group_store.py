"""In-Memory Group Store — GroupStore held in process memory.

Invariants:
    - Same contract as SqlGroupStore: DUPLICATE on existing names, CONFLICT on
      any failed expectation, no partial writes
    - No method awaits between reading and publishing records, so each call
      is atomic with respect to every other coroutine on the event loop
    - Multi-step calls stage every new record before publishing any

Design Decisions:
    - Records are immutable Group snapshots: readers never observe a half-applied step
    - dict insertion order doubles as creation order for list_groups
    - Used by unit tests and by store_backend=memory; not shared across processes
"""

from typing import Sequence

from groupkeeper.core.domain_types import Group, GroupName, StoreOutcome
from groupkeeper.core.membership import UpdateStep, resolve_step


class InMemoryGroupStore:
    """Group persistence in a plain dict keyed by name."""

    def __init__(self, groups: Sequence[Group] = ()):
        self._groups: dict[GroupName, Group] = {g.name: g for g in groups}

    async def find_by_name(self, name: GroupName) -> Group | None:
        return self._groups.get(name)

    async def list_groups(self, archived: bool | None = None) -> list[Group]:
        return [
            g for g in self._groups.values()
            if archived is None or g.archived == archived
        ]

    async def insert_if_absent(self, group: Group) -> StoreOutcome:
        if group.name in self._groups:
            return StoreOutcome.DUPLICATE
        self._groups[group.name] = group
        return StoreOutcome.APPLIED

    async def conditional_update(self, step: UpdateStep) -> StoreOutcome:
        return await self.transactional_multi_update([step])

    async def transactional_multi_update(
        self, steps: Sequence[UpdateStep],
    ) -> StoreOutcome:
        staged: dict[GroupName, Group] = {}
        for step in steps:
            current = staged.get(step.name, self._groups.get(step.name))
            updated = resolve_step(current, step)
            if updated is None:
                return StoreOutcome.CONFLICT
            staged[step.name] = updated
        self._groups.update(staged)
        return StoreOutcome.APPLIED
