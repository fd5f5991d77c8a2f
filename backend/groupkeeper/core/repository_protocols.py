"""Boundary Protocols — contract between the grouping core and its persistence shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - insert_if_absent is atomic: a name that exists (or is inserted concurrently)
      yields DUPLICATE, never a second record
    - conditional_update and transactional_multi_update re-evaluate every
      Expectation at write time; a failed expectation yields CONFLICT and
      leaves every record untouched
    - Infrastructure failures raise DatabaseError (core/errors.py); they are
      never reported as StoreOutcome values

Design Decisions:
    - Protocol over ABC: structural subtyping, SQL and in-memory stores share no base class
    - Async in Protocol: implementations do IO, but the rules they apply
      (core/membership.py) are pure and synchronous
"""

from typing import Protocol, Sequence

from groupkeeper.core.domain_types import Group, GroupName, StoreOutcome
from groupkeeper.core.membership import UpdateStep


class GroupStore(Protocol):
    """Contract for group persistence — implemented by shell."""

    async def find_by_name(self, name: GroupName) -> Group | None: ...

    async def list_groups(self, archived: bool | None = None) -> list[Group]: ...

    async def insert_if_absent(self, group: Group) -> StoreOutcome: ...

    async def conditional_update(self, step: UpdateStep) -> StoreOutcome: ...

    async def transactional_multi_update(
        self, steps: Sequence[UpdateStep],
    ) -> StoreOutcome: ...
