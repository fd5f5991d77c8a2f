"""Grouping Service — public operations over named groups of external entities.

Invariants:
    - Every operation returns Ok or Failure; none raises (GroupkeeperError is
      converted at this boundary)
    - Preconditions are checked against a fresh read, then re-asserted by the
      store at write time through Expectation; a precondition invalidated in
      between surfaces as Conflict
    - move_member, merge_groups and split_members write through
      TransactionCoordinator.apply_all: all participating groups change
      together or not at all
    - Archived groups are terminal: every mutation touching one fails with Archived
    - No in-process locks and no automatic retries

Design Decisions:
    - Checks chained with `or`: Failure values are truthy, so the first failing
      check short-circuits the rest and later checks may assume earlier ones passed
    - move_member and split_members add to the target idempotently: the caller
      cares that the entity ends up in the target, not that it was absent before
    - merge_groups pins the archived side's version: the members copied into
      `keep` are exactly the members cleared from `archive`
    - split_members into a missing target creates it inside the same
      transaction; if a concurrent create wins the name, the split aborts with
      Conflict and a retry joins the now-existing group
"""

import logging
from functools import wraps
from typing import Iterable

from groupkeeper.core.domain_types import EntityId, GroupName
from groupkeeper.core.enforce_grouping import (
    check_active,
    check_all_members,
    check_distinct,
    check_entities_present,
    check_exists,
    check_member,
    check_mutable,
    check_name_present,
    check_not_member,
)
from groupkeeper.core.errors import Failure, GroupingResult, GroupkeeperError, Ok
from groupkeeper.core.membership import (
    Expectation, Mutation, UpdateStep, new_group, unique,
)
from groupkeeper.core.repository_protocols import GroupStore
from groupkeeper.services.transaction_coordinator import TransactionCoordinator

logger = logging.getLogger(__name__)


def grouping_operation(method):
    """Convert shell exceptions into Failure values and log every failure."""

    @wraps(method)
    async def wrapper(self, *args, **kwargs) -> GroupingResult:
        operation = method.__name__
        try:
            result = await method(self, *args, **kwargs)
        except GroupkeeperError as e:
            logger.error(
                f"{operation} aborted: {e.message}",
                extra={"operation": operation, "error_kind": e.kind.value},
            )
            return e.to_failure()
        if isinstance(result, Failure):
            logger.info(
                f"{operation} rejected: {result.message}",
                extra={"operation": operation, "error_kind": result.kind.value},
            )
        return result

    return wrapper


class GroupingService:
    """Create, mutate, and query groups. Multi-group mutations are atomic."""

    def __init__(self, store: GroupStore, coordinator: TransactionCoordinator):
        self._store = store
        self._coordinator = coordinator

    # ─── Single-group operations ─────────────────────────────────

    @grouping_operation
    async def create_group(
        self, name: str, description: str | None = None,
    ) -> GroupingResult:
        failure = check_name_present(name)
        if failure:
            return failure
        failure = await self._coordinator.insert(
            "create_group", new_group(GroupName(name), description),
        )
        return failure or Ok({"name": name})

    @grouping_operation
    async def add_member(self, group: str, entity: str) -> GroupingResult:
        name, entity = GroupName(group), EntityId(entity)
        current = await self._store.find_by_name(name)
        failure = (
            check_mutable(current, name)
            or check_not_member(current, entity)
        )
        if failure:
            return failure
        step = UpdateStep(
            name,
            Expectation(members_exclude=frozenset({entity})),
            Mutation(add=(entity,)),
        )
        return await self._coordinator.apply("add_member", step) or Ok()

    @grouping_operation
    async def remove_member(self, group: str, entity: str) -> GroupingResult:
        name, entity = GroupName(group), EntityId(entity)
        current = await self._store.find_by_name(name)
        failure = (
            check_mutable(current, name)
            or check_member(current, entity)
        )
        if failure:
            return failure
        step = UpdateStep(
            name,
            Expectation(members_include=frozenset({entity})),
            Mutation(remove=frozenset({entity})),
        )
        return await self._coordinator.apply("remove_member", step) or Ok()

    # ─── Multi-group operations ──────────────────────────────────

    @grouping_operation
    async def move_member(
        self, source: str, target: str, entity: str,
    ) -> GroupingResult:
        src_name, tgt_name = GroupName(source), GroupName(target)
        entity = EntityId(entity)
        failure = check_distinct(src_name, tgt_name, "move")
        if failure:
            return failure

        src = await self._store.find_by_name(src_name)
        tgt = await self._store.find_by_name(tgt_name)
        failure = (
            check_mutable(src, src_name, "Source group")
            or check_mutable(tgt, tgt_name, "Target group")
            or check_member(src, entity)
        )
        if failure:
            return failure

        steps = [
            UpdateStep(
                src_name,
                Expectation(members_include=frozenset({entity})),
                Mutation(remove=frozenset({entity})),
            ),
            UpdateStep(tgt_name, Expectation(), Mutation(add=(entity,))),
        ]
        return await self._coordinator.apply_all("move_member", steps) or Ok()

    @grouping_operation
    async def merge_groups(self, keep: str, archive: str) -> GroupingResult:
        keep_name, archive_name = GroupName(keep), GroupName(archive)
        failure = check_distinct(keep_name, archive_name, "merge")
        if failure:
            return failure

        kept = await self._store.find_by_name(keep_name)
        retired = await self._store.find_by_name(archive_name)
        failure = (
            check_mutable(kept, keep_name)
            or check_mutable(retired, archive_name)
        )
        if failure:
            return failure

        steps = [
            UpdateStep(keep_name, Expectation(), Mutation(add=retired.members)),
            UpdateStep(
                archive_name,
                Expectation(version=retired.version),
                Mutation(archive=True),
            ),
        ]
        return await self._coordinator.apply_all("merge_groups", steps) or Ok()

    @grouping_operation
    async def split_members(
        self, source: str, target: str, entities: Iterable[str],
    ) -> GroupingResult:
        src_name, tgt_name = GroupName(source), GroupName(target)
        wanted = unique(EntityId(e) for e in entities)
        failure = (
            check_distinct(src_name, tgt_name, "split")
            or check_entities_present(wanted)
        )
        if failure:
            return failure

        src = await self._store.find_by_name(src_name)
        failure = (
            check_mutable(src, src_name, "Source group")
            or check_all_members(src, wanted)
        )
        if failure:
            return failure

        tgt = await self._store.find_by_name(tgt_name)
        if tgt is not None:
            failure = check_active(tgt, "Target group")
            if failure:
                return failure

        steps = [
            UpdateStep(
                src_name,
                Expectation(members_include=frozenset(wanted)),
                Mutation(remove=frozenset(wanted)),
            ),
            UpdateStep(
                tgt_name,
                Expectation(exists=tgt is not None),
                Mutation(add=wanted),
            ),
        ]
        return await self._coordinator.apply_all("split_members", steps) or Ok()

    # ─── Queries ─────────────────────────────────────────────────

    @grouping_operation
    async def view_composition(self, group: str) -> GroupingResult:
        name = GroupName(group)
        current = await self._store.find_by_name(name)
        failure = check_exists(current, name)
        if failure:
            return failure
        return Ok({"members": list(current.members)})

    @grouping_operation
    async def list_groups(self, archived: bool | None = None) -> GroupingResult:
        """All groups in creation order; archived=True/False filters by state."""
        groups = await self._store.list_groups(archived)
        return Ok({"groups": [g.summary() for g in groups]})
