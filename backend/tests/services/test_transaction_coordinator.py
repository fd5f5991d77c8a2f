"""Transaction Coordinator — outcome mapping, slow commits, and database failures.

Tests cover:
    - APPLIED -> None, CONFLICT -> Conflict, DUPLICATE -> DuplicateName
    - A commit acknowledged late still reports the committed outcome
    - A caller that stops waiting never cancels the transaction
    - A transaction aborted by the database surfaces as Conflict
    - DatabaseError from the store surfaces as a DatabaseError Failure
    - The service converts read-path DatabaseError into a Failure value
"""

import asyncio

import pytest

from groupkeeper.core.domain_types import Group, StoreOutcome
from groupkeeper.core.errors import ConcurrencyError, DatabaseError, ErrorKind
from groupkeeper.core.membership import Expectation, Mutation, UpdateStep
from groupkeeper.services.grouping_service import GroupingService
from groupkeeper.services.transaction_coordinator import TransactionCoordinator

STEP = UpdateStep("north", Expectation(), Mutation(add=("a1",)))


class _ScriptedStore:
    """Store stub returning a fixed outcome, optionally failing."""

    def __init__(self, outcome=StoreOutcome.APPLIED, error=None):
        self.outcome = outcome
        self.error = error
        self.calls = []

    async def _write(self, label):
        self.calls.append(label)
        if self.error:
            raise self.error
        return self.outcome

    async def find_by_name(self, name):
        if self.error:
            raise self.error
        return None

    async def list_groups(self, archived=None):
        if self.error:
            raise self.error
        return []

    async def insert_if_absent(self, group):
        return await self._write("insert")

    async def conditional_update(self, step):
        return await self._write("single")

    async def transactional_multi_update(self, steps):
        return await self._write(f"multi:{len(steps)}")


class _DelayedStore:
    """Delegates to a real store, sleeping before and/or after the commit."""

    def __init__(self, inner, before_commit=0.0, after_commit=0.0):
        self._inner = inner
        self._before = before_commit
        self._after = after_commit
        self.finished = asyncio.Event()

    def __getattr__(self, name):
        return getattr(self._inner, name)

    async def transactional_multi_update(self, steps):
        await asyncio.sleep(self._before)
        outcome = await self._inner.transactional_multi_update(steps)
        self.finished.set()
        await asyncio.sleep(self._after)
        return outcome


async def test_applied_returns_none():
    store = _ScriptedStore()
    coordinator = TransactionCoordinator(store)
    assert await coordinator.apply("add_member", STEP) is None
    assert await coordinator.apply_all("move_member", [STEP, STEP]) is None
    assert store.calls == ["single", "multi:2"]


async def test_conflict_outcome_names_groups():
    coordinator = TransactionCoordinator(_ScriptedStore(StoreOutcome.CONFLICT))
    failure = await coordinator.apply_all(
        "move_member", [STEP, UpdateStep("south")],
    )
    assert failure.kind is ErrorKind.CONFLICT
    assert "'north'" in failure.message and "'south'" in failure.message


async def test_duplicate_outcome_is_duplicate_name():
    coordinator = TransactionCoordinator(_ScriptedStore(StoreOutcome.DUPLICATE))
    failure = await coordinator.insert("create_group", Group(name="north"))
    assert failure.kind is ErrorKind.DUPLICATE_NAME
    assert failure.message == "Group 'north' already exists."


async def test_database_error_surfaces_as_failure():
    store = _ScriptedStore(error=DatabaseError("connection reset", "execute"))
    failure = await TransactionCoordinator(store).apply("add_member", STEP)
    assert failure.kind is ErrorKind.DATABASE_ERROR
    assert "connection reset" in failure.message


async def test_service_never_raises_on_read_failure():
    store = _ScriptedStore(error=DatabaseError("down", "query"))
    service = GroupingService(store, TransactionCoordinator(store))
    for result in (
        await service.view_composition("north"),
        await service.list_groups(),
        await service.move_member("north", "south", "a1"),
    ):
        assert result.kind is ErrorKind.DATABASE_ERROR
        assert result.retryable


async def test_aborted_transaction_surfaces_as_conflict():
    store = _ScriptedStore(error=ConcurrencyError("lock timeout"))
    failure = await TransactionCoordinator(store).apply_all("move_member", [STEP])
    assert failure.kind is ErrorKind.CONFLICT
    assert failure.retryable


async def test_late_commit_acknowledgement_reports_applied(store, seed):
    await seed("north", "a1")
    await seed("south")
    slow = _DelayedStore(store, after_commit=0.2)
    service = GroupingService(slow, TransactionCoordinator(slow))

    result = await service.move_member("north", "south", "a1")

    assert result.ok
    assert (await store.find_by_name("north")).members == ()
    assert (await store.find_by_name("south")).members == ("a1",)
    retry = await service.move_member("north", "south", "a1")
    assert retry.kind is ErrorKind.NOT_MEMBER


async def test_caller_timeout_leaves_transaction_running(store, seed):
    await seed("north", "a1")
    await seed("south")
    slow = _DelayedStore(store, before_commit=0.1)
    service = GroupingService(slow, TransactionCoordinator(slow))

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(
            service.move_member("north", "south", "a1"), timeout=0.01,
        )
    await asyncio.wait_for(slow.finished.wait(), timeout=5)

    # committed as a whole despite the caller giving up
    assert (await store.find_by_name("north")).members == ()
    assert (await store.find_by_name("south")).members == ("a1",)
