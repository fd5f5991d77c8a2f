"""Membership Rules — expectations and mutations that stores evaluate at write time.

Invariants:
    - satisfies() and apply_mutation() are PURE: same inputs, same outputs, no IO
    - apply_mutation never introduces a duplicate member (set union semantics)
    - An archiving mutation always leaves members empty
    - A step whose expectation has exists=False creates its group before mutating
    - lock_order() is independent of step order

Design Decisions:
    - Expectations and mutations are plain data, not closures: every store
      (SQL, in-memory) evaluates them with the same two functions, and they
      log cleanly
    - Member order is insertion order; removals keep the relative order of survivors
"""

from dataclasses import dataclass, field, replace
from typing import Iterable

from groupkeeper.core.domain_types import EntityId, Group, GroupName


@dataclass(frozen=True)
class Expectation:
    """What must still hold for a group when the write commits.

    exists=True requires the record, exists=False requires its absence.
    version pins the exact snapshot the caller validated against.
    """
    exists: bool = True
    active: bool = True
    members_include: frozenset[EntityId] = frozenset()
    members_exclude: frozenset[EntityId] = frozenset()
    version: int | None = None


@dataclass(frozen=True)
class Mutation:
    """Change applied to a group's membership and lifecycle."""
    add: tuple[EntityId, ...] = ()
    remove: frozenset[EntityId] = frozenset()
    clear: bool = False
    archive: bool = False


@dataclass(frozen=True)
class UpdateStep:
    """One group's share of a (possibly multi-record) atomic write."""
    name: GroupName
    expect: Expectation = field(default_factory=Expectation)
    mutation: Mutation = field(default_factory=Mutation)

    @property
    def creates(self) -> bool:
        return not self.expect.exists


def unique(entities: Iterable[EntityId]) -> tuple[EntityId, ...]:
    """De-duplicate keeping the first occurrence."""
    return tuple(dict.fromkeys(entities))


def new_group(name: GroupName, description: str | None = None) -> Group:
    return Group(name=name, description=description)


def satisfies(group: Group | None, expect: Expectation) -> bool:
    """Check a stored record (or its absence) against an expectation."""
    if group is None:
        return not expect.exists
    if not expect.exists:
        return False
    if expect.active and group.archived:
        return False
    if expect.version is not None and group.version != expect.version:
        return False
    members = set(group.members)
    if not expect.members_include <= members:
        return False
    return members.isdisjoint(expect.members_exclude)


def apply_mutation(group: Group, mutation: Mutation) -> Group:
    """Return the group after the mutation, with version bumped."""
    if mutation.clear or mutation.archive:
        members: tuple[EntityId, ...] = ()
    else:
        members = tuple(m for m in group.members if m not in mutation.remove)
        members = unique(members + mutation.add)
    return replace(
        group,
        members=members,
        archived=group.archived or mutation.archive,
        version=group.version + 1,
    )


def resolve_step(current: Group | None, step: UpdateStep) -> Group | None:
    """Record to write for this step, or None when the expectation fails.

    A created group starts from version 0 so its first write lands on 1.
    """
    if not satisfies(current, step.expect):
        return None
    base = current if current is not None else replace(new_group(step.name), version=0)
    return apply_mutation(base, step.mutation)


def lock_order(steps: Iterable[UpdateStep]) -> list[GroupName]:
    """Distinct group names in the order their rows must be locked.

    Every writer locks in name order, so two transactions over the same groups
    cannot wait on each other in a cycle.
    """
    return sorted({step.name for step in steps})
