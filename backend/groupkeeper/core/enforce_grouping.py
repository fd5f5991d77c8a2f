"""Grouping Preconditions — pure validation before any write is attempted.

Invariants:
    - Every check is PURE: returns Failure or None, never mutates, never raises
    - The first failing check wins; callers run checks in a fixed order so
      the reported error kind is deterministic
    - Archived groups fail every mutating precondition (terminal state)

Design Decisions:
    - Checks return Failure | None instead of raising: the service chains them
      with `or` and returns the first failure as-is
    - Messages name the group and entity but never internal versions
"""

from typing import Iterable

from groupkeeper.core.domain_types import EntityId, Group, GroupName
from groupkeeper.core.errors import ErrorKind, Failure


def check_name_present(name: str) -> Failure | None:
    if not name or not name.strip():
        return Failure(ErrorKind.EMPTY_INPUT, "Group name cannot be empty.")
    return None


def check_distinct(first: GroupName, second: GroupName, action: str) -> Failure | None:
    if first == second:
        return Failure(
            ErrorKind.SAME_GROUP,
            f"Cannot {action}: '{first}' is both source and target.",
        )
    return None


def check_exists(group: Group | None, name: GroupName, role: str = "Group") -> Failure | None:
    if group is None:
        return Failure(ErrorKind.NOT_FOUND, f"{role} '{name}' not found.")
    return None


def check_active(group: Group, role: str = "Group") -> Failure | None:
    if group.archived:
        return Failure(
            ErrorKind.ARCHIVED,
            f"{role} '{group.name}' is archived and cannot be modified.",
        )
    return None


def check_mutable(group: Group | None, name: GroupName, role: str = "Group") -> Failure | None:
    """Exists and is not archived."""
    missing = check_exists(group, name, role)
    if missing is not None:
        return missing
    return check_active(group, role)


def check_member(group: Group, entity: EntityId) -> Failure | None:
    if not group.has_member(entity):
        return Failure(
            ErrorKind.NOT_MEMBER,
            f"'{entity}' is not a member of '{group.name}'.",
        )
    return None


def check_not_member(group: Group, entity: EntityId) -> Failure | None:
    if group.has_member(entity):
        return Failure(
            ErrorKind.ALREADY_MEMBER,
            f"'{entity}' is already a member of '{group.name}'.",
        )
    return None


def check_entities_present(entities: Iterable[EntityId]) -> Failure | None:
    if not list(entities):
        return Failure(ErrorKind.EMPTY_INPUT, "No entities specified to split.")
    return None


def check_all_members(group: Group, entities: Iterable[EntityId]) -> Failure | None:
    """Every entity must be in the group; reports all missing ones at once."""
    missing = [e for e in entities if not group.has_member(e)]
    if missing:
        return Failure(
            ErrorKind.NOT_MEMBER,
            f"{', '.join(repr(m) for m in missing)} not members of '{group.name}'.",
        )
    return None
