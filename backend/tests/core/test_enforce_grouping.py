"""Grouping preconditions — pure tests for each check and its error kind.

Tests cover:
    - name, distinctness, existence, archival checks
    - single and bulk membership checks
    - `or` chaining short-circuits on the first failure
"""

from groupkeeper.core.domain_types import Group
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
from groupkeeper.core.errors import ErrorKind

ACTIVE = Group(name="north", members=("a1", "a2"))
ARCHIVED = Group(name="old", archived=True)


def test_blank_names_are_empty_input():
    for name in ("", "   ", "\t"):
        assert check_name_present(name).kind is ErrorKind.EMPTY_INPUT
    assert check_name_present("north") is None


def test_same_group_detected():
    failure = check_distinct("north", "north", "move")
    assert failure.kind is ErrorKind.SAME_GROUP
    assert "north" in failure.message
    assert check_distinct("north", "south", "move") is None


def test_missing_group_not_found_names_role():
    failure = check_exists(None, "ghost", "Target group")
    assert failure.kind is ErrorKind.NOT_FOUND
    assert failure.message == "Target group 'ghost' not found."


def test_archived_group_rejected():
    assert check_active(ARCHIVED).kind is ErrorKind.ARCHIVED
    assert check_active(ACTIVE) is None


def test_check_mutable_reports_not_found_before_archived():
    assert check_mutable(None, "ghost").kind is ErrorKind.NOT_FOUND
    assert check_mutable(ARCHIVED, "old").kind is ErrorKind.ARCHIVED
    assert check_mutable(ACTIVE, "north") is None


def test_membership_checks():
    assert check_member(ACTIVE, "a1") is None
    assert check_member(ACTIVE, "zz").kind is ErrorKind.NOT_MEMBER
    assert check_not_member(ACTIVE, "zz") is None
    assert check_not_member(ACTIVE, "a1").kind is ErrorKind.ALREADY_MEMBER


def test_empty_entity_list_is_empty_input():
    assert check_entities_present([]).kind is ErrorKind.EMPTY_INPUT
    assert check_entities_present(["a1"]) is None


def test_all_members_reports_every_missing_entity():
    failure = check_all_members(ACTIVE, ["a1", "x", "y"])
    assert failure.kind is ErrorKind.NOT_MEMBER
    assert "'x'" in failure.message and "'y'" in failure.message
    assert "'a1'" not in failure.message


def test_or_chain_stops_at_first_failure():
    # check_member would fail on None; the chain must never reach it
    failure = check_mutable(None, "ghost") or check_member(None, "a1")
    assert failure.kind is ErrorKind.NOT_FOUND
