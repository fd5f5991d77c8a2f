"""Command Dispatch — explicit routing from command record to service operation.

Invariants:
    - Every command -> operation mapping is visible in one match statement
    - Adding a command kind requires a new case here; the final case rejects
      anything outside the GroupCommand union

Design Decisions:
    - match on the record class over a dict of kind -> handler: the type
      checker sees each command's fields in its own branch
"""

from typing import assert_never

from groupkeeper.core.errors import GroupingResult
from groupkeeper.schemas.commands import (
    AddMember,
    CreateGroup,
    GroupCommand,
    ListGroups,
    MergeGroups,
    MoveMember,
    RemoveMember,
    SplitMembers,
    ViewComposition,
    parse_command,
)
from groupkeeper.services.grouping_service import GroupingService


async def dispatch(
    service: GroupingService, command: GroupCommand,
) -> GroupingResult:
    """Route a validated command to its GroupingService operation."""
    match command:
        case CreateGroup(name=name, description=description):
            return await service.create_group(name, description)
        case AddMember(group=group, entity=entity):
            return await service.add_member(group, entity)
        case RemoveMember(group=group, entity=entity):
            return await service.remove_member(group, entity)
        case MoveMember(source=source, target=target, entity=entity):
            return await service.move_member(source, target, entity)
        case MergeGroups(keep=keep, archive=archive):
            return await service.merge_groups(keep, archive)
        case SplitMembers(source=source, target=target, entities=entities):
            return await service.split_members(source, target, entities)
        case ViewComposition(group=group):
            return await service.view_composition(group)
        case ListGroups(archived=archived):
            return await service.list_groups(archived)
        case _:
            assert_never(command)


async def dispatch_raw(service: GroupingService, data: dict) -> dict:
    """Validate, execute, and render a raw command as a response dict."""
    result = await dispatch(service, parse_command(data))
    return result.to_response()
