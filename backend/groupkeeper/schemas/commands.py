"""Command Schemas — one pydantic model per grouping operation, tagged by `kind`.

Invariants:
    - GroupCommand is a closed discriminated union: an unknown `kind` fails validation
    - Field names mirror GroupingService parameters one-to-one
    - parse_command raises pydantic.ValidationError on malformed input; that is
      the calling layer's error, not a grouping Failure

Design Decisions:
    - Literal `kind` over a str enum: pydantic handles the discriminator natively
    - No min_length on names: an empty name must reach the service and come
      back as EmptyInput
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class CreateGroup(BaseModel):
    kind: Literal["create"] = "create"
    name: str
    description: str | None = None


class AddMember(BaseModel):
    kind: Literal["add_member"] = "add_member"
    group: str
    entity: str


class RemoveMember(BaseModel):
    kind: Literal["remove_member"] = "remove_member"
    group: str
    entity: str


class MoveMember(BaseModel):
    kind: Literal["move_member"] = "move_member"
    source: str
    target: str
    entity: str


class MergeGroups(BaseModel):
    kind: Literal["merge_groups"] = "merge_groups"
    keep: str
    archive: str


class SplitMembers(BaseModel):
    kind: Literal["split_members"] = "split_members"
    source: str
    target: str
    entities: list[str]


class ViewComposition(BaseModel):
    kind: Literal["view_composition"] = "view_composition"
    group: str


class ListGroups(BaseModel):
    """archived=None lists every group; True/False filters by lifecycle state."""
    kind: Literal["list_groups"] = "list_groups"
    archived: bool | None = None


GroupCommand = Annotated[
    Union[
        CreateGroup, AddMember, RemoveMember, MoveMember,
        MergeGroups, SplitMembers, ViewComposition, ListGroups,
    ],
    Field(discriminator="kind"),
]

_command_adapter: TypeAdapter[GroupCommand] = TypeAdapter(GroupCommand)


def parse_command(data: dict) -> GroupCommand:
    """Validate a raw mapping into its command record."""
    return _command_adapter.validate_python(data)
