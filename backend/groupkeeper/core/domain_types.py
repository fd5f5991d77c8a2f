"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - GroupName and EntityId wrap str — entity ids are opaque, never interpreted
    - Group is immutable; members holds no duplicates and keeps insertion order
    - An archived Group has no members
    - version increases by one on every committed write

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - Tuple for members: hashable, immutable, and order-stable for view_composition
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

GroupName = NewType("GroupName", str)
EntityId = NewType("EntityId", str)


# ─── Records ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class Group:
    """Snapshot of one persisted group."""
    name: GroupName
    description: str | None = None
    members: tuple[EntityId, ...] = ()
    archived: bool = False
    version: int = 1

    def has_member(self, entity: EntityId) -> bool:
        return entity in self.members

    def summary(self) -> dict:
        """Public listing shape — no members, no version."""
        return {
            "name": self.name,
            "description": self.description,
            "archived": self.archived,
        }


# ─── Enums ───────────────────────────────────────────────────────

class StoreOutcome(str, Enum):
    """Result of a conditional write against the GroupStore."""
    APPLIED = "applied"
    CONFLICT = "conflict"
    DUPLICATE = "duplicate"
