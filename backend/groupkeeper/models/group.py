"""Group ORM — persists one named grouping of external entity ids.

Invariants:
    - name is the primary key: globally unique, never reused, never renamed
    - members is a JSON array with no duplicate ids (enforced by core/membership.py)
    - archived rows have an empty members array and are never written again
    - version increments on every committed write (optimistic concurrency guard)

Design Decisions:
    - Text name: no length limit, matching the in-memory store
    - JSON column for members: a group is read and written as a whole, no
      per-member queries are needed
    - Explicit version column checked in UPDATE ... WHERE version = :read_version
      rather than mapper version_id_col: stores issue set-based UPDATEs and read
      rowcount directly
"""

from datetime import datetime, timezone

from sqlalchemy import Text, Integer, Boolean, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from groupkeeper.core.domain_types import EntityId, Group, GroupName
from groupkeeper.db.base import Base


class GroupModel(Base):
    """Group row — the sole persisted entity."""
    __tablename__ = "groups"

    name: Mapped[str] = mapped_column(Text, primary_key=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    members: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    archived: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True,
    )
    version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_domain(self) -> Group:
        return Group(
            name=GroupName(self.name),
            description=self.description,
            members=tuple(EntityId(m) for m in self.members or ()),
            archived=self.archived,
            version=self.version,
        )

    @classmethod
    def from_domain(cls, group: Group) -> "GroupModel":
        return cls(
            name=group.name,
            description=group.description,
            members=list(group.members),
            archived=group.archived,
            version=group.version,
        )
