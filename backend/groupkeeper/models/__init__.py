"""ORM Models — SQLAlchemy declarative models for persisted groups.

Invariants:
    - All models inherit from Base (db/base.py)
    - A group row is never physically deleted; archival is terminal

Design Decisions:
    - All models imported here so Base.metadata is complete before create_all
      or alembic autogenerate runs
"""

from groupkeeper.models.group import GroupModel  # noqa: F401
