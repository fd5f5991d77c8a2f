"""Schemas — pydantic records for operation inputs.

Invariants:
    - Every command is a fixed-shape record of primitives and lists of primitives
    - Schemas validate SHAPE only; business rules (blank names, membership)
      stay in core/enforce_grouping.py so they surface as Failure values
"""
