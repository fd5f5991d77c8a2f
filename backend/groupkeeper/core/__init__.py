"""Core Layer — pure grouping logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, infrastructure/, models/ or db/
    - All functions are pure and deterministic

Design Decisions:
    - Functional core separated from imperative shell: stores and the service
      share the same satisfies()/apply_mutation() rules
"""
