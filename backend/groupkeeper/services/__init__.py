"""Services Layer — grouping operations, transaction coordination, command dispatch.

Invariants:
    - Services orchestrate IO around pure core rules; they never raise to callers

Design Decisions:
    - Command dispatch uses an explicit match statement (no getattr lookup)
"""
