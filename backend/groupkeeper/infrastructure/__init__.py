"""Infrastructure Layer — database sessions, group stores, and logging.

Invariants:
    - Everything here does IO; core/ rules are applied, never re-implemented

Design Decisions:
    - One GroupStore implementation per backend, chosen at startup (main.py)
"""
