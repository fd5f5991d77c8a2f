"""Database Infrastructure — async session factory and SQLAlchemy Base.

Invariants:
    - One async engine per DatabaseSessionManager, constructed by main.build_store
    - All sessions are async (AsyncSession)

Design Decisions:
    - asyncpg driver for PostgreSQL in production, aiosqlite in tests
"""
