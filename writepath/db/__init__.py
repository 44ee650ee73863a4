"""Database Package — declarative Base shared by ORM models and migrations.

Invariants:
    - Single declarative Base shared by every ORM model
    - All sessions are async (AsyncSession)

Design Decisions:
    - asyncpg driver for PostgreSQL, aiosqlite for tests
"""
