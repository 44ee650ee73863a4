"""Root conftest — shared test configuration and database fixtures.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - Settings never point at a real database

Design Decisions:
    - StaticPool: every session shares the one in-memory connection
"""

import os

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from writepath.db.base import Base  # noqa: E402
import writepath.models  # noqa: E402,F401
from writepath.infrastructure.record_store import SqlRecordStore  # noqa: E402
from writepath.services.audit_log_writer import AuditLogWriter  # noqa: E402


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def record_store(test_session_factory):
    return SqlRecordStore(test_session_factory)


@pytest.fixture
async def audit_writer(record_store):
    return AuditLogWriter(record_store)
