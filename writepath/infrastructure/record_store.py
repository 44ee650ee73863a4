"""SQL Record Store — RecordStore implementation over SQLAlchemy async sessions.

Invariants:
    - Records cross the boundary as dicts keyed by COLUMN name, not ORM attribute
    - Each operation runs in its own session and commits atomically
    - SQLAlchemy failures surface as DatabaseError (never raw driver exceptions)

Design Decisions:
    - Collection name -> ORM model registry: callers never import models
    - Equality filters only, plus an optional lower bound per datetime column
      (recent-activity queries): no general query language at this boundary
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import delete, inspect, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from writepath.core.errors import DatabaseError
from writepath.db.base import Base
from writepath.models.audit_log import OrderAuditLog

logger = logging.getLogger(__name__)

DEFAULT_COLLECTIONS: dict[str, type[Base]] = {
    OrderAuditLog.__tablename__: OrderAuditLog,
}


class SqlRecordStore:
    """Named collections backed by ORM models."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        collections: dict[str, type[Base]] | None = None,
    ):
        self._session_factory = session_factory
        self._collections = dict(collections or DEFAULT_COLLECTIONS)
        # column name -> attribute key, per model
        self._columns: dict[type[Base], dict[str, str]] = {
            model: {
                attr.columns[0].name: attr.key
                for attr in inspect(model).column_attrs
            }
            for model in self._collections.values()
        }

    async def insert(self, collection: str, values: dict[str, Any]) -> dict[str, Any]:
        model = self._model(collection)
        row = model(**self._to_attrs(model, values))
        async with self._session_factory() as db:
            try:
                db.add(row)
                await db.commit()
                await db.refresh(row)
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"Insert into {collection} failed: {e}")
                raise DatabaseError(str(e), "insert") from e
        return self._to_record(row)

    async def update(
        self, collection: str, filters: dict[str, Any], values: dict[str, Any],
    ) -> int:
        model = self._model(collection)
        stmt = (
            update(model)
            .where(*self._conditions(model, filters))
            .values(**self._to_attrs(model, values))
        )
        return await self._execute_write(collection, stmt, "update")

    async def query(
        self,
        collection: str,
        filters: dict[str, Any],
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        newer_than: dict[str, datetime] | None = None,
    ) -> list[dict[str, Any]]:
        model = self._model(collection)
        stmt = select(model).where(*self._conditions(model, filters))
        for column, bound in (newer_than or {}).items():
            stmt = stmt.where(self._attr(model, column) >= bound)
        if order_by:
            col = self._attr(model, order_by)
            stmt = stmt.order_by(col.desc() if descending else col.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._session_factory() as db:
            try:
                result = await db.execute(stmt)
            except SQLAlchemyError as e:
                logger.error(f"Query on {collection} failed: {e}")
                raise DatabaseError(str(e), "query") from e
            return [self._to_record(row) for row in result.scalars().all()]

    async def delete(self, collection: str, filters: dict[str, Any]) -> int:
        model = self._model(collection)
        stmt = delete(model).where(*self._conditions(model, filters))
        return await self._execute_write(collection, stmt, "delete")

    # ─── Helpers ────────────────────────────────────────────────

    async def _execute_write(self, collection: str, stmt, operation: str) -> int:
        async with self._session_factory() as db:
            try:
                result = await db.execute(stmt)
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"{operation.capitalize()} on {collection} failed: {e}")
                raise DatabaseError(str(e), operation) from e
            return result.rowcount

    def _model(self, collection: str) -> type[Base]:
        try:
            return self._collections[collection]
        except KeyError:
            raise ValueError(f"Unknown collection '{collection}'") from None

    def _attr(self, model: type[Base], column: str):
        key = self._columns[model].get(column)
        if key is None:
            raise ValueError(f"Unknown column '{column}' on {model.__tablename__}")
        return getattr(model, key)

    def _conditions(self, model: type[Base], filters: dict[str, Any]) -> list:
        return [self._attr(model, column) == value for column, value in filters.items()]

    def _to_attrs(self, model: type[Base], values: dict[str, Any]) -> dict[str, Any]:
        columns = self._columns[model]
        unknown = set(values) - set(columns)
        if unknown:
            raise ValueError(
                f"Unknown column(s) {sorted(unknown)} on {model.__tablename__}",
            )
        return {columns[name]: value for name, value in values.items()}

    def _to_record(self, row: Base) -> dict[str, Any]:
        return {
            name: getattr(row, key)
            for name, key in self._columns[type(row)].items()
        }
