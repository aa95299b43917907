"""Generic async repository over the hosted backend tables."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Generic CRUD repository: read, insert, update and hard delete.

    The hosted tables carry no tenant or soft-delete columns, so rows are
    removed for real, the same way the OCR pipeline's own tooling does it.
    """

    model: type[ModelT]

    def __init__(self, session: AsyncSession):
        self._session = session

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _base_query(self):
        return select(self.model)

    def _apply_filters(self, q, filters: dict[str, Any] | None):
        """Apply simple equality filters; unknown columns and None values are skipped."""
        if filters:
            for col_name, value in filters.items():
                if value is not None and hasattr(self.model, col_name):
                    q = q.where(getattr(self.model, col_name) == value)
        return q

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, entity_id: str) -> ModelT | None:
        result = await self._session.execute(
            self._base_query().where(self.model.id == entity_id)
        )
        return result.scalars().first()

    async def exists(self, entity_id: str) -> bool:
        result = await self._session.execute(
            select(self.model.id).where(self.model.id == entity_id)
        )
        return result.first() is not None

    async def count(self, filters: dict[str, Any] | None = None) -> int:
        q = self._apply_filters(self._base_query(), filters)
        count_q = select(func.count()).select_from(q.subquery())
        return (await self._session.execute(count_q)).scalar_one()

    async def list(
        self,
        *,
        offset: int = 0,
        limit: int = 20,
        order_by: str = "created_at",
        order: str = "desc",
        filters: dict[str, Any] | None = None,
    ) -> tuple[list[ModelT], int]:
        """Return (items, total_count) with pagination and optional column filters."""
        q = self._apply_filters(self._base_query(), filters)
        total = await self.count(filters)

        col = getattr(self.model, order_by, None)
        if col is not None:
            q = q.order_by(col.desc() if order == "desc" else col.asc())
        q = q.offset(offset).limit(limit)

        items = (await self._session.execute(q)).scalars().all()
        return list(items), total

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def create(self, **kwargs: Any) -> ModelT:
        instance = self.model(**kwargs)
        self._session.add(instance)
        await self._session.flush()  # populate id / server defaults
        await self._session.refresh(instance)
        return instance

    async def create_many(self, rows: list[dict[str, Any]]) -> list[ModelT]:
        instances = [self.model(**row) for row in rows]
        self._session.add_all(instances)
        await self._session.flush()
        return instances

    async def update(self, entity_id: str, **kwargs: Any) -> ModelT | None:
        kwargs.pop("id", None)
        instance = await self.get_by_id(entity_id)
        if instance is None:
            return None
        for attr, value in kwargs.items():
            setattr(instance, attr, value)
        await self._session.flush()
        await self._session.refresh(instance)
        return instance

    async def delete(self, entity_id: str) -> bool:
        result = await self._session.execute(
            delete(self.model).where(self.model.id == entity_id)
        )
        await self._session.flush()
        return result.rowcount > 0
