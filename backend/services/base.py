"""Generic async CRUD shared by the management services.

Subclasses bind a model and add their own queries on top:

    class WebhookTriggerService(BaseService[WebhookTrigger]):
        def __init__(self, db: AsyncSession):
            super().__init__(WebhookTrigger, db)

Services flush but never commit; the caller owns the transaction.
"""

from typing import Any, Generic, Optional, Sequence, Type, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.base import BaseModel

ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseService(Generic[ModelType]):
    """CRUD over one model inside a caller-provided session."""

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    def _scoped(
        self,
        query: Select,
        workspace_id: Optional[str],
        filters: Optional[dict[str, Any]],
    ) -> Select:
        """Apply workspace scope and equality/IN filters to a query."""
        if workspace_id is not None and hasattr(self.model, "workspace_id"):
            query = query.where(self.model.workspace_id == workspace_id)
        for name, value in (filters or {}).items():
            column = getattr(self.model, name, None)
            if column is None:
                continue
            query = query.where(column.in_(value) if isinstance(value, list) else column == value)
        return query

    async def get_by_id(self, id: str) -> Optional[ModelType]:
        return await self.db.get(self.model, id)

    async def list(
        self,
        workspace_id: Optional[str] = None,
        offset: int = 0,
        limit: Optional[int] = 50,
        order_by: str = "created_at",
        order_desc: bool = True,
        filters: Optional[dict[str, Any]] = None,
    ) -> tuple[Sequence[ModelType], int]:
        """One page of records plus the unpaged total.

        ``limit=None`` returns every matching record. Unknown filter names and
        ``order_by`` columns are ignored.
        """
        query = self._scoped(select(self.model), workspace_id, filters)
        order_column = getattr(self.model, order_by, None)
        if order_column is not None:
            query = query.order_by(order_column.desc() if order_desc else order_column.asc())

        items = (await self.db.execute(query.offset(offset).limit(limit))).scalars().all()
        total = await self.db.scalar(
            self._scoped(select(func.count()).select_from(self.model), workspace_id, filters)
        )
        return items, total or 0

    async def create(self, data: dict[str, Any]) -> ModelType:
        """Insert a record; ``id`` is generated by the model when absent."""
        instance = self.model(**data)
        self.db.add(instance)
        await self.db.flush()
        await self.db.refresh(instance)
        return instance

    async def update(self, id: str, data: dict[str, Any]) -> Optional[ModelType]:
        """Set the given fields, skipping None values. Returns None if missing."""
        instance = await self.get_by_id(id)
        if instance is None:
            return None

        for key, value in data.items():
            if value is not None and hasattr(instance, key):
                setattr(instance, key, value)
        await self.db.flush()
        await self.db.refresh(instance)
        return instance

    async def delete(self, id: str) -> bool:
        """Hard delete. Returns False if the record does not exist."""
        instance = await self.get_by_id(id)
        if instance is None:
            return False
        await self.db.delete(instance)
        await self.db.flush()
        return True
