"""Generic repository shared by the sync job's models."""

import operator
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from payout_sync.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)

# Suffixes accepted after "__" in filter keys; no suffix means equality.
_OPERATORS: Dict[str, Callable[[Any, Any], Any]] = {
    "eq": operator.eq,
    "ne": operator.ne,
    "lt": operator.lt,
    "lte": operator.le,
    "gt": operator.gt,
    "gte": operator.ge,
    "in": lambda column, values: column.in_(list(values)),
}


class BaseRepository(Generic[ModelType]):
    """
    Create, read and update access to one model, bound to one session.

    Rows are never deleted by the sync job, so there is no delete.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def create(self, **values) -> ModelType:
        """Insert a row and return it with server defaults loaded."""
        instance = self.model(**values)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def get_by_id(self, id: int) -> Optional[ModelType]:
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)  # type: ignore
        )
        return result.scalar_one_or_none()

    async def get_all(self) -> List[ModelType]:
        """Every row, ordered by ID."""
        return await self.filter()

    async def filter(self, **filters) -> List[ModelType]:
        """
        Rows matching ``filters``, ordered by ID.

        Keys are column names, optionally suffixed with an operator:
        ``status=...``, ``external_id__in=[...]``, ``created_at__lt=...``.
        """
        query = self._where(select(self.model), filters).order_by(
            self.model.id  # type: ignore
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(self, **filters) -> int:
        query = self._where(select(func.count(self.model.id)), filters)  # type: ignore
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def update(self, id: int, **values) -> Optional[ModelType]:
        """
        Update one row by ID.

        Returns:
            The refreshed row, or None if it does not exist
        """
        await self.session.execute(
            update(self.model)
            .where(self.model.id == id)  # type: ignore
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.flush()
        return await self.get_by_id(id)

    async def update_where(self, filters: Dict[str, Any], **values) -> int:
        """
        Update every row matching ``filters`` in one statement.

        Returns:
            Number of rows the statement changed
        """
        statement = self._where(update(self.model), filters).values(**values)
        result = await self.session.execute(
            statement.execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount or 0  # type: ignore

    def _where(self, statement, filters: Dict[str, Any]):
        for key, value in filters.items():
            name, _, suffix = key.partition("__")
            compare = _OPERATORS.get(suffix or "eq")
            if compare is None:
                raise ValueError(f"Unsupported filter operator: {suffix}")
            statement = statement.where(compare(getattr(self.model, name), value))
        return statement
