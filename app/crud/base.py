# app/crud/base.py

from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import asc, delete, desc, func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import Base

ModelType = TypeVar("ModelType", bound=Base)


class CRUDRepository(Generic[ModelType]):
    """
    Generic data access for one SQLAlchemy model.

    One instance is created per entity and used by that entity's query
    module; entity-specific queries are plain functions next to it rather
    than subclasses. Writes only flush: committing is left to the caller
    so several writes can share one transaction.
    """
    def __init__(
        self, model: Type[ModelType], *, default_sort: str = "created_at", unsortable: Sequence[str] = ()
    ):
        self.model = model
        self.default_sort = default_sort
        self.unsortable = frozenset(unsortable)

    def sort_column(self, sort_by: Optional[str]):
        """Mapped column for `sort_by`; anything else sorts by the default column."""
        columns = inspect(self.model).columns
        if sort_by and sort_by not in self.unsortable and sort_by in columns:
            return columns[sort_by]
        return columns[self.default_sort]

    async def get(self, db: AsyncSession, id: Any) -> Optional[ModelType]:
        return await db.get(self.model, id)

    async def get_by(self, db: AsyncSession, **filters) -> Optional[ModelType]:
        stmt = select(self.model).filter_by(**filters).limit(1)
        return (await db.scalars(stmt)).first()

    async def get_many(self, db: AsyncSession, ids: Sequence[Any]) -> List[ModelType]:
        if not ids:
            return []
        stmt = select(self.model).where(self.model.id.in_(list(ids)))
        return list(await db.scalars(stmt))

    async def find_all(self, db: AsyncSession, *where, **filters) -> List[ModelType]:
        stmt = select(self.model).where(*where).filter_by(**filters).order_by(self.model.id)
        return list(await db.scalars(stmt))

    async def count(self, db: AsyncSession, *where, **filters) -> int:
        stmt = select(func.count()).select_from(self.model).where(*where).filter_by(**filters)
        return await db.scalar(stmt)

    async def paginate(
        self,
        db: AsyncSession,
        *where,
        page: int = 1,
        limit: int = 10,
        sort_by: Optional[str] = None,
        sort_order: str = "desc",
        **filters,
    ) -> Tuple[List[ModelType], int]:
        """Returns one page of matching rows together with the total match count."""
        column = self.sort_column(sort_by)
        ordering = asc(column) if sort_order == "asc" else desc(column)

        stmt = (
            select(self.model)
            .where(*where)
            .filter_by(**filters)
            .order_by(ordering, self.model.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        items = list(await db.scalars(stmt))
        total = await self.count(db, *where, **filters)
        return items, total

    async def create(self, db: AsyncSession, *, obj_in: Dict[str, Any]) -> ModelType:
        db_obj = self.model(**obj_in)
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def update(self, db: AsyncSession, *, db_obj: ModelType, obj_in: Dict[str, Any]) -> ModelType:
        for field, value in obj_in.items():
            setattr(db_obj, field, value)
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def remove(self, db: AsyncSession, *, db_obj: ModelType) -> None:
        await db.delete(db_obj)
        await db.flush()

    async def remove_where(self, db: AsyncSession, *where, **filters) -> int:
        stmt = delete(self.model).where(*where).filter_by(**filters)
        result = await db.execute(stmt)
        return result.rowcount or 0
