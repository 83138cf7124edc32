from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .base import CRUDRepository
from ..models import Category

category = CRUDRepository(Category)


async def get_by_slug(db: AsyncSession, *, slug: str) -> Optional[Category]:
    return await category.get_by(db, slug=slug.lower())


async def get_by_name(db: AsyncSession, *, name: str) -> Optional[Category]:
    return await category.get_by(db, name=name)


async def get_active(db: AsyncSession) -> List[Category]:
    return await category.find_all(db, is_active=True)
