# app/crud/crud_discount.py

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .base import CRUDRepository
from ..core.clock import utcnow
from ..models import Discount

discount = CRUDRepository(Discount)


async def get_by_code(db: AsyncSession, *, code: str) -> Optional[Discount]:
    """Codes are stored uppercased."""
    return await discount.get_by(db, code=code.strip().upper())


async def get_active(db: AsyncSession) -> List[Discount]:
    """
    Discounts flagged active whose date window contains the current time.
    Usage caps are not considered here.
    """
    now = utcnow()
    return await discount.find_all(
        db,
        Discount.start_date <= now,
        Discount.end_date >= now,
        is_active=True,
    )
