# app/crud/crud_product_discount.py
"""
Product <-> discount links.

Only stores links: callers check that the product and discount exist
before linking. The lookups return active links only.
"""

from typing import Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from .base import CRUDRepository
from ..models import ProductDiscount

product_discount = CRUDRepository(ProductDiscount)


async def link(
    db: AsyncSession, *, product_id: int, discount_id: int, product_item_id: Optional[int] = None
) -> ProductDiscount:
    data = {"product_id": product_id, "discount_id": discount_id, "is_active": True}
    if product_item_id is not None:
        data["product_item_id"] = product_item_id
    return await product_discount.create(db, obj_in=data)


async def unlink(db: AsyncSession, *, product_id: int, discount_id: int) -> bool:
    """Deletes the first matching link; returns False when there was none."""
    existing = await get_link(db, product_id=product_id, discount_id=discount_id)
    if existing is None:
        return False
    await product_discount.remove(db, db_obj=existing)
    return True


async def get_link(db: AsyncSession, *, product_id: int, discount_id: int) -> Optional[ProductDiscount]:
    return await product_discount.get_by(db, product_id=product_id, discount_id=discount_id)


async def find_by_product(db: AsyncSession, *, product_id: int) -> List[ProductDiscount]:
    return await product_discount.find_all(db, product_id=product_id, is_active=True)


async def find_by_product_item(db: AsyncSession, *, product_item_id: int) -> List[ProductDiscount]:
    return await product_discount.find_all(db, product_item_id=product_item_id, is_active=True)


async def find_by_discount(db: AsyncSession, *, discount_id: int) -> List[ProductDiscount]:
    return await product_discount.find_all(db, discount_id=discount_id, is_active=True)


async def find_by_products(db: AsyncSession, *, product_ids: Sequence[int]) -> Dict[int, List[ProductDiscount]]:
    """Active links for many products at once, grouped by product id."""
    grouped: Dict[int, List[ProductDiscount]] = {pid: [] for pid in product_ids}
    if not product_ids:
        return grouped
    links = await product_discount.find_all(
        db, ProductDiscount.product_id.in_(list(product_ids)), is_active=True
    )
    for db_link in links:
        grouped[db_link.product_id].append(db_link)
    return grouped


async def delete_by_product(db: AsyncSession, *, product_id: int) -> int:
    return await product_discount.remove_where(db, product_id=product_id)


async def delete_by_discount(db: AsyncSession, *, discount_id: int) -> int:
    return await product_discount.remove_where(db, discount_id=discount_id)
