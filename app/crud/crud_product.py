# app/crud/crud_product.py

from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from .base import CRUDRepository
from ..models import Product, ProductItem

product = CRUDRepository(Product)
product_item = CRUDRepository(ProductItem)


async def get_by_slug(db: AsyncSession, *, slug: str) -> Optional[Product]:
    return await product.get_by(db, slug=slug.strip().lower())


async def get_by_sku(db: AsyncSession, *, sku: str) -> Optional[Product]:
    return await product.get_by(db, sku=sku.strip().upper())


async def get_by_category(db: AsyncSession, *, category_id: int) -> List[Product]:
    return await product.find_all(db, category_id=category_id, is_active=True)


async def search(
    db: AsyncSession, *, term: str, page: int, limit: int
) -> Tuple[List[Product], int]:
    """Case-insensitive substring match on name or description, active products only."""
    escaped = term.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    return await product.paginate(
        db,
        or_(Product.name.ilike(pattern, escape="\\"), Product.description.ilike(pattern, escape="\\")),
        page=page,
        limit=limit,
        sort_by="name",
        sort_order="asc",
        is_active=True,
    )


# --- Product items (variants) ---

async def get_item_by_sku(db: AsyncSession, *, sku: str) -> Optional[ProductItem]:
    return await product_item.get_by(db, sku=sku.strip().upper())


async def get_items(db: AsyncSession, *, product_id: int) -> List[ProductItem]:
    return await product_item.find_all(db, product_id=product_id)


async def delete_items(db: AsyncSession, *, product_id: int) -> int:
    return await product_item.remove_where(db, product_id=product_id)
