# app/routers/products.py

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from .. import auth, schemas
from ..database import get_db
from ..services.catalog_service import ProductService

router = APIRouter(
    prefix="/products",
    tags=["Products"],
)


def get_product_service(db: AsyncSession = Depends(get_db)) -> ProductService:
    return ProductService(db)


# Read endpoints are public and always priced. Fields that do not apply
# (final_price and applied_discounts without a discount) are left out.

@router.get("/", response_model=schemas.Page[schemas.Product], response_model_exclude_none=True)
async def read_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Optional[str] = None,
    sort_order: Literal["asc", "desc"] = "desc",
    service: ProductService = Depends(get_product_service),
):
    return await service.list_products(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)


@router.get("/search", response_model=schemas.Page[schemas.Product], response_model_exclude_none=True)
async def search_products(
    q: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: ProductService = Depends(get_product_service),
):
    """Case-insensitive match on name or description."""
    return await service.search_products(term=q, page=page, limit=limit)


@router.get("/category/{category_id}", response_model=List[schemas.Product], response_model_exclude_none=True)
async def read_products_by_category(category_id: int, service: ProductService = Depends(get_product_service)):
    return await service.get_products_by_category(category_id)


@router.get("/slug/{slug}", response_model=schemas.Product, response_model_exclude_none=True)
async def read_product_by_slug(slug: str, service: ProductService = Depends(get_product_service)):
    return await service.get_product_by_slug(slug)


@router.get("/{product_id}", response_model=schemas.Product, response_model_exclude_none=True)
async def read_product(product_id: int, service: ProductService = Depends(get_product_service)):
    return await service.get_product(product_id)


# --- Admin ---

@router.post(
    "/",
    response_model=schemas.Product,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(auth.require_admin_user)],
)
async def create_product(
    product_in: schemas.ProductCreate, service: ProductService = Depends(get_product_service)
):
    """
    Creates a product. The SKU is stored uppercased and the slug lowercased;
    both must be unique and the category must exist.
    """
    return await service.create_product(product_in)


@router.patch(
    "/{product_id}",
    response_model=schemas.Product,
    response_model_exclude_none=True,
    dependencies=[Depends(auth.require_admin_user)],
)
async def update_product(
    product_id: int,
    product_in: schemas.ProductUpdate,
    service: ProductService = Depends(get_product_service),
):
    return await service.update_product(product_id, product_in)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(auth.require_admin_user)],
)
async def delete_product(product_id: int, service: ProductService = Depends(get_product_service)):
    """Removes the product along with its items and discount links."""
    await service.delete_product(product_id)


# --- Product items ---

@router.post(
    "/{product_id}/items",
    response_model=schemas.ProductItem,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(auth.require_admin_user)],
)
async def create_product_item(
    product_id: int,
    item_in: schemas.ProductItemCreate,
    service: ProductService = Depends(get_product_service),
):
    return await service.add_item(product_id, item_in)


@router.get("/{product_id}/items", response_model=List[schemas.ProductItem])
async def read_product_items(product_id: int, service: ProductService = Depends(get_product_service)):
    return await service.list_items(product_id)
