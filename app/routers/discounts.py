# app/routers/discounts.py

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from .. import auth, schemas
from ..database import get_db
from ..services.discount_service import DiscountService

# Every route requires a signed-in user; all but /active also require an admin.
router = APIRouter(
    prefix="/discounts",
    tags=["Discounts"],
    dependencies=[Depends(auth.get_current_user)],
)

admin_only = [Depends(auth.require_admin_user)]


def get_discount_service(db: AsyncSession = Depends(get_db)) -> DiscountService:
    return DiscountService(db)


@router.post("/", response_model=schemas.Discount, status_code=status.HTTP_201_CREATED, dependencies=admin_only)
async def create_discount(
    discount_in: schemas.DiscountCreate, service: DiscountService = Depends(get_discount_service)
):
    """
    Creates a discount.

    - **code**: optional, stored uppercased, must be unique.
    - **value**: a percentage (0-100) or a fixed amount, per `discount_type`.
    - **start_date / end_date**: the window must not be empty.
    """
    return await service.create_discount(discount_in)


@router.get("/", response_model=schemas.Page[schemas.Discount], dependencies=admin_only)
async def read_discounts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Optional[str] = None,
    sort_order: Literal["asc", "desc"] = "desc",
    service: DiscountService = Depends(get_discount_service),
):
    return await service.list_discounts(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)


@router.get("/active", response_model=List[schemas.Discount])
async def read_active_discounts(service: DiscountService = Depends(get_discount_service)):
    """Discounts currently inside their date window. Open to any signed-in user."""
    return await service.list_active()


@router.get("/code/{code}", response_model=schemas.Discount, dependencies=admin_only)
async def read_discount_by_code(code: str, service: DiscountService = Depends(get_discount_service)):
    return await service.get_by_code(code)


# --- Links ---

@router.post(
    "/link",
    response_model=schemas.ProductDiscountLink,
    status_code=status.HTTP_201_CREATED,
    dependencies=admin_only,
)
async def link_discount(
    link_in: schemas.LinkDiscountRequest, service: DiscountService = Depends(get_discount_service)
):
    """Attaches a discount to a product, optionally scoped to one of its items."""
    return await service.link_to_product(link_in)


@router.delete(
    "/link/{product_id}/{discount_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=admin_only,
)
async def unlink_discount(
    product_id: int, discount_id: int, service: DiscountService = Depends(get_discount_service)
):
    await service.unlink_from_product(product_id, discount_id)


@router.get(
    "/links/product-item/{product_item_id}",
    response_model=List[schemas.ProductDiscountLink],
    dependencies=admin_only,
)
async def read_product_item_links(
    product_item_id: int, service: DiscountService = Depends(get_discount_service)
):
    return await service.get_links_for_product_item(product_item_id)


# --- Single discount ---

@router.get("/{discount_id}", response_model=schemas.Discount, dependencies=admin_only)
async def read_discount(discount_id: int, service: DiscountService = Depends(get_discount_service)):
    return await service.get_discount(discount_id)


@router.get("/{discount_id}/products", response_model=List[schemas.ProductDiscountLink], dependencies=admin_only)
async def read_discount_links(discount_id: int, service: DiscountService = Depends(get_discount_service)):
    return await service.get_links_for_discount(discount_id)


@router.patch("/{discount_id}", response_model=schemas.Discount, dependencies=admin_only)
async def update_discount(
    discount_id: int,
    discount_in: schemas.DiscountUpdate,
    service: DiscountService = Depends(get_discount_service),
):
    """Partial update; the merged discount is validated as a whole."""
    return await service.update_discount(discount_id, discount_in)


@router.delete("/{discount_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=admin_only)
async def delete_discount(discount_id: int, service: DiscountService = Depends(get_discount_service)):
    """Deletes the discount and its product links."""
    await service.delete_discount(discount_id)
