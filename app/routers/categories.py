# app/routers/categories.py

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from .. import auth, schemas
from ..database import get_db
from ..services.category_service import CategoryService

router = APIRouter(
    prefix="/categories",
    tags=["Categories"],
)


def get_category_service(db: AsyncSession = Depends(get_db)) -> CategoryService:
    return CategoryService(db)


@router.get("/", response_model=schemas.Page[schemas.Category])
async def read_categories(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Optional[str] = None,
    sort_order: Literal["asc", "desc"] = "desc",
    service: CategoryService = Depends(get_category_service),
):
    return await service.list_categories(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)


@router.get("/active", response_model=List[schemas.Category])
async def read_active_categories(service: CategoryService = Depends(get_category_service)):
    return await service.list_active()


@router.get("/slug/{slug}", response_model=schemas.Category)
async def read_category_by_slug(slug: str, service: CategoryService = Depends(get_category_service)):
    return await service.get_by_slug(slug)


@router.get("/{category_id}", response_model=schemas.Category)
async def read_category(category_id: int, service: CategoryService = Depends(get_category_service)):
    return await service.get_category(category_id)


@router.post(
    "/",
    response_model=schemas.Category,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(auth.require_admin_user)],
)
async def create_category(
    category_in: schemas.CategoryCreate, service: CategoryService = Depends(get_category_service)
):
    return await service.create_category(category_in)


@router.patch(
    "/{category_id}",
    response_model=schemas.Category,
    dependencies=[Depends(auth.require_admin_user)],
)
async def update_category(
    category_id: int,
    category_in: schemas.CategoryUpdate,
    service: CategoryService = Depends(get_category_service),
):
    return await service.update_category(category_id, category_in)


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(auth.require_admin_user)],
)
async def delete_category(category_id: int, service: CategoryService = Depends(get_category_service)):
    """Fails with 409 while products still belong to the category."""
    await service.delete_category(category_id)
