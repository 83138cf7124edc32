# app/routers/users.py

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from .. import auth, schemas
from ..database import get_db
from ..services.user_service import UserService

router = APIRouter(
    prefix="/users",
    tags=["Users (Admin)"],
    dependencies=[Depends(auth.require_admin_user)],
)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("/", response_model=schemas.Page[schemas.User])
async def read_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Optional[str] = None,
    sort_order: Literal["asc", "desc"] = "desc",
    service: UserService = Depends(get_user_service),
):
    return await service.list_users(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)


@router.get("/{user_id}", response_model=schemas.User)
async def read_user(user_id: int, service: UserService = Depends(get_user_service)):
    return await service.get_user(user_id)


@router.patch("/{user_id}", response_model=schemas.User)
async def update_user(
    user_id: int, user_in: schemas.UserUpdate, service: UserService = Depends(get_user_service)
):
    """Changes names, role or the active flag. Deactivated users can no longer sign in."""
    return await service.update_user(user_id, user_in)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: int, service: UserService = Depends(get_user_service)):
    await service.delete_user(user_id)
