# app/crud/crud_user.py

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .base import CRUDRepository
from ..core.clock import utcnow
from ..models import User

user = CRUDRepository(User, unsortable=("hashed_password", "refresh_token"))


async def get_by_email(db: AsyncSession, *, email: str) -> Optional[User]:
    """Emails are stored lowercased."""
    return await user.get_by(db, email=email.strip().lower())


async def set_refresh_token(db: AsyncSession, *, db_user: User, refresh_token: Optional[str]) -> User:
    return await user.update(db, db_obj=db_user, obj_in={"refresh_token": refresh_token})


async def record_login(db: AsyncSession, *, db_user: User, refresh_token: str) -> User:
    return await user.update(
        db, db_obj=db_user, obj_in={"refresh_token": refresh_token, "last_login_at": utcnow()}
    )
