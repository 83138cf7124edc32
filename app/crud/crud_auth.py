# app/crud/crud_auth.py
"""Token blacklist and password reset records."""

from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .base import CRUDRepository
from ..core.clock import utcnow
from ..models import PasswordReset, TokenBlacklist

token_blacklist = CRUDRepository(TokenBlacklist)
password_reset = CRUDRepository(PasswordReset)


# --- Blacklist ---

async def blacklist_token(
    db: AsyncSession, *, token: str, user_id: int, expires_at: datetime, reason: str = "logout"
) -> TokenBlacklist:
    return await token_blacklist.create(
        db,
        obj_in={
            "token": token,
            "user_id": user_id,
            "expires_at": expires_at,
            "reason": reason,
            "blacklisted_at": utcnow(),
        },
    )


async def is_token_blacklisted(db: AsyncSession, *, token: str) -> bool:
    return await token_blacklist.get_by(db, token=token) is not None


async def delete_expired_tokens(db: AsyncSession) -> int:
    return await token_blacklist.remove_where(db, TokenBlacklist.expires_at < utcnow())


async def count_expired_tokens(db: AsyncSession) -> int:
    return await token_blacklist.count(db, TokenBlacklist.expires_at < utcnow())


# --- Password resets ---

async def create_password_reset(
    db: AsyncSession,
    *,
    user_id: int,
    email: str,
    token: str,
    expires_at: datetime,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> PasswordReset:
    return await password_reset.create(
        db,
        obj_in={
            "user_id": user_id,
            "email": email,
            "token": token,
            "expires_at": expires_at,
            "ip_address": ip_address,
            "user_agent": user_agent,
        },
    )


async def get_password_reset_by_token(db: AsyncSession, *, token: str) -> Optional[PasswordReset]:
    return await password_reset.get_by(db, token=token)


async def get_latest_password_reset(db: AsyncSession, *, email: str) -> Optional[PasswordReset]:
    """Most recent unused reset request for the email."""
    resets = await password_reset.find_all(db, email=email, is_used=False)
    return resets[-1] if resets else None


async def mark_password_reset_used(db: AsyncSession, *, db_reset: PasswordReset) -> PasswordReset:
    return await password_reset.update(db, db_obj=db_reset, obj_in={"is_used": True, "used_at": utcnow()})


async def delete_expired_password_resets(db: AsyncSession) -> int:
    return await password_reset.remove_where(db, PasswordReset.expires_at < utcnow())
