from typing import List

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from . import models
from .core import security
from .core.exceptions import AuthenticationError, PermissionDenied
from .crud import crud_auth, crud_user
from .database import get_db
from .models import UserRole

# Bearer tokens are issued by /auth/login; /auth/token serves the docs' login form
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


# --- Dependencies ---

async def get_current_user(
    token: str = Depends(oauth2_scheme), db: AsyncSession = Depends(get_db)
) -> models.User:
    """
    Resolves the bearer token to an active user.
    Logged-out (blacklisted) tokens and non-access tokens are rejected.
    """
    payload = security.decode_token(token, security.ACCESS)
    if await crud_auth.is_token_blacklisted(db, token=token):
        raise AuthenticationError("Token has been revoked")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Could not validate credentials")

    user = await crud_user.user.get(db, user_id)
    if user is None:
        raise AuthenticationError("Could not validate credentials")
    if not user.is_active:
        raise AuthenticationError("User account is inactive")
    return user


def require_role(required_roles: List[UserRole]):
    """
    Builds a dependency that lets through only users holding one of
    `required_roles`.
    """
    async def role_checker(current_user: models.User = Depends(get_current_user)) -> models.User:
        if current_user.role not in required_roles:
            raise PermissionDenied(
                f"User does not have the required privileges. "
                f"Allowed roles: {[role.value for role in required_roles]}"
            )
        return current_user
    return role_checker


require_admin_user = require_role([UserRole.ADMIN])
