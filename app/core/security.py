# app/core/security.py

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from app.core.config import settings
from app.core.exceptions import AuthenticationError

ACCESS = "access"
REFRESH = "refresh"
VERIFICATION = "verification"

_SECRETS = {
    ACCESS: lambda: settings.JWT_ACCESS_SECRET,
    REFRESH: lambda: settings.JWT_REFRESH_SECRET,
    VERIFICATION: lambda: settings.JWT_VERIFICATION_SECRET,
}


# =====================================================
# PASSWORD HASHING
# =====================================================
def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed hash or over-long password
        return False


# =====================================================
# TOKENS
# =====================================================
def _default_lifetime(token_type: str) -> timedelta:
    if token_type == REFRESH:
        return timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    if token_type == VERIFICATION:
        return timedelta(minutes=settings.VERIFICATION_TOKEN_EXPIRE_MINUTES)
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def create_token(
    token_type: str,
    subject: str,
    claims: dict[str, Any] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Signs a JWT of the given type for `subject` (the user id)."""
    now = datetime.now(timezone.utc)
    payload = dict(claims or {})
    payload.update(
        {
            "sub": subject,
            "type": token_type,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + (expires_delta or _default_lifetime(token_type)),
        }
    )
    return jwt.encode(payload, _SECRETS[token_type](), algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, token_type: str) -> dict[str, Any]:
    """
    Verifies signature, expiry and token type.

    Raises AuthenticationError for any token that cannot be trusted.
    """
    try:
        payload = jwt.decode(token, _SECRETS[token_type](), algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except JWTError:
        raise AuthenticationError("Invalid token")

    if payload.get("type") != token_type or payload.get("sub") is None:
        raise AuthenticationError("Invalid token type")
    return payload


def token_expiry(payload: dict[str, Any]) -> datetime:
    return datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
