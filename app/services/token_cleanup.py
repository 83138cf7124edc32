# app/services/token_cleanup.py

import logging

from ..crud import crud_auth
from ..database import SessionLocal
from .otp_store import OtpStore

logger = logging.getLogger(__name__)


async def cleanup_expired_credentials(otp_store: OtpStore) -> None:
    """Drops expired blacklist entries, password reset records and OTPs."""
    try:
        async with SessionLocal() as db:
            tokens = await crud_auth.delete_expired_tokens(db)
            resets = await crud_auth.delete_expired_password_resets(db)
            await db.commit()
    except Exception:
        # a failed run is retried on the next tick
        logger.exception("Credential cleanup failed")
        return

    otps = otp_store.purge_expired()
    if tokens or resets or otps:
        logger.info(
            "Cleaned up %d blacklisted token(s), %d password reset(s) and %d OTP(s)", tokens, resets, otps
        )
