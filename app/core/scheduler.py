# app/core/scheduler.py

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.core.config import settings
from app.services.otp_store import OtpStore
from app.services.token_cleanup import cleanup_expired_credentials

scheduler = AsyncIOScheduler()


def register_jobs(otp_store: OtpStore) -> None:
    scheduler.add_job(
        cleanup_expired_credentials,
        "interval",
        minutes=settings.TOKEN_CLEANUP_INTERVAL_MINUTES,
        args=[otp_store],
        id="credential_cleanup",
        replace_existing=True,
    )
