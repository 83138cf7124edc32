# app/services/email_service.py

import logging
from abc import ABC, abstractmethod
from urllib.parse import quote

import resend
from starlette.concurrency import run_in_threadpool

from ..core.config import settings

logger = logging.getLogger(__name__)


class EmailService(ABC):
    """
    Composes the account emails. Subclasses decide how a message is
    delivered; every send returns False instead of raising so callers can
    decide whether a failed email matters.
    """

    @abstractmethod
    async def deliver(self, *, to: str, subject: str, html: str) -> bool:
        ...

    async def send_account_verification_email(self, email: str, token: str, name: str) -> bool:
        link = f"{settings.FRONTEND_URL}/verify-email?token={quote(token)}"
        html = (
            f"<p>Hi {name},</p>"
            f"<p>Please confirm your email address by following <a href=\"{link}\">this link</a>.</p>"
            f"<p>The link expires in {settings.VERIFICATION_TOKEN_EXPIRE_MINUTES} minutes.</p>"
        )
        return await self.deliver(to=email, subject="Verify your email address", html=html)

    async def send_password_reset_email(self, email: str, otp: str, reset_token: str, name: str) -> bool:
        link = f"{settings.FRONTEND_URL}/reset-password?token={quote(reset_token)}"
        html = (
            f"<p>Hi {name},</p>"
            f"<p>Your password reset code is <strong>{otp}</strong>. "
            f"It expires in {settings.OTP_EXPIRE_MINUTES} minutes.</p>"
            f"<p>You can also reset your password <a href=\"{link}\">here</a>.</p>"
            "<p>If you did not request a reset, ignore this email.</p>"
        )
        return await self.deliver(to=email, subject="Password reset code", html=html)

    async def send_password_reset_success_email(self, email: str, name: str) -> bool:
        html = (
            f"<p>Hi {name},</p>"
            "<p>Your password was changed. If this was not you, contact support immediately.</p>"
        )
        return await self.deliver(to=email, subject="Your password was changed", html=html)


class ResendEmailService(EmailService):
    def __init__(self, api_key: str):
        resend.api_key = api_key
        self.sender = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM}>"

    async def deliver(self, *, to: str, subject: str, html: str) -> bool:
        params = {"from": self.sender, "to": [to], "subject": subject, "html": html}
        try:
            # the resend SDK is blocking
            response = await run_in_threadpool(resend.Emails.send, params)
        except Exception:
            logger.exception("Failed to send '%s' email to %s", subject, to)
            return False

        if not response or not response.get("id"):
            logger.error("Resend rejected '%s' email to %s: %s", subject, to, response)
            return False
        logger.info("Sent '%s' email to %s", subject, to)
        return True


class ConsoleEmailService(EmailService):
    """Used when no Resend key is configured: emails only go to the log."""

    async def deliver(self, *, to: str, subject: str, html: str) -> bool:
        logger.info("Email to %s (%s):\n%s", to, subject, html)
        return True


def build_email_service() -> EmailService:
    if settings.RESEND_API_KEY:
        return ResendEmailService(settings.RESEND_API_KEY)
    logger.warning("RESEND_API_KEY is not set; emails will be logged instead of sent")
    return ConsoleEmailService()
