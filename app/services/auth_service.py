# app/services/auth_service.py

import logging
import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from .. import models, schemas
from ..core import security
from ..core.clock import as_naive_utc, utcnow
from ..core.config import settings
from ..core.exceptions import AppError, AuthenticationError, ConflictError, NotFoundError, ValidationFailed
from ..crud import crud_auth, crud_user
from ..validation import validate_password, validate_registration
from .email_service import EmailService
from .otp_store import OtpStore

logger = logging.getLogger(__name__)

RESET_REQUESTED = "If an account with this email exists, a password reset email has been sent."


class AuthService:
    """Registration, sessions, email verification and password reset."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        email_service: Optional[EmailService] = None,
        otp_store: Optional[OtpStore] = None,
    ):
        self.db = db
        self.email_service = email_service
        self.otp_store = otp_store

    # --- Tokens ---

    @staticmethod
    def _issue_tokens(user: models.User) -> tuple[str, str]:
        claims = {"email": user.email, "role": user.role.value}
        access_token = security.create_token(security.ACCESS, str(user.id), claims)
        refresh_token = security.create_token(security.REFRESH, str(user.id), claims)
        return access_token, refresh_token

    @staticmethod
    def _auth_response(user: models.User, access_token: str, refresh_token: str) -> schemas.AuthResponse:
        return schemas.AuthResponse(
            user=schemas.User.model_validate(user),
            access_token=access_token,
            refresh_token=refresh_token,
        )

    async def _user_from_payload(self, payload: dict) -> Optional[models.User]:
        try:
            user_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            return None
        return await crud_user.user.get(self.db, user_id)

    # --- Sessions ---

    async def register(self, data: schemas.RegisterRequest) -> schemas.AuthResponse:
        errors = validate_registration(
            email=data.email, password=data.password, first_name=data.first_name, last_name=data.last_name
        )
        if errors:
            raise ValidationFailed(errors)

        email = data.email.strip().lower()
        if await crud_user.get_by_email(self.db, email=email):
            raise ConflictError("User with this email already exists")

        hashed_password = await run_in_threadpool(security.hash_password, data.password)
        user = await crud_user.user.create(
            self.db,
            obj_in={
                "email": email,
                "hashed_password": hashed_password,
                "first_name": data.first_name.strip(),
                "last_name": data.last_name.strip(),
                "role": models.UserRole.USER,
            },
        )
        access_token, refresh_token = self._issue_tokens(user)
        user = await crud_user.set_refresh_token(self.db, db_user=user, refresh_token=refresh_token)
        await self.db.commit()
        logger.info("Registered user %s (%s)", user.id, user.email)

        if self.email_service is not None:
            verification_token = security.create_token(security.VERIFICATION, str(user.id))
            sent = await self.email_service.send_account_verification_email(
                user.email, verification_token, user.full_name
            )
            if not sent:
                logger.warning("Verification email for user %s could not be sent", user.id)

        return self._auth_response(user, access_token, refresh_token)

    async def authenticate(self, email: str, password: str) -> models.User:
        user = await crud_user.get_by_email(self.db, email=email)
        if user is None:
            raise AuthenticationError("Invalid email or password")
        if not await run_in_threadpool(security.verify_password, password, user.hashed_password):
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("User account is inactive")
        return user

    async def login(self, email: str, password: str) -> schemas.AuthResponse:
        user = await self.authenticate(email, password)
        access_token, refresh_token = self._issue_tokens(user)
        user = await crud_user.record_login(self.db, db_user=user, refresh_token=refresh_token)
        await self.db.commit()
        logger.info("User %s logged in", user.id)
        return self._auth_response(user, access_token, refresh_token)

    async def refresh(self, refresh_token: str) -> schemas.AuthResponse:
        """Exchanges the stored refresh token for a new token pair."""
        payload = security.decode_token(refresh_token, security.REFRESH)
        user = await self._user_from_payload(payload)
        if user is None or not user.is_active:
            raise AuthenticationError("Invalid refresh token or user inactive")
        if not user.refresh_token or not secrets.compare_digest(user.refresh_token, refresh_token):
            raise AuthenticationError("Invalid refresh token")

        access_token, new_refresh_token = self._issue_tokens(user)
        user = await crud_user.set_refresh_token(self.db, db_user=user, refresh_token=new_refresh_token)
        await self.db.commit()
        return self._auth_response(user, access_token, new_refresh_token)

    async def logout(self, user: models.User, access_token: str) -> schemas.MessageResponse:
        payload = security.decode_token(access_token, security.ACCESS)
        expires_at = as_naive_utc(security.token_expiry(payload))

        if not await crud_auth.is_token_blacklisted(self.db, token=access_token):
            await crud_auth.blacklist_token(
                self.db, token=access_token, user_id=user.id, expires_at=expires_at, reason="logout"
            )
        await crud_user.set_refresh_token(self.db, db_user=user, refresh_token=None)
        await self.db.commit()
        logger.info("User %s logged out", user.id)
        return schemas.MessageResponse(message="Successfully logged out", success=True)

    # --- Email verification ---

    async def send_verification_email(self, email: str) -> schemas.MessageResponse:
        user = await crud_user.get_by_email(self.db, email=email)
        if user is None:
            raise NotFoundError("User not found")
        if user.email_verified:
            raise AppError("Email is already verified")

        token = security.create_token(security.VERIFICATION, str(user.id))
        if not await self.email_service.send_account_verification_email(user.email, token, user.full_name):
            raise AppError("Failed to send verification email. Please try again later.")
        return schemas.MessageResponse(message="Verification email sent successfully.", success=True)

    async def verify_email(self, token: str) -> schemas.AuthResponse:
        try:
            payload = security.decode_token(token, security.VERIFICATION)
        except AuthenticationError:
            raise AppError("Invalid or expired verification token")

        user = await self._user_from_payload(payload)
        if user is None:
            raise AppError("Invalid or expired verification token")
        if user.email_verified:
            raise AppError("Email is already verified")

        access_token, refresh_token = self._issue_tokens(user)
        user = await crud_user.user.update(
            self.db, db_obj=user, obj_in={"email_verified": True, "refresh_token": refresh_token}
        )
        await self.db.commit()
        logger.info("User %s verified their email", user.id)
        return self._auth_response(user, access_token, refresh_token)

    # --- Password reset ---

    async def request_password_reset(
        self, email: str, *, ip_address: Optional[str] = None, user_agent: Optional[str] = None
    ) -> schemas.MessageResponse:
        user = await crud_user.get_by_email(self.db, email=email)
        if user is None:
            # same answer as for a real account
            logger.warning("Password reset requested for unknown email %s", email)
            return schemas.MessageResponse(message=RESET_REQUESTED, success=True)

        otp = self.otp_store.generate(user.email)
        reset_token = secrets.token_hex(32)
        await crud_auth.create_password_reset(
            self.db,
            user_id=user.id,
            email=user.email,
            token=reset_token,
            expires_at=utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        await self.db.commit()

        if not await self.email_service.send_password_reset_email(user.email, otp, reset_token, user.full_name):
            logger.error("Failed to send password reset email to %s", user.email)
            return schemas.MessageResponse(
                message="Failed to send password reset email. Please try again later.", success=False
            )

        logger.info("Password reset requested for user %s", user.id)
        return schemas.MessageResponse(message="Password reset email sent successfully.", success=True)

    @staticmethod
    def _reset_problem(db_reset: Optional[models.PasswordReset]) -> Optional[str]:
        if db_reset is None:
            return "Invalid or expired reset token."
        if db_reset.is_used:
            return "This reset token has already been used."
        if db_reset.expires_at < utcnow():
            return "Reset token has expired."
        return None

    async def verify_otp(self, email: str, otp: str) -> schemas.OtpVerificationResponse:
        result = self.otp_store.validate(email, otp)
        if not result.is_valid:
            return schemas.OtpVerificationResponse(message=result.message, success=False)

        db_reset = await crud_auth.get_latest_password_reset(self.db, email=email.strip().lower())
        if db_reset is None:
            return schemas.OtpVerificationResponse(
                message="No password reset request found for this email.", success=False
            )
        problem = self._reset_problem(db_reset)
        if problem:
            return schemas.OtpVerificationResponse(message=problem, success=False)

        logger.info("OTP verified for password reset of %s", email)
        return schemas.OtpVerificationResponse(
            message="OTP verified successfully.",
            success=True,
            reset_token=db_reset.token,
            expires_at=db_reset.expires_at,
        )

    async def reset_password(self, data: schemas.ResetPasswordRequest) -> schemas.MessageResponse:
        errors = validate_password(data.password, data.confirm_password)
        if errors:
            return schemas.MessageResponse(message=errors[0].message, success=False)

        db_reset = await crud_auth.get_password_reset_by_token(self.db, token=data.reset_token)
        problem = self._reset_problem(db_reset)
        if problem:
            return schemas.MessageResponse(message=problem, success=False)

        user = await crud_user.user.get(self.db, db_reset.user_id)
        if user is None:
            return schemas.MessageResponse(message="User not found.", success=False)

        hashed_password = await run_in_threadpool(security.hash_password, data.password)
        await crud_user.user.update(self.db, db_obj=user, obj_in={"hashed_password": hashed_password})
        await crud_auth.mark_password_reset_used(self.db, db_reset=db_reset)
        await self.db.commit()
        self.otp_store.invalidate(db_reset.email)

        if not await self.email_service.send_password_reset_success_email(db_reset.email, user.full_name):
            logger.warning("Failed to send password reset confirmation to %s", db_reset.email)

        logger.info("Password reset for user %s", user.id)
        return schemas.MessageResponse(
            message="Password reset successfully. You can now log in with your new password.", success=True
        )

    async def validate_reset_token(self, reset_token: str) -> schemas.MessageResponse:
        db_reset = await crud_auth.get_password_reset_by_token(self.db, token=reset_token)
        problem = self._reset_problem(db_reset)
        if problem:
            return schemas.MessageResponse(message=problem, success=False)
        return schemas.MessageResponse(message="Reset token is valid.", success=True)

    # --- Blacklist housekeeping ---

    async def cleanup_tokens(self) -> int:
        deleted = await crud_auth.delete_expired_tokens(self.db)
        await self.db.commit()
        logger.info("Removed %d expired token(s) from the blacklist", deleted)
        return deleted

    async def blacklist_stats(self) -> schemas.BlacklistStats:
        total = await crud_auth.token_blacklist.count(self.db)
        expired = await crud_auth.count_expired_tokens(self.db)
        return schemas.BlacklistStats(total_tokens=total, expired_tokens=expired, active_tokens=total - expired)
