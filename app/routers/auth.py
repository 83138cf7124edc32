# app/routers/auth.py

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from .. import auth, models, schemas
from ..database import get_db
from ..services.auth_service import AuthService
from ..services.email_service import EmailService
from ..services.otp_store import OtpStore

router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def get_otp_store(request: Request) -> OtpStore:
    return request.app.state.otp_store


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    otp_store: OtpStore = Depends(get_otp_store),
) -> AuthService:
    return AuthService(db, email_service=email_service, otp_store=otp_store)


# --- Sessions ---

@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(data: schemas.RegisterRequest, service: AuthService = Depends(get_auth_service)):
    """Creates a user account, signs it in and sends the email verification link."""
    return await service.register(data)


@router.post("/login", response_model=schemas.AuthResponse)
async def login(data: schemas.LoginRequest, service: AuthService = Depends(get_auth_service)):
    return await service.login(data.email, data.password)


@router.post("/token", response_model=schemas.Token)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    service: AuthService = Depends(get_auth_service),
):
    """OAuth2 password flow used by the interactive docs. `username` is the email."""
    result = await service.login(form_data.username, form_data.password)
    return {"access_token": result.access_token, "token_type": "bearer"}


@router.post("/refresh", response_model=schemas.AuthResponse)
async def refresh_tokens(data: schemas.RefreshRequest, service: AuthService = Depends(get_auth_service)):
    """Rotates the token pair. Only the most recently issued refresh token is accepted."""
    return await service.refresh(data.refresh_token)


@router.post("/logout", response_model=schemas.MessageResponse)
async def logout(
    token: str = Depends(auth.oauth2_scheme),
    current_user: models.User = Depends(auth.get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    return await service.logout(current_user, token)


@router.get("/me", response_model=schemas.User)
async def read_me(current_user: models.User = Depends(auth.get_current_user)):
    return current_user


# --- Email verification ---

@router.post("/send-verification-email", response_model=schemas.MessageResponse)
async def send_verification_email(
    data: schemas.EmailRequest, service: AuthService = Depends(get_auth_service)
):
    return await service.send_verification_email(data.email)


@router.get("/verify-email", response_model=schemas.AuthResponse)
async def verify_email(token: str = Query(...), service: AuthService = Depends(get_auth_service)):
    return await service.verify_email(token)


# --- Password reset ---
# These report problems as {"success": false, "message": ...} instead of errors.

@router.post("/request-password-reset", response_model=schemas.MessageResponse)
async def request_password_reset(
    data: schemas.EmailRequest, request: Request, service: AuthService = Depends(get_auth_service)
):
    return await service.request_password_reset(
        data.email,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


@router.post("/verify-otp", response_model=schemas.OtpVerificationResponse, response_model_exclude_none=True)
async def verify_otp(data: schemas.VerifyOtpRequest, service: AuthService = Depends(get_auth_service)):
    return await service.verify_otp(data.email, data.otp)


@router.post("/reset-password", response_model=schemas.MessageResponse)
async def reset_password(data: schemas.ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    return await service.reset_password(data)


@router.post("/validate-reset-token", response_model=schemas.MessageResponse)
async def validate_reset_token(
    data: schemas.ValidateResetTokenRequest, service: AuthService = Depends(get_auth_service)
):
    return await service.validate_reset_token(data.reset_token)


# --- Admin ---

@router.post(
    "/admin/cleanup-tokens",
    response_model=schemas.CleanupResult,
    dependencies=[Depends(auth.require_admin_user)],
)
async def cleanup_tokens(service: AuthService = Depends(get_auth_service)):
    """Removes blacklist entries whose tokens have expired anyway."""
    return {"deleted": await service.cleanup_tokens()}


@router.get(
    "/admin/blacklist-stats",
    response_model=schemas.BlacklistStats,
    dependencies=[Depends(auth.require_admin_user)],
)
async def blacklist_stats(service: AuthService = Depends(get_auth_service)):
    return await service.blacklist_stats()
