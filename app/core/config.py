# app/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings, loaded from environment variables (and `.env`).
    """
    # --- Application ---
    APP_ENV: str = "development"
    APP_NAME: str = "Shop Catalog API"
    APP_VERSION: str = "1.0.0"
    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    # --- Database ---
    DATABASE_URL: str = "sqlite+aiosqlite:///./shop.db"

    # --- JWT ---
    JWT_ACCESS_SECRET: str = "access-secret-that-should-be-in-env"
    JWT_REFRESH_SECRET: str = "refresh-secret-that-should-be-in-env"
    JWT_VERIFICATION_SECRET: str = "verification-secret-that-should-be-in-env"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    VERIFICATION_TOKEN_EXPIRE_MINUTES: int = 60

    # --- Password reset / OTP ---
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60
    OTP_EXPIRE_MINUTES: int = 10
    OTP_MAX_ATTEMPTS: int = 3
    BCRYPT_ROUNDS: int = 12

    # --- Email (Resend) ---
    RESEND_API_KEY: str | None = None
    EMAIL_FROM: str = "noreply@example.com"
    EMAIL_FROM_NAME: str = "Shop Catalog API"
    FRONTEND_URL: str = "http://localhost:3000"

    # --- Housekeeping ---
    ENABLE_SCHEDULER: bool = True
    TOKEN_CLEANUP_INTERVAL_MINUTES: int = 60

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


# Single settings instance used across the application.
settings = Settings()
