# app/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.error_handlers import register_exception_handlers
from .core.logging import setup_logging
from .core.scheduler import register_jobs, scheduler
from .database import init_models
from .middleware.request_logging import request_logging_middleware
from .routers import auth, categories, discounts, products, users
from .services.email_service import build_email_service
from .services.otp_store import OtpStore

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s (%s)", settings.APP_NAME, settings.APP_ENV)

    if settings.APP_ENV == "development":
        await init_models()
        logger.info("Database tables created")

    if settings.ENABLE_SCHEDULER:
        register_jobs(app.state.otp_store)
        scheduler.start()
        logger.info("Housekeeping scheduler started")

    yield

    if scheduler.running:
        scheduler.shutdown(wait=False)
    logger.info("Shutting down")


app = FastAPI(
    title=settings.APP_NAME,
    description="Catalog back-end: products, categories, discounts and accounts.",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# Process-wide collaborators, looked up by the auth router's dependencies
app.state.otp_store = OtpStore(ttl_minutes=settings.OTP_EXPIRE_MINUTES, max_attempts=settings.OTP_MAX_ATTEMPTS)
app.state.email_service = build_email_service()

register_exception_handlers(app)

app.middleware("http")(request_logging_middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(categories.router)
app.include_router(products.router)
app.include_router(discounts.router)


@app.get("/", tags=["Health"])
async def read_root():
    """Liveness check."""
    return {"status": "ok", "service": settings.APP_NAME, "version": settings.APP_VERSION}
