# tests/conftest.py

import os
from typing import Generator

# Settings are read when the app is imported, so the test environment has to
# be in place first.
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.pop("RESEND_API_KEY", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app import models  # noqa: F401
from app.core.config import settings
from app.database import Base
from app.main import app
from app.routers.auth import get_email_service
from app.services.email_service import EmailService
from app.services.otp_store import OtpStore

# The app talks to the file through aiosqlite; fixtures seed it synchronously.
engine = create_engine(
    settings.DATABASE_URL.replace("+aiosqlite", ""), connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


class RecordingEmailService(EmailService):
    """Keeps every outgoing email in memory. Set `fail` to simulate a delivery error."""

    def __init__(self):
        self.sent = []
        self.fail = False

    async def deliver(self, *, to: str, subject: str, html: str) -> bool:
        if self.fail:
            return False
        self.sent.append({"to": to, "subject": subject, "html": html})
        return True


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """A clean database for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def email_outbox() -> RecordingEmailService:
    return RecordingEmailService()


@pytest.fixture(scope="function")
def client(db: Session, email_outbox: RecordingEmailService) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_email_service] = lambda: email_outbox
    app.state.otp_store = OtpStore(ttl_minutes=settings.OTP_EXPIRE_MINUTES, max_attempts=settings.OTP_MAX_ATTEMPTS)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
