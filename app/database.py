from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from .core.config import settings

# Base class for the ORM models
Base = declarative_base()

engine_kwargs = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # one connection per session; aiosqlite connections are not shared across event loops
    engine_kwargs = {"connect_args": {"check_same_thread": False}, "poolclass": NullPool}
else:
    engine_kwargs = {"pool_pre_ping": True}

engine = create_async_engine(settings.DATABASE_URL, echo=False, **engine_kwargs)

# Session factory, one session per request
SessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        yield session


async def init_models():
    """Creates missing tables. Only used in development."""
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
