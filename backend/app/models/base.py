"""
Database engine, session factories and declarative base.

FastAPI endpoints use the async engine (``get_db`` yields an AsyncSession).
The sync engine and ``SessionLocal`` are kept for seeding scripts and
one-off maintenance jobs that run outside the event loop.
"""

import os
from typing import AsyncGenerator

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

load_dotenv()

_is_production = os.getenv("ENV", "development").lower() == "production"
DATABASE_URL = os.getenv("DATABASE_URL", "")
if not DATABASE_URL:
    if _is_production:
        raise RuntimeError("DATABASE_URL must be set in production.")
    DATABASE_URL = "sqlite:///./placement_dev.db"

DEBUG = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")

POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
POOL_MAX_OVERFLOW = int(os.getenv("DB_POOL_MAX_OVERFLOW", "20"))
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "3600"))

_is_sqlite = DATABASE_URL.startswith("sqlite")

# SQLite does not accept pool sizing arguments
_pool_kwargs = (
    {}
    if _is_sqlite
    else {
        "pool_size": POOL_SIZE,
        "max_overflow": POOL_MAX_OVERFLOW,
        "pool_recycle": POOL_RECYCLE,
        "pool_pre_ping": True,
    }
)

engine = create_engine(DATABASE_URL, echo=DEBUG, **_pool_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Async URL is derived by prefix replacement so hostnames are left untouched
_SYNC_PREFIX_MAP = {
    "postgresql+psycopg2://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}
ASYNC_DATABASE_URL = ""
for _sync_prefix, _async_prefix in _SYNC_PREFIX_MAP.items():
    if DATABASE_URL.startswith(_sync_prefix):
        ASYNC_DATABASE_URL = _async_prefix + DATABASE_URL[len(_sync_prefix) :]
        break
if not ASYNC_DATABASE_URL:
    raise ValueError(
        f"No async driver mapping for DATABASE_URL prefix. "
        f"Supported prefixes: {list(_SYNC_PREFIX_MAP.keys())}"
    )

async_engine = create_async_engine(ASYNC_DATABASE_URL, echo=DEBUG, **_pool_kwargs)

AsyncSessionLocal = async_sessionmaker(
    async_engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    """Declarative base shared by all placement engine models."""

    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Async dependency yielding a database session.

    The session is rolled back if the request handler raises, so a failed
    operation never leaves a half-applied transaction behind.
    """
    async with AsyncSessionLocal() as db:
        try:
            yield db
        except Exception:
            await db.rollback()
            raise
