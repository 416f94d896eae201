"""
db/session.py
-------------
Async SQLAlchemy engine and session factory.

One session is one transaction. Request handlers get theirs from get_db and
the whole workflow operation commits or rolls back as a unit. Background
work (classification, best-effort enrichment) opens its own sessions from
AsyncSessionLocal so its writes never ride on a request transaction.

PostgreSQL (asyncpg) gets a sized pool with pre-ping and recycling; SQLite
(tests, local dev) keeps SQLAlchemy's default pool.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from upkeep.core.config import settings

_pool_options = (
    {}
    if settings.DATABASE_URL.startswith("sqlite")
    else {"pool_size": 10, "max_overflow": 20, "pool_recycle": 3600}
)

# ── Engine ────────────────────────────────────────────────────────────────────
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,          # Log SQL in development
    pool_pre_ping=True,
    **_pool_options,
)

# ── Session Factory ───────────────────────────────────────────────────────────
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session: commit on success, roll back on any exception."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
