"""Async engine and session factory.

``engine`` and ``AsyncSessionLocal`` are module globals so tests can swap
them for a throwaway database; runtime components fetch the factory through
:func:`get_session_factory` at call time for the same reason.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.config import get_settings


def create_db_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Build the async engine. Pool sizing applies to server databases only."""
    settings = get_settings()
    url = database_url or settings.DATABASE_URL
    options: dict = {"echo": settings.SQLALCHEMY_ECHO}
    if not url.startswith("sqlite"):
        options.update(
            pool_pre_ping=True,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )
    return create_async_engine(url, **options)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessions keep loaded attributes after commit and flush explicitly."""
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False, autoflush=False)


engine = create_db_engine()
AsyncSessionLocal = create_session_factory(engine)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return AsyncSessionLocal


async def init_db() -> None:
    """Create missing tables. Called from the app lifespan."""
    from db.base import Base
    import db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
