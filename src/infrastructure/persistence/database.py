from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (AsyncEngine, AsyncSession, async_sessionmaker,
                                    create_async_engine)
from sqlalchemy.orm import DeclarativeBase

from src.infrastructure.config.settings import Settings, get_settings


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Build the async engine; pool tuning only applies to server databases."""
    engine_kwargs: dict = {"echo": settings.database_echo, "pool_pre_ping": True}
    if "postgresql" in settings.database_url:
        engine_kwargs.update(
            pool_size=20,
            max_overflow=30,
            pool_recycle=3600,
            connect_args={
                "server_settings": {"jit": "off"},
                "command_timeout": 60,
            },
        )
    elif settings.database_url.startswith("sqlite"):
        # Concurrent writers wait on the file lock instead of failing
        engine_kwargs["connect_args"] = {"timeout": 30}
    return create_async_engine(settings.database_url, **engine_kwargs)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


settings = get_settings()

# Create engine once at module level (not with lru_cache)
engine = create_engine_from_settings(settings)

AsyncSessionLocal = create_session_factory(engine)


# Modern SQLAlchemy 2.0 pattern
class Base(DeclarativeBase):
    """Base class for all database models"""

    pass


async def get_db():
    """
    Database session dependency for read operations.
    Does not commit - read-only operations don't need commits.
    Write operations should use get_db_transactional().
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_db_transactional():
    """
    Database session dependency for write operations with automatic transaction management.
    - Begins transaction automatically
    - Commits on success
    - Rolls back on exception
    - Closes session automatically
    """
    async with AsyncSessionLocal() as session:
        try:
            async with session.begin():
                yield session
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def unit_of_work(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Short-lived transactional session for one storage step.

    Used by request-scoped services that must isolate each storage call
    (a failed bookkeeping write must not poison the audit write).
    """
    async with session_factory() as session:
        async with session.begin():
            yield session
