"""Database engine, session factory and transaction helpers."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from functools import wraps
from typing import Callable, ParamSpec, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

engine = create_async_engine(
    str(settings.database_url),
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    echo=settings.database_echo,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions.

    Usage:
        @router.get("/categories")
        async def list_categories(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Context manager for database sessions outside of FastAPI (scripts)."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


P = ParamSpec("P")
R = TypeVar("R")


def transactional(func: Callable[P, R]) -> Callable[P, R]:
    """Decorator for automatic transaction management.

    Commits on success, rolls back on exception. The session is taken from
    an AsyncSession positional argument, a ``db`` keyword, or ``self.db``
    for service methods.
    """

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        db: AsyncSession | None = None

        for arg in args:
            if isinstance(arg, AsyncSession):
                db = arg
                break

        if db is None:
            db = kwargs.get("db")

        if db is None and args:
            owner = args[0]
            if hasattr(owner, "db"):
                db = owner.db

        if db is None:
            raise ValueError("No AsyncSession found in function arguments")

        try:
            result = await func(*args, **kwargs)
            await db.commit()
            return result
        except Exception:
            await db.rollback()
            raise

    return wrapper  # type: ignore


async def check_db_connection() -> bool:
    """Check database connectivity for health checks."""
    try:
        async with async_session_factory() as session:
            await session.execute(text("SELECT 1"))
            return True
    except (SQLAlchemyError, OSError) as e:
        logger.warning("database_ping_failed", error=str(e))
        return False


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
