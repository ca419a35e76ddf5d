"""PostgreSQL fixtures for integration tests.

Every test runs inside one outer transaction that is rolled back at the end;
service commits only release savepoints. The tests are skipped when the
database at ``TEST_DATABASE_URL`` (default: ``settings.database_url``) cannot
be reached.
"""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from app.config import settings
from app.core.base_model import Base
from app.core.security import hash_password
from app.modules.auth.models import Role, User
from app.modules.catalog.models import Category, Subcategory  # noqa: F401
from app.modules.content.models import Comment, Comparison, Review, StaticPage, TechNews  # noqa: F401
from app.modules.tenants.models import Tenant


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[Any, None]:
    url = os.environ.get("TEST_DATABASE_URL", str(settings.database_url))
    engine = create_async_engine(url, echo=False, poolclass=NullPool)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (OSError, SQLAlchemyError) as e:
        await engine.dispose()
        pytest.skip(f"PostgreSQL is not reachable: {e}")

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: Any) -> AsyncGenerator[AsyncSession, None]:
    """Session bound to a connection whose transaction is always rolled back."""
    async with db_engine.connect() as conn:
        outer = await conn.begin()
        # Tables already created by migrations are left as they are
        await conn.run_sync(Base.metadata.create_all)

        session = AsyncSession(
            bind=conn,
            expire_on_commit=False,
            join_transaction_mode="create_savepoint",
        )
        try:
            yield session
        finally:
            await session.close()
            await outer.rollback()


@pytest_asyncio.fixture
async def tenant(db_session: AsyncSession) -> Tenant:
    suffix = uuid4().hex[:8]
    tenant = Tenant(
        id=uuid4(),
        name="Integration Tenant",
        slug=f"it-{suffix}",
        domain=f"it-{suffix}.example.com",
        is_active=True,
    )
    db_session.add(tenant)
    # Committed rows survive a rollback inside the service under test
    await db_session.commit()
    db_session.expunge(tenant)
    return tenant


@pytest.fixture
def add_user(db_session: AsyncSession, tenant: Tenant) -> Callable[..., Awaitable[User]]:
    """Insert an active user of ``tenant``, optionally holding ``role``."""

    async def _add(role: Role | None = None) -> User:
        suffix = uuid4().hex[:8]
        user = User(
            id=uuid4(),
            tenant_id=tenant.id,
            email=f"user-{suffix}@example.com",
            username=f"user_{suffix}",
            password_hash=hash_password("integration-pass-1"),
            first_name="Test",
            last_name="User",
            role_id=role.id if role else None,
            is_active=True,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _add
