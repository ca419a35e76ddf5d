"""Pytest configuration and fixtures.

Tests run without PostgreSQL or Redis: services and routes get an
``AsyncMock`` session whose ``execute`` results are scripted per test.
"""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock
from uuid import UUID

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.core.database import get_db
from app.core.dependencies import get_public_tenant_id
from app.core.permissions import RoleName
from app.main import create_app
from app.modules.auth.models import User
from tests.fixtures.auth import TEST_TENANT_ID, make_user
from tests.fixtures.db import make_mock_db


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def mock_db() -> AsyncMock:
    """Mock database session."""
    return make_mock_db()


@pytest.fixture
def tenant_id() -> UUID:
    return TEST_TENANT_ID


# ============================================================================
# Principal Fixtures
# ============================================================================


@pytest.fixture
def admin_user() -> User:
    return make_user(RoleName.ADMIN)


@pytest.fixture
def editor_user() -> User:
    return make_user(RoleName.EDITOR)


@pytest.fixture
def reader_user() -> User:
    return make_user(RoleName.USER)


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def app(mock_db: AsyncMock) -> FastAPI:
    """Create test FastAPI application backed by the mock session."""
    application = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncMock, None]:
        yield mock_db

    async def override_public_tenant_id() -> UUID:
        return TEST_TENANT_ID

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_public_tenant_id] = override_public_tenant_id

    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
