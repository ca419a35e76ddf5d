"""Common FastAPI dependencies."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.database import get_db
from app.core.exceptions import (
    InvalidTenantIdError,
    TenantHeaderRequiredError,
    TenantNotFoundError,
    TenantRequiredError,
)
from app.core.tenant import get_default_tenant_id, validate_tenant_exists

# Type alias for database dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]


class PaginationParams:
    """Common pagination parameters."""

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="Page number"),
        page_size: int = Query(default=20, ge=1, le=100, description="Items per page"),
    ) -> None:
        self.page = page
        self.page_size = page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


Pagination = Annotated[PaginationParams, Depends()]


async def get_public_tenant_id(
    tenant_id: UUID | None = Query(
        default=None,
        description="Tenant ID (ignored in single-tenant mode, required otherwise)",
    ),
    db: AsyncSession = Depends(get_db),
) -> UUID:
    """Tenant for anonymous public endpoints."""
    if settings.single_tenant_mode:
        return await get_default_tenant_id(db)

    if tenant_id is None:
        raise TenantRequiredError()
    return tenant_id


PublicTenantId = Annotated[UUID, Depends(get_public_tenant_id)]


async def get_tenant_from_header(
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-ID"),
    db: AsyncSession = Depends(get_db),
) -> UUID:
    """Tenant for login and registration, taken from the X-Tenant-ID header.

    Raises:
        DefaultTenantConfigError: If the default tenant is missing (single-tenant mode)
        TenantHeaderRequiredError: If header is missing (multi-tenant mode)
        InvalidTenantIdError: If header value is not a valid UUID
        TenantNotFoundError: If tenant doesn't exist or is inactive
    """
    if settings.single_tenant_mode:
        return await get_default_tenant_id(db)

    if not x_tenant_id:
        raise TenantHeaderRequiredError()

    try:
        tenant_id = UUID(x_tenant_id)
    except ValueError:
        raise InvalidTenantIdError(x_tenant_id)

    if not await validate_tenant_exists(db, tenant_id):
        raise TenantNotFoundError(tenant_id)

    return tenant_id


TenantFromHeader = Annotated[UUID, Depends(get_tenant_from_header)]
