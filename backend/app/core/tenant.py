"""Tenant resolution helpers.

In single-tenant mode every request belongs to the site configured by
``settings.default_tenant_slug``; its id is looked up once and cached.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import DefaultTenantConfigError

_default_tenant_id: UUID | None = None


async def get_default_tenant(db: AsyncSession):
    """Load the default tenant.

    Raises:
        DefaultTenantConfigError: If the tenant has not been created yet
    """
    from app.modules.tenants.models import Tenant

    stmt = select(Tenant).where(
        Tenant.slug == settings.default_tenant_slug,
        Tenant.deleted_at.is_(None),
    )
    tenant = (await db.execute(stmt)).scalar_one_or_none()

    if tenant is None:
        raise DefaultTenantConfigError(
            f"Default tenant '{settings.default_tenant_slug}' not found. "
            "Run 'python -m app.scripts.init_admin' to create it."
        )
    return tenant


async def get_default_tenant_id(db: AsyncSession) -> UUID:
    global _default_tenant_id

    if _default_tenant_id is None:
        tenant = await get_default_tenant(db)
        _default_tenant_id = tenant.id
    return _default_tenant_id


async def validate_tenant_exists(db: AsyncSession, tenant_id: UUID) -> bool:
    """Check that a tenant exists and is active."""
    from app.modules.tenants.models import Tenant

    stmt = select(Tenant.id).where(
        Tenant.id == tenant_id,
        Tenant.is_active.is_(True),
        Tenant.deleted_at.is_(None),
    )
    return (await db.execute(stmt)).scalar_one_or_none() is not None
