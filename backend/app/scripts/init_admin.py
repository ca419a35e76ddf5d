"""Initialize the default tenant, default roles and the first admin user.

Usage:
    python -m app.scripts.init_admin

Safe to run repeatedly: existing tenant, roles and admin are left as they
are, only missing pieces are created.
"""

import asyncio
import sys

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.database import get_db_context
from app.core.exceptions import AppException
from app.core.logging import get_logger, setup_logging
from app.core.permissions import RoleName
from app.core.security import hash_password
from app.modules.auth.models import Role, User
from app.modules.auth.service import RoleService, ensure_role_exists
from app.modules.tenants.models import Tenant

logger = get_logger(__name__)


async def init_tenant(db: AsyncSession) -> Tenant:
    """Create or get the default tenant from config settings."""
    print("🏢 Initializing tenant...")
    print(f"  📋 Using slug: {settings.default_tenant_slug}")

    result = await db.execute(
        select(Tenant).where(
            Tenant.slug == settings.default_tenant_slug,
            Tenant.deleted_at.is_(None),
        )
    )
    tenant = result.scalar_one_or_none()

    if tenant:
        if not tenant.is_active:
            tenant.is_active = True
            await db.flush()
            print(f"  🔄 Re-activated tenant: {tenant.name}")
        print(f"  ⏭️  Tenant already exists: {tenant.name} (ID: {tenant.id})")
        return tenant

    tenant = Tenant(
        name=settings.default_tenant_name,
        slug=settings.default_tenant_slug,
        is_active=True,
    )
    db.add(tenant)
    await db.flush()

    print(f"  ✅ Created tenant: {tenant.name} (ID: {tenant.id})")
    return tenant


async def init_roles(db: AsyncSession, tenant: Tenant) -> Role:
    """Seed missing default roles and return SUPER_ADMIN."""
    print("👥 Initializing roles...")

    created = await RoleService(db).seed_default_roles(tenant.id)
    if created:
        for name in created:
            print(f"  ✅ Created role: {name}")
    else:
        print("  ⏭️  All default roles already exist")

    return await ensure_role_exists(db, tenant.id, RoleName.SUPER_ADMIN.value)


async def create_admin_user(db: AsyncSession, tenant: Tenant, role: Role) -> tuple[User, bool]:
    """Create the first admin user unless one with the same email exists."""
    print("👤 Creating admin user...")
    email = settings.default_admin_email.lower()

    result = await db.execute(
        select(User).where(
            User.tenant_id == tenant.id,
            User.email == email,
            User.deleted_at.is_(None),
        )
    )
    existing = result.scalar_one_or_none()

    if existing:
        print(f"  ⚠️  Admin user already exists: {email}")
        if existing.role_id != role.id:
            existing.role_id = role.id
            await db.flush()
            print(f"  🔄 Re-assigned role {role.name}")
        return existing, False

    admin = User(
        tenant_id=tenant.id,
        email=email,
        username=settings.default_admin_username,
        password_hash=hash_password(settings.default_admin_password),
        first_name="Admin",
        last_name="User",
        role_id=role.id,
        is_active=True,
    )
    db.add(admin)
    await db.flush()

    print(f"  ✅ Created admin user: {email}")
    return admin, True


async def main() -> None:
    setup_logging()

    print("=" * 60)
    print("🚀 Initializing tenant, roles and admin user")
    print("=" * 60)
    print()

    try:
        async with get_db_context() as db:
            tenant = await init_tenant(db)
            await db.commit()

            # seed_default_roles commits on its own
            role = await init_roles(db, tenant)

            admin, created = await create_admin_user(db, tenant, role)
            await db.commit()

    except (AppException, SQLAlchemyError, OSError) as e:
        logger.exception("init_admin_failed", error=str(e))
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    print()
    print("=" * 60)
    print("✅ Initialization complete!")
    print("=" * 60)
    print()
    print("📝 Login credentials:")
    print(f"   Email:    {admin.email}")
    if created:
        print(f"   Password: {settings.default_admin_password}")
    print(f"   Role:     {role.name}")
    print()

    if settings.single_tenant_mode:
        print("🔐 Single-tenant mode: no X-Tenant-ID header required for login")
    else:
        print("🔐 Tenant ID (for login header X-Tenant-ID):")
        print(f"   {tenant.id}")
    print()
    print("⚠️  Change the password after first login: POST /api/v1/auth/me/password")


if __name__ == "__main__":
    asyncio.run(main())
