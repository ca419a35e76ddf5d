"""Authentication service - business logic for auth, users and roles."""

from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from sqlalchemy import func, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.base_service import BaseService
from app.core.database import transactional
from app.core.exceptions import (
    AlreadyExistsError,
    DefaultTenantConfigError,
    DuplicateRoleError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    SystemRoleModificationError,
)
from app.core.logging import get_logger
from app.core.permissions import RoleName, permission_codes
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from app.modules.auth.models import DEFAULT_ROLES, Role, User
from app.modules.auth.schemas import (
    GrantSchema,
    LoginRequest,
    PasswordChange,
    RegisterRequest,
    RoleCount,
    RoleCreate,
    RoleUpdate,
    TokenPair,
    UserCreate,
    UserStats,
    UserUpdate,
)

logger = get_logger(__name__)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def authenticate(
        self,
        data: LoginRequest,
        tenant_id: UUID,
        ip_address: str | None = None,
    ) -> tuple[User, TokenPair]:
        """Authenticate user and return tokens.

        Raises:
            InvalidCredentialsError: If credentials are invalid or account is disabled
        """
        stmt = (
            select(User)
            .where(User.tenant_id == tenant_id)
            .where(User.email == data.email.lower())
            .where(User.deleted_at.is_(None))
        )
        result = await self.db.execute(stmt)
        user = result.scalar_one_or_none()

        if not user or not verify_password(data.password, user.password_hash):
            logger.info("login_failed", email=data.email, ip=ip_address)
            raise InvalidCredentialsError()

        if not user.is_active:
            raise InvalidCredentialsError("Account is deactivated")

        user.last_login_at = datetime.now(UTC)
        user.last_login_ip = ip_address

        tokens = self._create_tokens(user)

        await self.db.commit()
        # updated_at is set by the database on update
        await self.db.refresh(user)
        await self.db.refresh(user, ["role"])

        logger.info("user_logged_in", user_id=str(user.id))
        return user, tokens

    async def register(
        self,
        data: RegisterRequest,
        tenant_id: UUID,
    ) -> tuple[User, TokenPair]:
        """Create an active reader account with the USER role.

        Raises:
            AlreadyExistsError: If email or username is taken in the tenant
            DefaultTenantConfigError: If default roles were never seeded
        """
        email = data.email.lower()
        await _ensure_user_unique(self.db, tenant_id, email, data.username)

        role = await RoleService(self.db).get_by_name(tenant_id, RoleName.USER.value)
        if role is None:
            raise DefaultTenantConfigError("Default USER role not found. Seed default roles first.")

        user = User(
            tenant_id=tenant_id,
            email=email,
            username=data.username,
            password_hash=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            role_id=role.id,
            is_active=True,
            last_login_at=datetime.now(UTC),
        )
        self.db.add(user)
        await self.db.flush()
        user.role = role

        tokens = self._create_tokens(user)

        await self.db.commit()
        await self.db.refresh(user)
        await self.db.refresh(user, ["role"])

        logger.info("user_registered", user_id=str(user.id), username=user.username)
        return user, tokens

    async def refresh_tokens(self, refresh_token: str) -> TokenPair:
        """Issue a new token pair for a valid refresh token.

        Raises:
            InvalidTokenError: If refresh token is invalid or the user is gone
        """
        payload = decode_token(refresh_token)

        if payload.get("type") != "refresh":
            raise InvalidTokenError("Invalid token type")

        try:
            user_id = UUID(payload["sub"])
            tenant_id = UUID(payload["tenant_id"])
        except (KeyError, ValueError):
            raise InvalidTokenError("Malformed token payload")

        stmt = (
            select(User)
            .where(User.id == user_id)
            .where(User.tenant_id == tenant_id)
            .where(User.deleted_at.is_(None))
            .where(User.is_active.is_(True))
        )
        result = await self.db.execute(stmt)
        user = result.scalar_one_or_none()

        if not user:
            raise InvalidTokenError("User not found")

        return self._create_tokens(user)

    def _create_tokens(self, user: User) -> TokenPair:
        """Create access and refresh tokens for user."""
        token_data = {
            "sub": str(user.id),
            "tenant_id": str(user.tenant_id),
            "email": user.email,
        }
        if user.role:
            token_data["role"] = user.role.name
            token_data["permissions"] = permission_codes(user.role)

        return TokenPair(
            access_token=create_access_token(token_data),
            refresh_token=create_refresh_token(token_data),
            expires_in=settings.jwt_access_token_expire_minutes * 60,
        )


async def _ensure_user_unique(
    db: AsyncSession,
    tenant_id: UUID,
    email: str,
    username: str,
) -> None:
    stmt = (
        select(User)
        .where(User.tenant_id == tenant_id)
        .where(or_(User.email == email, User.username == username))
    )
    existing = (await db.execute(stmt.limit(1))).scalar_one_or_none()
    if existing is None:
        return
    if existing.email == email:
        raise AlreadyExistsError("User", "email", email)
    raise AlreadyExistsError("User", "username", username)


class UserService(BaseService[User]):
    """Service for user management operations."""

    model = User

    async def get_by_id(self, user_id: UUID, tenant_id: UUID) -> User:
        return await self._get_by_id(user_id, tenant_id)

    async def list_users(
        self,
        tenant_id: UUID,
        page: int = 1,
        page_size: int = 20,
        is_active: bool | None = None,
        role_id: UUID | None = None,
        search: str | None = None,
    ) -> tuple[list[User], int]:
        """List users in tenant with pagination."""
        filters = []
        if is_active is not None:
            filters.append(User.is_active == is_active)
        if role_id is not None:
            filters.append(User.role_id == role_id)
        if search:
            pattern = f"%{search}%"
            filters.append(
                or_(
                    User.email.ilike(pattern),
                    User.username.ilike(pattern),
                    User.first_name.ilike(pattern),
                    User.last_name.ilike(pattern),
                )
            )

        base_query = self._build_base_query(tenant_id, filters=filters)
        return await self._paginate(
            base_query,
            page,
            page_size,
            order_by=[User.created_at.desc()],
        )

    async def get_stats(self, tenant_id: UUID) -> UserStats:
        """Activity counters, registrations in the last 30 days, users per role."""
        since = datetime.now(UTC) - timedelta(days=30)
        active = [User.tenant_id == tenant_id, User.deleted_at.is_(None)]

        counts_stmt = select(
            func.count(),
            func.count().filter(User.is_active.is_(True)),
            func.count().filter(User.created_at >= since),
        ).where(*active)
        total, active_count, recent = (await self.db.execute(counts_stmt)).one()

        by_role_stmt = (
            select(Role.name, func.count(User.id))
            .select_from(User)
            .outerjoin(Role, User.role_id == Role.id)
            .where(*active)
            .group_by(Role.name)
            .order_by(func.count(User.id).desc())
        )
        by_role = (await self.db.execute(by_role_stmt)).all()

        return UserStats(
            total=total,
            active=active_count,
            inactive=total - active_count,
            registered_last_30_days=recent,
            by_role=[RoleCount(role=name or "unassigned", count=n) for name, n in by_role],
        )

    @transactional
    async def create(self, tenant_id: UUID, data: UserCreate) -> User:
        """Create a new user."""
        email = data.email.lower()
        await _ensure_user_unique(self.db, tenant_id, email, data.username)

        if data.role_id is not None:
            await RoleService(self.db).get_by_id(data.role_id, tenant_id)

        user = User(
            tenant_id=tenant_id,
            email=email,
            username=data.username,
            password_hash=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            role_id=data.role_id,
            is_active=data.is_active,
        )
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        await self.db.refresh(user, ["role"])

        logger.info("user_created", user_id=str(user.id), role_id=str(data.role_id))
        return user

    @transactional
    async def update(self, user_id: UUID, tenant_id: UUID, data: UserUpdate) -> User:
        """Update user with optimistic locking."""
        user = await self.get_by_id(user_id, tenant_id)
        user.check_version(data.version)

        update_data = data.model_dump(exclude_unset=True, exclude={"version"})
        if update_data.get("role_id") is not None:
            await RoleService(self.db).get_by_id(update_data["role_id"], tenant_id)

        for field, value in update_data.items():
            setattr(user, field, value)

        await self.db.flush()
        await self.db.refresh(user)
        await self.db.refresh(user, ["role"])
        return user

    @transactional
    async def change_password(self, user_id: UUID, tenant_id: UUID, data: PasswordChange) -> None:
        user = await self.get_by_id(user_id, tenant_id)

        if not verify_password(data.current_password, user.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")

        user.password_hash = hash_password(data.new_password)
        await self.db.flush()

    @transactional
    async def soft_delete(self, user_id: UUID, tenant_id: UUID) -> None:
        await self._soft_delete(user_id, tenant_id)


class RoleService(BaseService[Role]):
    """Service for role management operations."""

    model = Role
    usage_entity_type = "Role"

    async def get_by_id(self, role_id: UUID, tenant_id: UUID) -> Role:
        return await self._get_by_id(role_id, tenant_id)

    async def get_by_name(self, tenant_id: UUID, name: str) -> Role | None:
        stmt = select(Role).where(Role.tenant_id == tenant_id).where(Role.name == name)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_roles(self, tenant_id: UUID) -> list[Role]:
        stmt = self._build_base_query(tenant_id).order_by(Role.name)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _ensure_name_free(
        self,
        tenant_id: UUID,
        name: str,
        exclude_id: UUID | None = None,
    ) -> None:
        stmt = select(Role.id).where(Role.tenant_id == tenant_id).where(Role.name == name)
        if exclude_id is not None:
            stmt = stmt.where(Role.id != exclude_id)
        if (await self.db.execute(stmt)).scalar_one_or_none() is not None:
            raise DuplicateRoleError(name)

    @staticmethod
    def _grants_to_storage(grants: list[GrantSchema]) -> list[dict]:
        return [g.to_storage() for g in grants]

    @transactional
    async def create_role(self, tenant_id: UUID, data: RoleCreate) -> Role:
        await self._ensure_name_free(tenant_id, data.name)

        role = Role(
            tenant_id=tenant_id,
            name=data.name,
            description=data.description,
            permissions=self._grants_to_storage(data.permissions),
            is_system=False,
            is_active=True,
        )
        self.db.add(role)
        await self.db.flush()
        await self.db.refresh(role)

        logger.info("role_created", role_id=str(role.id), name=role.name)
        return role

    @transactional
    async def update_role(self, role_id: UUID, tenant_id: UUID, data: RoleUpdate) -> Role:
        """Update a custom role.

        Raises:
            SystemRoleModificationError: If the role is a seeded system role
            DuplicateRoleError: If the new name is taken
        """
        role = await self.get_by_id(role_id, tenant_id)

        if role.is_system:
            raise SystemRoleModificationError("modify")

        if data.name is not None and data.name != role.name:
            await self._ensure_name_free(tenant_id, data.name, exclude_id=role_id)
            role.name = data.name
        if data.description is not None:
            role.description = data.description
        if data.is_active is not None:
            role.is_active = data.is_active
        if data.permissions is not None:
            role.permissions = self._grants_to_storage(data.permissions)

        await self.db.flush()
        await self.db.refresh(role)

        logger.info("role_updated", role_id=str(role.id), name=role.name)
        return role

    @transactional
    async def delete_role(self, role_id: UUID, tenant_id: UUID) -> None:
        """Delete a custom role that no user references.

        Raises:
            SystemRoleModificationError: If the role is a seeded system role
            EntityInUseError: If users are still assigned to it
        """
        role = await self.get_by_id(role_id, tenant_id)

        if role.is_system:
            raise SystemRoleModificationError("delete")

        await self._ensure_not_in_use(role)

        await self.db.delete(role)
        await self.db.flush()
        logger.info("role_deleted", role_id=str(role_id), name=role.name)

    @transactional
    async def seed_default_roles(self, tenant_id: UUID) -> list[str]:
        """Create the default roles that do not exist yet in the tenant.

        Existing roles with a default name are left untouched. Returns the
        names of the roles that were inserted (empty when all existed).
        """
        rows = [
            {
                "id": uuid4(),
                "tenant_id": tenant_id,
                "name": name,
                "description": config["description"],
                "permissions": config["permissions"],
                "is_system": True,
                "is_active": True,
            }
            for name, config in DEFAULT_ROLES.items()
        ]
        stmt = (
            pg_insert(Role)
            .values(rows)
            .on_conflict_do_nothing(index_elements=["tenant_id", "name"])
            .returning(Role.name)
        )
        result = await self.db.execute(stmt)
        created = list(result.scalars().all())

        logger.info(
            "default_roles_seeded",
            tenant_id=str(tenant_id),
            created=len(created),
            roles=created,
        )
        return created


async def ensure_role_exists(db: AsyncSession, tenant_id: UUID, name: str) -> Role:
    """Look up a role by name, raising NotFoundError when missing."""
    role = await RoleService(db).get_by_name(tenant_id, name)
    if role is None:
        raise NotFoundError("Role", name)
    return role
