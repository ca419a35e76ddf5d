"""Unit tests for authentication and role services."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from app.core.exceptions import (
    AlreadyExistsError,
    DefaultTenantConfigError,
    DuplicateRoleError,
    EntityInUseError,
    InvalidCredentialsError,
    InvalidTokenError,
    SystemRoleModificationError,
)
from app.core.permissions import Action, Resource, RoleName
from app.core.security import create_access_token, create_refresh_token, decode_token, hash_password
from app.modules.auth.models import DEFAULT_ROLES
from app.modules.auth.schemas import (
    GrantSchema,
    LoginRequest,
    RegisterRequest,
    RoleCreate,
    RoleUpdate,
)
from app.modules.auth.service import AuthService, RoleService, UserService
from tests.fixtures.auth import make_role, make_user
from tests.fixtures.db import scalar_result, scalars_result
from tests.fixtures.factories import RoleFactory

CORRECT_PASSWORD = "correct_password"


class TestAuthService:
    """Tests for AuthService."""

    @pytest.fixture
    def auth_service(self, mock_db: AsyncMock) -> AuthService:
        return AuthService(mock_db)

    @pytest.fixture
    def sample_user(self):
        return make_user(RoleName.EDITOR, password_hash=hash_password(CORRECT_PASSWORD))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_authenticate_success(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
        sample_user,
    ) -> None:
        """Successful authentication should return user and tokens."""
        mock_db.execute.return_value = scalar_result(sample_user)

        user, tokens = await auth_service.authenticate(
            data=LoginRequest(email=sample_user.email, password=CORRECT_PASSWORD),
            tenant_id=sample_user.tenant_id,
            ip_address="127.0.0.1",
        )

        assert user is sample_user
        assert user.last_login_ip == "127.0.0.1"
        assert tokens.expires_in > 0
        mock_db.commit.assert_called_once()

        payload = decode_token(tokens.access_token)
        assert payload["role"] == RoleName.EDITOR.value
        assert "reviews:publish" in payload["permissions"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_authenticate_invalid_password(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
        sample_user,
    ) -> None:
        mock_db.execute.return_value = scalar_result(sample_user)

        with pytest.raises(InvalidCredentialsError):
            await auth_service.authenticate(
                data=LoginRequest(email=sample_user.email, password="wrong_password"),
                tenant_id=sample_user.tenant_id,
            )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_authenticate_user_not_found(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
    ) -> None:
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(InvalidCredentialsError):
            await auth_service.authenticate(
                data=LoginRequest(email="nobody@example.com", password=CORRECT_PASSWORD),
                tenant_id=uuid4(),
            )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_authenticate_inactive_user(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
        sample_user,
    ) -> None:
        sample_user.is_active = False
        mock_db.execute.return_value = scalar_result(sample_user)

        with pytest.raises(InvalidCredentialsError, match="deactivated"):
            await auth_service.authenticate(
                data=LoginRequest(email=sample_user.email, password=CORRECT_PASSWORD),
                tenant_id=sample_user.tenant_id,
            )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_register_assigns_user_role(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
    ) -> None:
        """Registration should create a reader with the USER role."""
        user_role = make_role(RoleName.USER)
        mock_db.execute.side_effect = [scalar_result(None), scalar_result(user_role)]

        user, tokens = await auth_service.register(
            RegisterRequest(
                email="Reader@Example.com",
                username="reader_1",
                password="long-enough-password",
                first_name="Ada",
                last_name="Reader",
            ),
            tenant_id=user_role.tenant_id,
        )

        assert user.email == "reader@example.com"
        assert user.role_id == user_role.id
        assert decode_token(tokens.access_token)["role"] == RoleName.USER.value
        mock_db.add.assert_called_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_register_duplicate_email(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
    ) -> None:
        existing = make_user(email="taken@example.com")
        mock_db.execute.return_value = scalar_result(existing)

        with pytest.raises(AlreadyExistsError):
            await auth_service.register(
                RegisterRequest(
                    email="taken@example.com",
                    username="someone_new",
                    password="long-enough-password",
                    first_name="Ada",
                    last_name="Reader",
                ),
                tenant_id=existing.tenant_id,
            )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_register_without_seeded_roles(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
    ) -> None:
        mock_db.execute.side_effect = [scalar_result(None), scalar_result(None)]

        with pytest.raises(DefaultTenantConfigError):
            await auth_service.register(
                RegisterRequest(
                    email="reader@example.com",
                    username="reader_2",
                    password="long-enough-password",
                    first_name="Ada",
                    last_name="Reader",
                ),
                tenant_id=uuid4(),
            )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_refresh_tokens_success(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
        sample_user,
    ) -> None:
        refresh = create_refresh_token({
            "sub": str(sample_user.id),
            "tenant_id": str(sample_user.tenant_id),
        })
        mock_db.execute.return_value = scalar_result(sample_user)

        tokens = await auth_service.refresh_tokens(refresh)

        assert decode_token(tokens.access_token)["sub"] == str(sample_user.id)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_refresh_tokens_rejects_access_token(
        self,
        auth_service: AuthService,
        sample_user,
    ) -> None:
        access = create_access_token({
            "sub": str(sample_user.id),
            "tenant_id": str(sample_user.tenant_id),
        })

        with pytest.raises(InvalidTokenError):
            await auth_service.refresh_tokens(access)


class TestRoleService:
    """Tests for RoleService."""

    @pytest.fixture
    def role_service(self, mock_db: AsyncMock) -> RoleService:
        return RoleService(mock_db)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_seed_default_roles_returns_created_names(
        self,
        role_service: RoleService,
        mock_db: AsyncMock,
        tenant_id,
    ) -> None:
        """Seeding should report the roles that were actually inserted."""
        mock_db.execute.return_value = scalars_result([RoleName.EDITOR.value, RoleName.USER.value])

        created = await role_service.seed_default_roles(tenant_id)

        assert created == [RoleName.EDITOR.value, RoleName.USER.value]
        mock_db.commit.assert_called_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_seed_default_roles_never_overwrites(
        self,
        role_service: RoleService,
        mock_db: AsyncMock,
        tenant_id,
    ) -> None:
        """Existing rows are skipped by the conflict clause, not updated."""
        mock_db.execute.return_value = scalars_result([])

        assert await role_service.seed_default_roles(tenant_id) == []

        stmt = mock_db.execute.await_args.args[0]
        compiled = stmt.compile(dialect=postgresql.dialect())
        sql = str(compiled)
        assert "ON CONFLICT (tenant_id, name) DO NOTHING" in sql
        assert "DO UPDATE" not in sql
        names = {v for v in compiled.params.values() if isinstance(v, str)}
        assert set(DEFAULT_ROLES) <= names

    @pytest.mark.unit
    def test_default_roles_cover_every_built_in_name(self) -> None:
        assert set(DEFAULT_ROLES) == {r.value for r in RoleName}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_role_stores_normalized_grants(
        self,
        role_service: RoleService,
        mock_db: AsyncMock,
        tenant_id,
    ) -> None:
        mock_db.execute.return_value = scalar_result(None)

        role = await role_service.create_role(
            tenant_id,
            RoleCreate(
                name="moderator",
                permissions=[
                    GrantSchema(
                        resource=Resource.COMMENTS,
                        actions=[Action.MODERATE, Action.READ, Action.READ],
                    )
                ],
            ),
        )

        assert role.permissions == [{"resource": "comments", "actions": ["read", "moderate"]}]
        assert role.is_system is False
        assert role.has_permission(Resource.COMMENTS, Action.MODERATE)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_role_duplicate_name(
        self,
        role_service: RoleService,
        mock_db: AsyncMock,
        tenant_id,
    ) -> None:
        mock_db.execute.return_value = scalar_result(uuid4())

        with pytest.raises(DuplicateRoleError):
            await role_service.create_role(tenant_id, RoleCreate(name="EDITOR"))
        mock_db.rollback.assert_called_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_system_role_cannot_be_modified(
        self,
        role_service: RoleService,
        mock_db: AsyncMock,
        tenant_id,
    ) -> None:
        mock_db.execute.return_value = scalar_result(make_role(RoleName.ADMIN))

        with pytest.raises(SystemRoleModificationError):
            await role_service.update_role(uuid4(), tenant_id, RoleUpdate(description="changed"))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_system_role_cannot_be_deleted(
        self,
        role_service: RoleService,
        mock_db: AsyncMock,
        tenant_id,
    ) -> None:
        mock_db.execute.return_value = scalar_result(make_role(RoleName.USER))

        with pytest.raises(SystemRoleModificationError):
            await role_service.delete_role(uuid4(), tenant_id)
        mock_db.delete.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_delete_role_in_use(
        self,
        role_service: RoleService,
        mock_db: AsyncMock,
        tenant_id,
    ) -> None:
        """A custom role still assigned to users should not be deleted."""
        role = RoleFactory(tenant_id=tenant_id)
        mock_db.execute.side_effect = [scalar_result(role), scalar_result(3)]

        with pytest.raises(EntityInUseError) as exc_info:
            await role_service.delete_role(role.id, tenant_id)

        assert exc_info.value.status_code == 409
        mock_db.delete.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_delete_role_held_by_deleted_user(
        self,
        role_service: RoleService,
        mock_db: AsyncMock,
        tenant_id,
    ) -> None:
        """Soft-deleted users keep their role_id, which still blocks the delete."""
        role = RoleFactory(tenant_id=tenant_id)
        mock_db.execute.side_effect = [scalar_result(role), scalar_result(1)]
        mock_db.delete = AsyncMock()

        with pytest.raises(EntityInUseError) as exc_info:
            await role_service.delete_role(role.id, tenant_id)

        assert exc_info.value.detail["dependencies"] == {"users": 1}
        count_sql = str(mock_db.execute.await_args_list[1].args[0].compile())
        assert "users.deleted_at" not in count_sql
        mock_db.delete.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_delete_unused_custom_role(
        self,
        role_service: RoleService,
        mock_db: AsyncMock,
        tenant_id,
    ) -> None:
        role = RoleFactory(tenant_id=tenant_id)
        mock_db.execute.side_effect = [scalar_result(role), scalar_result(0)]
        mock_db.delete = AsyncMock()

        await role_service.delete_role(role.id, tenant_id)

        mock_db.delete.assert_called_once_with(role)
        mock_db.commit.assert_called_once()


class TestUserStats:
    """Tests for UserService.get_stats."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_counts_and_roles(self, mock_db: AsyncMock, tenant_id) -> None:
        counts = scalar_result(None)
        counts.one.return_value = (12, 9, 4)
        by_role = scalar_result(None)
        by_role.all.return_value = [("user", 8), ("editor", 3), (None, 1)]
        mock_db.execute.side_effect = [counts, by_role]

        stats = await UserService(mock_db).get_stats(tenant_id)

        assert stats.total == 12
        assert stats.active == 9
        assert stats.inactive == 3
        assert stats.registered_last_30_days == 4
        assert {r.role: r.count for r in stats.by_role} == {
            "user": 8,
            "editor": 3,
            "unassigned": 1,
        }
        role_sql = str(mock_db.execute.await_args_list[1].args[0])
        assert "LEFT OUTER JOIN roles" in role_sql
        assert "users.deleted_at IS NULL" in role_sql
