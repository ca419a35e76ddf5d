"""Users, roles and bearer headers for permission-gated tests."""

from datetime import timedelta
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID

from app.core.permissions import RoleName
from app.core.security import create_access_token
from app.modules.auth.models import DEFAULT_ROLES, Role, User
from tests.fixtures.db import scalar_result
from tests.fixtures.factories import RoleFactory, UserFactory

TEST_TENANT_ID = UUID("00000000-0000-4000-8000-000000000001")


def make_role(name: RoleName, **overrides: Any) -> Role:
    """Role carrying the default grants of ``name``."""
    config = DEFAULT_ROLES[name.value]
    overrides.setdefault("permissions", config["permissions"])
    return RoleFactory(
        tenant_id=TEST_TENANT_ID,
        name=name.value,
        description=config["description"],
        is_system=True,
        **overrides,
    )


def make_user(role_name: RoleName | None = RoleName.USER, **overrides: Any) -> User:
    role = make_role(role_name) if role_name is not None else None
    return UserFactory(
        tenant_id=TEST_TENANT_ID,
        role=role,
        role_id=role.id if role else None,
        **overrides,
    )


def auth_headers(user: User) -> dict[str, str]:
    """Bearer header carrying a real access token for ``user``."""
    token = create_access_token(
        {
            "sub": str(user.id),
            "tenant_id": str(user.tenant_id),
            "email": user.email,
            "role": user.role.name if user.role else None,
        },
        expires_delta=timedelta(minutes=5),
    )
    return {"Authorization": f"Bearer {token}"}


def login_as(db: AsyncMock, user: User) -> dict[str, str]:
    """Make ``get_current_user`` resolve to ``user`` and return its headers."""
    db.execute.return_value = scalar_result(user)
    return auth_headers(user)
