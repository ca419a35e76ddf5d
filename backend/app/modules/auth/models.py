"""Authentication and authorization database models."""

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.base_model import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDMixin,
    VersionMixin,
)
from app.core.permissions import Action, Resource, RoleName, has_permission

if TYPE_CHECKING:
    from app.modules.tenants.models import Tenant


class Role(Base, UUIDMixin, TimestampMixin):
    """Named set of (resource, actions) grants.

    ``permissions`` is stored as an ordered JSONB list of
    ``{"resource": ..., "actions": [...]}`` objects.
    """

    __tablename__ = "roles"

    tenant_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    permissions: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
    )

    # Seeded roles cannot be edited or deleted through the API
    is_system: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    users: Mapped[list["User"]] = relationship(
        "User",
        back_populates="role",
        lazy="noload",
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_roles_tenant_name"),
        Index("ix_roles_tenant", "tenant_id"),
        CheckConstraint("char_length(name) >= 2", name="ck_roles_name_min_length"),
    )

    def has_permission(self, resource: Resource | str, action: Action | str) -> bool:
        return has_permission(self, resource, action)

    def __repr__(self) -> str:
        return f"<Role {self.name}>"


class User(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin, VersionMixin):
    """CMS account: staff (admins, editors, reviewers) and readers alike."""

    __tablename__ = "users"

    tenant_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    email: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(30), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_login_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)

    role_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("roles.id", ondelete="RESTRICT"),
        nullable=True,
    )

    role: Mapped["Role | None"] = relationship("Role", back_populates="users", lazy="joined")
    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="users")

    __table_args__ = (
        UniqueConstraint("tenant_id", "email", name="uq_users_tenant_email"),
        UniqueConstraint("tenant_id", "username", name="uq_users_tenant_username"),
        Index("ix_users_email", "email"),
        Index("ix_users_role", "role_id"),
        CheckConstraint("username ~ '^[a-zA-Z0-9_]{3,30}$'", name="ck_users_username_format"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User {self.email}>"


def _grant(resource: Resource, *actions: Action) -> dict[str, Any]:
    return {"resource": resource.value, "actions": [a.value for a in actions]}


_CRUD = (Action.CREATE, Action.READ, Action.UPDATE, Action.DELETE)

# Default role configurations, seeded per tenant (create-if-absent by name)
DEFAULT_ROLES: dict[str, dict[str, Any]] = {
    RoleName.SUPER_ADMIN.value: {
        "description": "Full system access",
        "permissions": [_grant(Resource.ALL, *Action)],
    },
    RoleName.ADMIN.value: {
        "description": "Administrative access to most features",
        "permissions": [
            _grant(Resource.USERS, *_CRUD),
            _grant(Resource.CATEGORIES, *_CRUD),
            _grant(Resource.SUBCATEGORIES, *_CRUD),
            _grant(Resource.REVIEWS, *_CRUD, Action.PUBLISH, Action.MODERATE),
            _grant(Resource.COMMENTS, Action.READ, Action.UPDATE, Action.DELETE, Action.MODERATE),
            _grant(Resource.TECH_NEWS, *_CRUD, Action.PUBLISH),
            _grant(Resource.STATIC_PAGES, *_CRUD),
        ],
    },
    RoleName.EDITOR.value: {
        "description": "Content creation and editing access",
        "permissions": [
            _grant(Resource.REVIEWS, Action.CREATE, Action.READ, Action.UPDATE, Action.PUBLISH),
            _grant(Resource.TECH_NEWS, Action.CREATE, Action.READ, Action.UPDATE, Action.PUBLISH),
            _grant(Resource.COMMENTS, Action.READ, Action.MODERATE),
            _grant(Resource.CATEGORIES, Action.READ),
            _grant(Resource.SUBCATEGORIES, Action.READ),
        ],
    },
    RoleName.REVIEWER.value: {
        "description": "Product review creation access",
        "permissions": [
            _grant(Resource.REVIEWS, Action.CREATE, Action.READ, Action.UPDATE),
            _grant(Resource.COMMENTS, Action.READ),
            _grant(Resource.CATEGORIES, Action.READ),
            _grant(Resource.SUBCATEGORIES, Action.READ),
        ],
    },
    RoleName.USER.value: {
        "description": "Basic user access",
        "permissions": [
            _grant(Resource.REVIEWS, Action.READ),
            _grant(Resource.COMMENTS, Action.CREATE, Action.READ, Action.UPDATE),
            _grant(Resource.TECH_NEWS, Action.READ),
            _grant(Resource.CATEGORIES, Action.READ),
            _grant(Resource.SUBCATEGORIES, Action.READ),
        ],
    },
}
