"""Tenant database model."""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.base_model import Base, SoftDeleteMixin, TimestampMixin, UUIDMixin, VersionMixin

if TYPE_CHECKING:
    from app.modules.auth.models import User


class Tenant(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin, VersionMixin):
    """A publication site with its own roles, users and content."""

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    domain: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    users: Mapped[list["User"]] = relationship(
        "User",
        back_populates="tenant",
        lazy="noload",
    )

    __table_args__ = (
        Index("ix_tenants_active", "is_active", postgresql_where="deleted_at IS NULL"),
        CheckConstraint("char_length(slug) >= 2", name="ck_tenants_slug_min_length"),
    )

    def __repr__(self) -> str:
        return f"<Tenant {self.slug}>"
