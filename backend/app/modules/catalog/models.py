"""Catalog module database models: categories and subcategories."""

from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.base_model import (
    Base,
    SEOMixin,
    SlugMixin,
    SoftDeleteMixin,
    SortOrderMixin,
    TenantMixin,
    TimestampMixin,
    UUIDMixin,
    VersionMixin,
)


class CategoryGroup(str, Enum):
    """Navigation group a category belongs to."""

    REVIEWS = "Reviews"
    COMPARISONS = "Comparisons"
    NEWS = "News"
    STATIC = "Static"
    BLOG = "Blog"
    AI_ZONE = "AI Zone"
    GOVERNMENT_TECH = "Government Tech"
    LEGAL = "Legal"
    OTHER = "Other"


class Category(
    Base, UUIDMixin, TimestampMixin, SoftDeleteMixin, TenantMixin,
    VersionMixin, SortOrderMixin, SlugMixin, SEOMixin
):
    """Top-level category (e.g. Mobiles, Laptops)."""

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    group: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    icon: Mapped[str | None] = mapped_column(String(500), nullable=True)
    image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    color: Mapped[str] = mapped_column(String(7), default="#000000", nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_by_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    updated_by_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    subcategories: Mapped[list["Subcategory"]] = relationship(
        "Subcategory",
        back_populates="category",
        lazy="noload",
    )

    __table_args__ = (
        Index(
            "uq_categories_tenant_slug",
            "tenant_id",
            "slug",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
        ),
        Index(
            "uq_categories_tenant_sort_order",
            "tenant_id",
            "sort_order",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
        ),
        Index("ix_categories_active_sort", "tenant_id", "is_active", "sort_order"),
        CheckConstraint("color ~ '^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$'", name="ck_categories_color"),
    )

    def __repr__(self) -> str:
        return f"<Category {self.slug}>"


class Subcategory(
    Base, UUIDMixin, TimestampMixin, SoftDeleteMixin, TenantMixin,
    VersionMixin, SortOrderMixin, SlugMixin, SEOMixin
):
    """Second-level category, ordered within its parent."""

    __tablename__ = "subcategories"

    category_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    icon: Mapped[str | None] = mapped_column(String(500), nullable=True)
    image: Mapped[str | None] = mapped_column(String(500), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_by_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    updated_by_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    category: Mapped["Category"] = relationship(
        "Category",
        back_populates="subcategories",
        lazy="joined",
    )

    __table_args__ = (
        Index(
            "uq_subcategories_category_slug",
            "category_id",
            "slug",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
        ),
        Index(
            "uq_subcategories_category_sort_order",
            "tenant_id",
            "category_id",
            "sort_order",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
        ),
        Index("ix_subcategories_category", "category_id", "is_active", "sort_order"),
    )

    def __repr__(self) -> str:
        return f"<Subcategory {self.slug}>"
