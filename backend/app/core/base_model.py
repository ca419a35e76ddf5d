"""Base SQLAlchemy models with common mixins."""

import uuid
from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.ext.declarative import declared_attr
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """Generate table name from class name."""
        # Convert CamelCase to snake_case
        name = cls.__name__
        return "".join(
            ["_" + c.lower() if c.isupper() else c for c in name]
        ).lstrip("_") + "s"


class UUIDMixin:
    """Mixin that adds UUID primary key."""

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True,
    )


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class SoftDeleteMixin:
    """Mixin for soft delete functionality.

    Published reviews and news keep their URLs, so content rows are never
    hard-deleted. Soft-deleted rows do not count as dependents and do not
    hold a sort position.
    """

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        index=True,
    )

    def soft_delete(self) -> None:
        """Mark record as deleted."""
        self.deleted_at = datetime.now(UTC)


class VersionMixin:
    """Mixin for optimistic locking using version field.

    Usage in services:
        entity.check_version(data.version)  # Validates and auto-increments
    """

    version: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
    )

    def check_version(self, provided_version: int) -> None:
        """Validate version and increment for optimistic locking.

        Raises:
            VersionConflictError: If versions don't match
        """
        # Import here to avoid circular imports
        from app.core.exceptions import VersionConflictError

        if self.version != provided_version:
            raise VersionConflictError(
                self.__class__.__name__,
                self.version,
                provided_version,
            )
        self.version += 1


class TenantMixin:
    """Mixin that adds tenant_id for multi-tenancy support.

    Note: This creates the column only. For models that need a relationship
    to Tenant, you must define the ForeignKey explicitly in the model.
    """

    @declared_attr
    def tenant_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            UUID(as_uuid=True),
            nullable=False,
            index=True,
        )


class SlugMixin:
    """Mixin for URL-friendly slugs."""

    slug: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )


class SEOMixin:
    """Mixin for basic SEO fields."""

    meta_title: Mapped[str | None] = mapped_column(String(150), nullable=True)
    meta_description: Mapped[str | None] = mapped_column(String(300), nullable=True)


class SortOrderMixin:
    """Mixin for manual ordering of records.

    Values are assigned by app.core.sort_order.assign_sort_order; uniqueness
    among active rows is enforced by a partial unique index on each table.
    """

    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
        index=True,
    )


class PublishStatus(str, Enum):
    """Publication status shared by reviews, tech news and static pages."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class PublishableMixin:
    """Mixin for content with a draft/published/archived lifecycle."""

    status: Mapped[str] = mapped_column(
        String(20),
        default=PublishStatus.DRAFT.value,
        nullable=False,
        index=True,
    )
    published_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    @property
    def is_published(self) -> bool:
        return self.status == PublishStatus.PUBLISHED.value

    def publish(self) -> None:
        """Publish the item, keeping the first publication date."""
        self.status = PublishStatus.PUBLISHED.value
        if not self.published_at:
            self.published_at = datetime.now(UTC)

    def unpublish(self) -> None:
        """Move item back to draft."""
        self.status = PublishStatus.DRAFT.value

    def archive(self) -> None:
        self.status = PublishStatus.ARCHIVED.value
