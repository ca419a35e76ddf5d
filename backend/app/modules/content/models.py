"""Content module database models."""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.base_model import (
    Base,
    PublishableMixin,
    SEOMixin,
    SlugMixin,
    SoftDeleteMixin,
    TenantMixin,
    TimestampMixin,
    UUIDMixin,
    VersionMixin,
)
from app.modules.auth.models import User
from app.modules.catalog.models import Category, Subcategory


class StaticPageType(str, Enum):
    """Kinds of static pages shown in the site footer."""

    ABOUT_US = "about-us"
    CONTACT_US = "contact-us"
    PRIVACY_POLICY = "privacy-policy"
    TERMS_OF_SERVICE = "terms-of-service"
    DISCLAIMER = "disclaimer"
    COOKIE_POLICY = "cookie-policy"
    FAQ = "faq"
    CAREERS = "careers"
    ADVERTISE_WITH_US = "advertise-with-us"
    EDITORIAL_GUIDELINES = "editorial-guidelines"
    OTHER = "other"


class MetricVerdict(str, Enum):
    """Which product a comparison metric favours."""

    PRODUCT_A = "product_a"
    PRODUCT_B = "product_b"
    EQUAL = "equal"


class ComparisonWinner(str, Enum):
    PRODUCT_A = "product_a"
    PRODUCT_B = "product_b"
    TIE = "tie"


_STATUS_CHECK = "status IN ('draft', 'published', 'archived')"


# ============================================================================
# Reviews
# ============================================================================


class Review(
    Base, UUIDMixin, TimestampMixin, SoftDeleteMixin, TenantMixin,
    VersionMixin, SlugMixin, SEOMixin, PublishableMixin
):
    """Product review."""

    __tablename__ = "reviews"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    brand: Mapped[str | None] = mapped_column(String(100), nullable=True)

    excerpt: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Overall score 0..10
    rating: Mapped[float | None] = mapped_column(Numeric(3, 1), nullable=True)
    pros: Mapped[list[str]] = mapped_column(ARRAY(String(200)), default=list, nullable=False)
    cons: Mapped[list[str]] = mapped_column(ARRAY(String(200)), default=list, nullable=False)

    featured_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    category_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
    )
    subcategory_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("subcategories.id", ondelete="RESTRICT"),
        nullable=False,
    )
    author_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    category: Mapped["Category"] = relationship("Category", lazy="joined")
    subcategory: Mapped["Subcategory"] = relationship("Subcategory", lazy="joined")
    author: Mapped["User | None"] = relationship("User", lazy="joined")

    __table_args__ = (
        Index(
            "uq_reviews_tenant_slug",
            "tenant_id",
            "slug",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
        ),
        Index("ix_reviews_category", "category_id", "subcategory_id"),
        Index("ix_reviews_published", "tenant_id", "status", "published_at"),
        CheckConstraint(_STATUS_CHECK, name="ck_reviews_status"),
        CheckConstraint("rating IS NULL OR (rating >= 0 AND rating <= 10)", name="ck_reviews_rating"),
    )

    def __repr__(self) -> str:
        return f"<Review {self.slug} status={self.status}>"


# ============================================================================
# Tech News
# ============================================================================


class TechNews(
    Base, UUIDMixin, TimestampMixin, SoftDeleteMixin, TenantMixin,
    VersionMixin, SlugMixin, SEOMixin, PublishableMixin
):
    """Tech news article."""

    __tablename__ = "tech_news"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    excerpt: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[list[str]] = mapped_column(ARRAY(String(50)), default=list, nullable=False)

    featured_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    source_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    source_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_breaking: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    category_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
    )
    subcategory_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("subcategories.id", ondelete="RESTRICT"),
        nullable=True,
    )
    author_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    category: Mapped["Category"] = relationship("Category", lazy="joined")
    subcategory: Mapped["Subcategory | None"] = relationship("Subcategory", lazy="joined")
    author: Mapped["User | None"] = relationship("User", lazy="joined")

    __table_args__ = (
        Index(
            "uq_tech_news_tenant_slug",
            "tenant_id",
            "slug",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
        ),
        Index("ix_tech_news_category", "category_id", "published_at"),
        Index("ix_tech_news_published", "tenant_id", "status", "published_at"),
        CheckConstraint(_STATUS_CHECK, name="ck_tech_news_status"),
        CheckConstraint("priority >= 0 AND priority <= 10", name="ck_tech_news_priority"),
    )

    def __repr__(self) -> str:
        return f"<TechNews {self.slug} status={self.status}>"


# ============================================================================
# Comparisons
# ============================================================================


class Comparison(
    Base, UUIDMixin, TimestampMixin, SoftDeleteMixin, TenantMixin,
    VersionMixin, SlugMixin, SEOMixin, PublishableMixin
):
    """Head-to-head comparison of two reviewed products.

    Points and the winner are derived from ``metrics`` on every write.
    """

    __tablename__ = "comparisons"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    summary: Mapped[str | None] = mapped_column(String(500), nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)

    product_a_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("reviews.id", ondelete="RESTRICT"),
        nullable=False,
    )
    product_b_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("reviews.id", ondelete="RESTRICT"),
        nullable=False,
    )

    # [{label, product_a_value, product_b_value, better}]
    metrics: Mapped[list[dict]] = mapped_column(JSONB, default=list, nullable=False)
    product_a_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    product_b_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    winner: Mapped[str] = mapped_column(
        String(10),
        default=ComparisonWinner.TIE.value,
        nullable=False,
    )

    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    author_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    updated_by_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    product_a: Mapped["Review"] = relationship(
        "Review", foreign_keys=[product_a_id], lazy="joined"
    )
    product_b: Mapped["Review"] = relationship(
        "Review", foreign_keys=[product_b_id], lazy="joined"
    )
    author: Mapped["User | None"] = relationship("User", foreign_keys=[author_id], lazy="joined")

    __table_args__ = (
        Index(
            "uq_comparisons_tenant_slug",
            "tenant_id",
            "slug",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
        ),
        Index("ix_comparisons_products", "product_a_id", "product_b_id"),
        Index("ix_comparisons_published", "tenant_id", "status", "published_at"),
        CheckConstraint(_STATUS_CHECK, name="ck_comparisons_status"),
        CheckConstraint("product_a_id <> product_b_id", name="ck_comparisons_distinct_products"),
        CheckConstraint(
            "winner IN ('product_a', 'product_b', 'tie')",
            name="ck_comparisons_winner",
        ),
        CheckConstraint("priority >= 0 AND priority <= 10", name="ck_comparisons_priority"),
    )

    def __repr__(self) -> str:
        return f"<Comparison {self.slug} winner={self.winner}>"


# ============================================================================
# Comments
# ============================================================================


class Comment(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin, TenantMixin):
    """Reader comment on a review or a tech news item (exactly one of them)."""

    __tablename__ = "comments"

    content: Mapped[str] = mapped_column(String(1000), nullable=False)

    author_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    review_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("reviews.id", ondelete="RESTRICT"),
        nullable=True,
    )
    tech_news_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("tech_news.id", ondelete="RESTRICT"),
        nullable=True,
    )
    parent_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
    )

    is_approved: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    hidden_reason: Mapped[str | None] = mapped_column(String(200), nullable=True)
    is_edited: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    edited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    moderated_by_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    moderated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    author: Mapped["User"] = relationship("User", foreign_keys=[author_id], lazy="joined")

    __table_args__ = (
        Index("ix_comments_review", "review_id", "created_at"),
        Index("ix_comments_tech_news", "tech_news_id", "created_at"),
        Index("ix_comments_parent", "parent_id"),
        Index("ix_comments_author", "author_id"),
        CheckConstraint(
            "(review_id IS NULL) <> (tech_news_id IS NULL)",
            name="ck_comments_single_target",
        ),
    )

    @property
    def is_visible(self) -> bool:
        return self.is_approved and not self.is_hidden

    def edit(self, content: str) -> None:
        self.content = content
        self.is_edited = True
        self.edited_at = datetime.now(UTC)

    def moderate(
        self,
        moderator_id: UUID,
        *,
        is_approved: bool,
        is_hidden: bool,
        hidden_reason: str | None = None,
    ) -> None:
        self.is_approved = is_approved
        self.is_hidden = is_hidden
        self.hidden_reason = hidden_reason if is_hidden else None
        self.moderated_by_id = moderator_id
        self.moderated_at = datetime.now(UTC)

    def __repr__(self) -> str:
        return f"<Comment {self.id}>"


# ============================================================================
# Static Pages
# ============================================================================


class StaticPage(
    Base, UUIDMixin, TimestampMixin, SoftDeleteMixin, TenantMixin,
    VersionMixin, SlugMixin, SEOMixin, PublishableMixin
):
    """About, privacy policy and similar pages."""

    __tablename__ = "static_pages"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    page_type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    excerpt: Mapped[str | None] = mapped_column(String(300), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    show_in_footer: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    show_in_menu: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # Display order only; duplicates allowed
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    updated_by_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        Index(
            "uq_static_pages_tenant_slug",
            "tenant_id",
            "slug",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
        ),
        CheckConstraint(_STATUS_CHECK, name="ck_static_pages_status"),
    )

    def __repr__(self) -> str:
        return f"<StaticPage {self.slug}>"
