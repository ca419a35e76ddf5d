"""Pydantic schemas for content module."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.base_model import PublishStatus
from app.core.schemas import PartialUpdate
from app.core.slugs import SLUG_PATTERN
from app.modules.content.models import ComparisonWinner, MetricVerdict, StaticPageType


class SEOFields(BaseModel):
    meta_title: str | None = Field(default=None, max_length=150)
    meta_description: str | None = Field(default=None, max_length=300)


class AuthorBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    full_name: str


class TaxonomyBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str


def _clean_list(values: list[str] | None) -> list[str] | None:
    if values is None:
        return None
    return [v.strip() for v in values if v and v.strip()]


# ============================================================================
# Review Schemas
# ============================================================================


class ReviewBase(SEOFields):
    """Base review schema."""

    title: str = Field(..., min_length=1, max_length=200)
    product_name: str = Field(..., min_length=1, max_length=200)
    brand: str | None = Field(default=None, max_length=100)
    excerpt: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    rating: float | None = Field(default=None, ge=0, le=10)
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)
    featured_image_url: str | None = Field(default=None, max_length=500)
    is_featured: bool = False

    @field_validator("pros", "cons")
    @classmethod
    def strip_items(cls, v: list[str]) -> list[str]:
        return _clean_list(v) or []


class ReviewCreate(ReviewBase):
    """Schema for creating a review. New reviews start as drafts."""

    slug: str | None = Field(default=None, max_length=255, pattern=SLUG_PATTERN)
    category_id: UUID
    subcategory_id: UUID


class ReviewUpdate(SEOFields, PartialUpdate):
    """Schema for updating a review.

    A null ``subcategory_id`` is rejected by the service with a clearer error.
    """

    non_nullable = frozenset({
        "title", "product_name", "excerpt", "content",
        "pros", "cons", "is_featured", "category_id",
    })

    title: str | None = Field(default=None, min_length=1, max_length=200)
    product_name: str | None = Field(default=None, min_length=1, max_length=200)
    brand: str | None = Field(default=None, max_length=100)
    excerpt: str | None = Field(default=None, min_length=1, max_length=500)
    content: str | None = Field(default=None, min_length=1)
    rating: float | None = Field(default=None, ge=0, le=10)
    pros: list[str] | None = None
    cons: list[str] | None = None
    featured_image_url: str | None = Field(default=None, max_length=500)
    is_featured: bool | None = None
    slug: str | None = Field(default=None, max_length=255, pattern=SLUG_PATTERN)
    category_id: UUID | None = None
    subcategory_id: UUID | None = None
    version: int = Field(..., description="Current version for optimistic locking")

    @field_validator("pros", "cons")
    @classmethod
    def strip_items(cls, v: list[str] | None) -> list[str] | None:
        return _clean_list(v)


class ReviewResponse(ReviewBase):
    """Schema for review response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    slug: str
    status: PublishStatus
    published_at: datetime | None = None
    view_count: int
    category_id: UUID
    subcategory_id: UUID
    category: TaxonomyBrief | None = None
    subcategory: TaxonomyBrief | None = None
    author: AuthorBrief | None = None
    version: int
    created_at: datetime
    updated_at: datetime


class ReviewListResponse(BaseModel):
    items: list[ReviewResponse]
    total: int
    page: int
    page_size: int


# ============================================================================
# Tech News Schemas
# ============================================================================


class TechNewsBase(SEOFields):
    """Base tech news schema."""

    title: str = Field(..., min_length=1, max_length=200)
    excerpt: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1)
    tags: list[str] = Field(default_factory=list)
    featured_image_url: str | None = Field(default=None, max_length=500)
    source_name: str | None = Field(default=None, max_length=100)
    source_url: str | None = Field(default=None, max_length=500)
    is_featured: bool = False
    is_breaking: bool = False
    priority: int = Field(default=0, ge=0, le=10)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        return [t.lower() for t in _clean_list(v) or []]


class TechNewsCreate(TechNewsBase):
    slug: str | None = Field(default=None, max_length=255, pattern=SLUG_PATTERN)
    category_id: UUID
    subcategory_id: UUID | None = None


class TechNewsUpdate(SEOFields, PartialUpdate):
    non_nullable = frozenset({
        "title", "excerpt", "content", "tags",
        "is_featured", "is_breaking", "priority", "category_id",
    })

    title: str | None = Field(default=None, min_length=1, max_length=200)
    excerpt: str | None = Field(default=None, min_length=1, max_length=300)
    content: str | None = Field(default=None, min_length=1)
    tags: list[str] | None = None
    featured_image_url: str | None = Field(default=None, max_length=500)
    source_name: str | None = Field(default=None, max_length=100)
    source_url: str | None = Field(default=None, max_length=500)
    is_featured: bool | None = None
    is_breaking: bool | None = None
    priority: int | None = Field(default=None, ge=0, le=10)
    slug: str | None = Field(default=None, max_length=255, pattern=SLUG_PATTERN)
    category_id: UUID | None = None
    subcategory_id: UUID | None = None
    version: int = Field(..., description="Current version for optimistic locking")

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str] | None:
        cleaned = _clean_list(v)
        return [t.lower() for t in cleaned] if cleaned is not None else None


class TechNewsResponse(TechNewsBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    slug: str
    status: PublishStatus
    published_at: datetime | None = None
    view_count: int
    category_id: UUID
    subcategory_id: UUID | None = None
    category: TaxonomyBrief | None = None
    subcategory: TaxonomyBrief | None = None
    author: AuthorBrief | None = None
    version: int
    created_at: datetime
    updated_at: datetime


class TechNewsListResponse(BaseModel):
    items: list[TechNewsResponse]
    total: int
    page: int
    page_size: int


# ============================================================================
# Review Highlights and Stats
# ============================================================================


class ReviewBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    slug: str
    product_name: str
    brand: str | None = None
    rating: float | None = None
    featured_image_url: str | None = None
    view_count: int = 0


class CategoryCount(BaseModel):
    category: str
    count: int


class ReviewStats(BaseModel):
    """Dashboard counters for reviews in one tenant."""

    total: int
    published: int
    draft: int
    archived: int
    featured: int
    created_last_7_days: int
    by_category: list[CategoryCount]
    most_viewed: list[ReviewBrief]


# ============================================================================
# Comparison Schemas
# ============================================================================


class ComparisonMetric(BaseModel):
    label: str = Field(..., min_length=1, max_length=100)
    product_a_value: str = Field(..., min_length=1, max_length=200)
    product_b_value: str = Field(..., min_length=1, max_length=200)
    better: MetricVerdict


class ComparisonBase(SEOFields):
    title: str = Field(..., min_length=1, max_length=200)
    summary: str | None = Field(default=None, max_length=500)
    content: str | None = None
    metrics: list[ComparisonMetric] = Field(default_factory=list)
    is_featured: bool = False
    priority: int = Field(default=0, ge=0, le=10)


class ComparisonCreate(ComparisonBase):
    """Schema for creating a comparison.

    Both products must be published reviews. Points and the winner are
    computed from ``metrics``.
    """

    slug: str | None = Field(default=None, max_length=255, pattern=SLUG_PATTERN)
    product_a_id: UUID
    product_b_id: UUID

    @model_validator(mode="after")
    def check_distinct_products(self) -> "ComparisonCreate":
        if self.product_a_id == self.product_b_id:
            raise ValueError("A product cannot be compared with itself")
        return self


class ComparisonUpdate(SEOFields, PartialUpdate):
    non_nullable = frozenset({
        "title", "metrics", "is_featured", "priority", "product_a_id", "product_b_id",
    })

    title: str | None = Field(default=None, min_length=1, max_length=200)
    summary: str | None = Field(default=None, max_length=500)
    content: str | None = None
    metrics: list[ComparisonMetric] | None = None
    is_featured: bool | None = None
    priority: int | None = Field(default=None, ge=0, le=10)
    slug: str | None = Field(default=None, max_length=255, pattern=SLUG_PATTERN)
    product_a_id: UUID | None = None
    product_b_id: UUID | None = None
    version: int = Field(..., description="Current version for optimistic locking")


class ComparisonResponse(ComparisonBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    slug: str
    product_a_id: UUID
    product_b_id: UUID
    product_a: ReviewBrief | None = None
    product_b: ReviewBrief | None = None
    product_a_points: int
    product_b_points: int
    winner: ComparisonWinner
    status: PublishStatus
    published_at: datetime | None = None
    view_count: int
    author: AuthorBrief | None = None
    updated_by_id: UUID | None = None
    version: int
    created_at: datetime
    updated_at: datetime


class ComparisonListResponse(BaseModel):
    items: list[ComparisonResponse]
    total: int
    page: int
    page_size: int


# ============================================================================
# Comment Schemas
# ============================================================================


class CommentCreate(BaseModel):
    """Schema for posting a comment on exactly one review or news item."""

    content: str = Field(..., min_length=1, max_length=1000)
    review_id: UUID | None = None
    tech_news_id: UUID | None = None
    parent_id: UUID | None = None

    @model_validator(mode="after")
    def single_target(self) -> "CommentCreate":
        if (self.review_id is None) == (self.tech_news_id is None):
            raise ValueError("Exactly one of review_id or tech_news_id is required")
        return self


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)


class CommentModerate(BaseModel):
    """Moderation decision. A reason is required when hiding."""

    is_approved: bool = True
    is_hidden: bool = False
    hidden_reason: str | None = Field(default=None, max_length=200)

    @model_validator(mode="after")
    def reason_when_hidden(self) -> "CommentModerate":
        if self.is_hidden and not self.hidden_reason:
            raise ValueError("hidden_reason is required when hiding a comment")
        return self


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    content: str
    review_id: UUID | None = None
    tech_news_id: UUID | None = None
    parent_id: UUID | None = None
    author: AuthorBrief | None = None
    is_approved: bool
    is_hidden: bool
    hidden_reason: str | None = None
    is_edited: bool
    edited_at: datetime | None = None
    moderated_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class CommentPublicResponse(BaseModel):
    """Visible comment as shown under an article."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    content: str
    parent_id: UUID | None = None
    author: AuthorBrief | None = None
    is_edited: bool
    created_at: datetime


class CommentListResponse(BaseModel):
    items: list[CommentResponse]
    total: int
    page: int
    page_size: int


class CommentPublicListResponse(BaseModel):
    items: list[CommentPublicResponse]
    total: int
    page: int
    page_size: int


# ============================================================================
# Static Page Schemas
# ============================================================================


class StaticPageBase(SEOFields):
    title: str = Field(..., min_length=1, max_length=200)
    page_type: StaticPageType
    excerpt: str | None = Field(default=None, max_length=300)
    content: str = Field(..., min_length=1)
    show_in_footer: bool = True
    show_in_menu: bool = False
    sort_order: int = Field(default=0, ge=0)


class StaticPageCreate(StaticPageBase):
    slug: str | None = Field(default=None, max_length=255, pattern=SLUG_PATTERN)
    publish: bool = Field(default=False, description="Publish immediately")


class StaticPageUpdate(SEOFields, PartialUpdate):
    non_nullable = frozenset({
        "title", "content", "show_in_footer", "show_in_menu", "sort_order",
    })

    title: str | None = Field(default=None, min_length=1, max_length=200)
    page_type: StaticPageType | None = None
    excerpt: str | None = Field(default=None, max_length=300)
    content: str | None = Field(default=None, min_length=1)
    show_in_footer: bool | None = None
    show_in_menu: bool | None = None
    sort_order: int | None = Field(default=None, ge=0)
    slug: str | None = Field(default=None, max_length=255, pattern=SLUG_PATTERN)
    version: int = Field(..., description="Current version for optimistic locking")


class StaticPageResponse(StaticPageBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    slug: str
    status: PublishStatus
    published_at: datetime | None = None
    updated_by_id: UUID | None = None
    version: int
    created_at: datetime
    updated_at: datetime


class StaticPageListResponse(BaseModel):
    items: list[StaticPageResponse]
    total: int
    page: int
    page_size: int
