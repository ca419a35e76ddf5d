"""Pydantic schemas for catalog module."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.schemas import PartialUpdate
from app.core.slugs import SLUG_PATTERN
from app.modules.catalog.models import CategoryGroup

HEX_COLOR_PATTERN = r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"


class SEOFields(BaseModel):
    meta_title: str | None = Field(default=None, max_length=150)
    meta_description: str | None = Field(default=None, max_length=300)


# ============================================================================
# Category Schemas
# ============================================================================


class CategoryBase(SEOFields):
    """Base category schema."""

    name: str = Field(..., min_length=1, max_length=100)
    group: CategoryGroup
    description: str = Field(..., min_length=1, max_length=500)
    icon: str | None = Field(default=None, max_length=500)
    image: str | None = Field(default=None, max_length=500)
    color: str = Field(default="#000000", pattern=HEX_COLOR_PATTERN)
    is_active: bool = True


class CategoryCreate(CategoryBase):
    """Schema for creating a category.

    ``slug`` defaults to one derived from ``name``; ``sort_order`` defaults
    to the position after the current last category.
    """

    slug: str | None = Field(default=None, max_length=255, pattern=SLUG_PATTERN)
    sort_order: int | None = Field(default=None, ge=0)


class CategoryUpdate(SEOFields, PartialUpdate):
    """Schema for updating a category."""

    non_nullable = frozenset({"name", "description", "color", "is_active"})

    name: str | None = Field(default=None, min_length=1, max_length=100)
    group: CategoryGroup | None = None
    description: str | None = Field(default=None, min_length=1, max_length=500)
    icon: str | None = Field(default=None, max_length=500)
    image: str | None = Field(default=None, max_length=500)
    color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)
    is_active: bool | None = None
    slug: str | None = Field(default=None, max_length=255, pattern=SLUG_PATTERN)
    sort_order: int | None = Field(default=None, ge=0)
    version: int = Field(..., description="Current version for optimistic locking")


class CategoryResponse(CategoryBase):
    """Schema for category response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    slug: str
    sort_order: int
    created_by_id: UUID | None = None
    updated_by_id: UUID | None = None
    version: int
    created_at: datetime
    updated_at: datetime


class CategoryListResponse(BaseModel):
    items: list[CategoryResponse]
    total: int
    page: int
    page_size: int


# ============================================================================
# Subcategory Schemas
# ============================================================================


class SubcategoryBase(SEOFields):
    """Base subcategory schema."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    icon: str | None = Field(default=None, max_length=500)
    image: str | None = Field(default=None, max_length=500)
    is_active: bool = True


class SubcategoryCreate(SubcategoryBase):
    """Schema for creating a subcategory. Sort order is per parent category."""

    category_id: UUID
    slug: str | None = Field(default=None, max_length=255, pattern=SLUG_PATTERN)
    sort_order: int | None = Field(default=None, ge=0)


class SubcategoryUpdate(SEOFields, PartialUpdate):
    """Schema for updating a subcategory."""

    non_nullable = frozenset({"name", "description", "is_active"})

    category_id: UUID | None = None
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, min_length=1, max_length=500)
    icon: str | None = Field(default=None, max_length=500)
    image: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None
    slug: str | None = Field(default=None, max_length=255, pattern=SLUG_PATTERN)
    sort_order: int | None = Field(default=None, ge=0)
    version: int = Field(..., description="Current version for optimistic locking")


class CategoryBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    group: CategoryGroup


class SubcategoryResponse(SubcategoryBase):
    """Schema for subcategory response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    category_id: UUID
    category: CategoryBrief | None = None
    slug: str
    sort_order: int
    version: int
    created_at: datetime
    updated_at: datetime


class SubcategoryListResponse(BaseModel):
    items: list[SubcategoryResponse]
    total: int
    page: int
    page_size: int


# ============================================================================
# Public Menu Schemas
# ============================================================================


class MenuSubcategory(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str


class PublicCategoryResponse(CategoryResponse):
    """Category page: the category and its active subcategories."""

    subcategories: list[MenuSubcategory] = Field(default_factory=list)


class MenuCategory(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    icon: str | None = None
    image: str | None = None
    color: str
    sort_order: int
    subcategories: list[MenuSubcategory] = Field(default_factory=list)


class MenuGroup(BaseModel):
    group: CategoryGroup
    categories: list[MenuCategory]


class MenuStaticPage(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    slug: str
    page_type: str
    sort_order: int


class MenuResponse(BaseModel):
    """Navigation tree: groups -> categories -> subcategories, plus menu pages."""

    groups: list[MenuGroup]
    static_pages: list[MenuStaticPage] = Field(default_factory=list)
