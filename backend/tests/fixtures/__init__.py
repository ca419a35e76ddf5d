"""Test fixtures and factories."""

from tests.fixtures.factories import (
    CategoryFactory,
    CommentFactory,
    ReviewFactory,
    RoleFactory,
    StaticPageFactory,
    SubcategoryFactory,
    TechNewsFactory,
    TenantFactory,
    UserFactory,
)

__all__ = [
    "TenantFactory",
    "RoleFactory",
    "UserFactory",
    "CategoryFactory",
    "SubcategoryFactory",
    "ReviewFactory",
    "TechNewsFactory",
    "CommentFactory",
    "StaticPageFactory",
]
