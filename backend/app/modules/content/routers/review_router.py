"""Review routes for content module."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.base_model import PublishStatus
from app.core.database import get_db
from app.core.dependencies import Pagination, PublicTenantId
from app.core.permissions import Action, Resource
from app.core.security import PermissionChecker, get_current_tenant_id
from app.core.usage import UsageReport
from app.modules.auth.models import User
from app.modules.content.schemas import (
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewStats,
    ReviewUpdate,
)
from app.modules.content.service import ReviewService

router = APIRouter()


# ============================================================================
# Public Routes - Reviews
# ============================================================================


@router.get(
    "/public/reviews",
    response_model=ReviewListResponse,
    summary="List published reviews",
    tags=["Public - Content"],
)
async def list_reviews_public(
    pagination: Pagination,
    tenant_id: PublicTenantId,
    category_id: UUID | None = Query(default=None),
    subcategory_id: UUID | None = Query(default=None),
    is_featured: bool | None = Query(default=None),
    search: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> ReviewListResponse:
    service = ReviewService(db)
    reviews, total = await service.list_published(
        tenant_id=tenant_id,
        page=pagination.page,
        page_size=pagination.page_size,
        category_id=category_id,
        subcategory_id=subcategory_id,
        is_featured=is_featured,
        search=search,
    )

    return ReviewListResponse(
        items=[ReviewResponse.model_validate(r) for r in reviews],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.get(
    "/public/reviews/trending",
    response_model=list[ReviewResponse],
    summary="Trending reviews",
    description="Most viewed reviews published in the last `days` days.",
    tags=["Public - Content"],
)
async def list_trending_reviews(
    tenant_id: PublicTenantId,
    days: int = Query(default=7, ge=1, le=365),
    limit: int = Query(default=10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
) -> list[ReviewResponse]:
    service = ReviewService(db)
    reviews = await service.list_trending(tenant_id, days=days, limit=limit)
    return [ReviewResponse.model_validate(r) for r in reviews]


@router.get(
    "/public/reviews/featured",
    response_model=list[ReviewResponse],
    summary="Featured reviews",
    tags=["Public - Content"],
)
async def list_featured_reviews(
    tenant_id: PublicTenantId,
    limit: int = Query(default=5, ge=1, le=20),
    db: AsyncSession = Depends(get_db),
) -> list[ReviewResponse]:
    service = ReviewService(db)
    reviews = await service.list_featured(tenant_id, limit=limit)
    return [ReviewResponse.model_validate(r) for r in reviews]


@router.get(
    "/public/reviews/{slug}",
    response_model=ReviewResponse,
    summary="Get published review by slug",
    tags=["Public - Content"],
)
async def get_review_public(
    slug: str,
    tenant_id: PublicTenantId,
    db: AsyncSession = Depends(get_db),
) -> ReviewResponse:
    service = ReviewService(db)
    review = await service.get_published_by_slug(slug, tenant_id)
    response = ReviewResponse.model_validate(review)

    await service.increment_view(review.id)
    return response


# ============================================================================
# Admin Routes - Reviews
# ============================================================================


@router.get(
    "/admin/reviews",
    response_model=ReviewListResponse,
    summary="List reviews",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.REVIEWS, Action.READ))],
)
async def list_reviews_admin(
    pagination: Pagination,
    status_filter: PublishStatus | None = Query(default=None, alias="status"),
    category_id: UUID | None = Query(default=None),
    subcategory_id: UUID | None = Query(default=None),
    is_featured: bool | None = Query(default=None),
    search: str | None = Query(default=None),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> ReviewListResponse:
    service = ReviewService(db)
    reviews, total = await service.list_items(
        tenant_id=tenant_id,
        page=pagination.page,
        page_size=pagination.page_size,
        status=status_filter,
        category_id=category_id,
        subcategory_id=subcategory_id,
        is_featured=is_featured,
        search=search,
    )

    return ReviewListResponse(
        items=[ReviewResponse.model_validate(r) for r in reviews],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.post(
    "/admin/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create review",
    description="New reviews are created as drafts.",
    tags=["Admin - Content"],
)
async def create_review(
    data: ReviewCreate,
    user: User = Depends(PermissionChecker(Resource.REVIEWS, Action.CREATE)),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> ReviewResponse:
    service = ReviewService(db)
    review = await service.create(tenant_id, data, author_id=user.id)
    return ReviewResponse.model_validate(review)


@router.get(
    "/admin/reviews/stats",
    response_model=ReviewStats,
    summary="Review statistics",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.REVIEWS, Action.READ))],
)
async def get_review_stats(
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> ReviewStats:
    service = ReviewService(db)
    return await service.get_stats(tenant_id)


@router.get(
    "/admin/reviews/{review_id}",
    response_model=ReviewResponse,
    summary="Get review",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.REVIEWS, Action.READ))],
)
async def get_review_admin(
    review_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> ReviewResponse:
    service = ReviewService(db)
    review = await service.get_by_id(review_id, tenant_id)
    return ReviewResponse.model_validate(review)


@router.get(
    "/admin/reviews/{review_id}/usage",
    response_model=UsageReport,
    summary="Review usage",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.REVIEWS, Action.READ))],
)
async def get_review_usage(
    review_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> UsageReport:
    service = ReviewService(db)
    return await service.get_usage(review_id, tenant_id)


@router.patch(
    "/admin/reviews/{review_id}",
    response_model=ReviewResponse,
    summary="Update review",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.REVIEWS, Action.UPDATE))],
)
async def update_review(
    review_id: UUID,
    data: ReviewUpdate,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> ReviewResponse:
    service = ReviewService(db)
    review = await service.update(review_id, tenant_id, data)
    return ReviewResponse.model_validate(review)


@router.post(
    "/admin/reviews/{review_id}/publish",
    response_model=ReviewResponse,
    summary="Publish review",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.REVIEWS, Action.PUBLISH))],
)
async def publish_review(
    review_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> ReviewResponse:
    service = ReviewService(db)
    review = await service.publish(review_id, tenant_id)
    return ReviewResponse.model_validate(review)


@router.post(
    "/admin/reviews/{review_id}/unpublish",
    response_model=ReviewResponse,
    summary="Unpublish review",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.REVIEWS, Action.PUBLISH))],
)
async def unpublish_review(
    review_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> ReviewResponse:
    service = ReviewService(db)
    review = await service.unpublish(review_id, tenant_id)
    return ReviewResponse.model_validate(review)


@router.post(
    "/admin/reviews/{review_id}/archive",
    response_model=ReviewResponse,
    summary="Archive review",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.REVIEWS, Action.PUBLISH))],
)
async def archive_review(
    review_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> ReviewResponse:
    service = ReviewService(db)
    review = await service.archive(review_id, tenant_id)
    return ReviewResponse.model_validate(review)


@router.delete(
    "/admin/reviews/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete review",
    description="Fails with 409 while comments or comparisons reference the review.",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.REVIEWS, Action.DELETE))],
)
async def delete_review(
    review_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> None:
    service = ReviewService(db)
    await service.soft_delete(review_id, tenant_id)
