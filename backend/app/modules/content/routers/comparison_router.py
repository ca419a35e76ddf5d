"""Comparison routes for content module.

Comparisons are built from reviews, so they use the ``reviews`` grants.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.base_model import PublishStatus
from app.core.database import get_db
from app.core.dependencies import Pagination, PublicTenantId
from app.core.permissions import Action, Resource
from app.core.security import PermissionChecker, get_current_tenant_id
from app.modules.auth.models import User
from app.modules.content.schemas import (
    ComparisonCreate,
    ComparisonListResponse,
    ComparisonResponse,
    ComparisonUpdate,
)
from app.modules.content.service import ComparisonService, ComparisonSort

router = APIRouter()


def _page(items: list, total: int, pagination: Pagination) -> ComparisonListResponse:
    return ComparisonListResponse(
        items=[ComparisonResponse.model_validate(c) for c in items],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


# ============================================================================
# Public Routes - Comparisons
# ============================================================================


@router.get(
    "/public/comparisons",
    response_model=ComparisonListResponse,
    summary="List published comparisons",
    tags=["Public - Content"],
)
async def list_comparisons_public(
    pagination: Pagination,
    tenant_id: PublicTenantId,
    category_id: UUID | None = Query(default=None),
    is_featured: bool | None = Query(default=None),
    search: str | None = Query(default=None),
    sort: ComparisonSort = Query(default=ComparisonSort.LATEST),
    db: AsyncSession = Depends(get_db),
) -> ComparisonListResponse:
    service = ComparisonService(db)
    comparisons, total = await service.list_published(
        tenant_id=tenant_id,
        page=pagination.page,
        page_size=pagination.page_size,
        category_id=category_id,
        is_featured=is_featured,
        search=search,
        sort=sort,
    )
    return _page(comparisons, total, pagination)


@router.get(
    "/public/comparisons/featured",
    response_model=list[ComparisonResponse],
    summary="Featured comparisons",
    tags=["Public - Content"],
)
async def list_featured_comparisons(
    tenant_id: PublicTenantId,
    limit: int = Query(default=5, ge=1, le=20),
    db: AsyncSession = Depends(get_db),
) -> list[ComparisonResponse]:
    service = ComparisonService(db)
    comparisons = await service.list_featured(tenant_id, limit=limit)
    return [ComparisonResponse.model_validate(c) for c in comparisons]


@router.get(
    "/public/comparisons/search",
    response_model=ComparisonListResponse,
    summary="Search published comparisons",
    tags=["Public - Content"],
)
async def search_comparisons(
    pagination: Pagination,
    tenant_id: PublicTenantId,
    q: str = Query(..., max_length=100),
    db: AsyncSession = Depends(get_db),
) -> ComparisonListResponse:
    service = ComparisonService(db)
    comparisons, total = await service.search_published(
        tenant_id,
        q,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return _page(comparisons, total, pagination)


@router.get(
    "/public/comparisons/by-category/{category_id}",
    response_model=ComparisonListResponse,
    summary="Published comparisons in a category",
    tags=["Public - Content"],
)
async def list_comparisons_by_category(
    category_id: UUID,
    pagination: Pagination,
    tenant_id: PublicTenantId,
    db: AsyncSession = Depends(get_db),
) -> ComparisonListResponse:
    service = ComparisonService(db)
    comparisons, total = await service.list_published(
        tenant_id=tenant_id,
        page=pagination.page,
        page_size=pagination.page_size,
        category_id=category_id,
    )
    return _page(comparisons, total, pagination)


@router.get(
    "/public/comparisons/{slug}",
    response_model=ComparisonResponse,
    summary="Get published comparison by slug",
    tags=["Public - Content"],
)
async def get_comparison_public(
    slug: str,
    tenant_id: PublicTenantId,
    db: AsyncSession = Depends(get_db),
) -> ComparisonResponse:
    service = ComparisonService(db)
    comparison = await service.get_published_by_slug(slug, tenant_id)
    response = ComparisonResponse.model_validate(comparison)

    await service.increment_view(comparison.id)
    return response


# ============================================================================
# Admin Routes - Comparisons
# ============================================================================


@router.get(
    "/admin/comparisons",
    response_model=ComparisonListResponse,
    summary="List comparisons",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.REVIEWS, Action.READ))],
)
async def list_comparisons_admin(
    pagination: Pagination,
    status_filter: PublishStatus | None = Query(default=None, alias="status"),
    category_id: UUID | None = Query(default=None),
    is_featured: bool | None = Query(default=None),
    search: str | None = Query(default=None),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> ComparisonListResponse:
    service = ComparisonService(db)
    comparisons, total = await service.list_items(
        tenant_id=tenant_id,
        page=pagination.page,
        page_size=pagination.page_size,
        status=status_filter,
        category_id=category_id,
        is_featured=is_featured,
        search=search,
    )
    return _page(comparisons, total, pagination)


@router.post(
    "/admin/comparisons",
    response_model=ComparisonResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create comparison",
    description="Both products must be published reviews. Created as a draft.",
    tags=["Admin - Content"],
)
async def create_comparison(
    data: ComparisonCreate,
    user: User = Depends(PermissionChecker(Resource.REVIEWS, Action.CREATE)),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> ComparisonResponse:
    service = ComparisonService(db)
    comparison = await service.create(tenant_id, data, author_id=user.id)
    return ComparisonResponse.model_validate(comparison)


@router.get(
    "/admin/comparisons/{comparison_id}",
    response_model=ComparisonResponse,
    summary="Get comparison",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.REVIEWS, Action.READ))],
)
async def get_comparison_admin(
    comparison_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> ComparisonResponse:
    service = ComparisonService(db)
    comparison = await service.get_by_id(comparison_id, tenant_id)
    return ComparisonResponse.model_validate(comparison)


@router.patch(
    "/admin/comparisons/{comparison_id}",
    response_model=ComparisonResponse,
    summary="Update comparison",
    tags=["Admin - Content"],
)
async def update_comparison(
    comparison_id: UUID,
    data: ComparisonUpdate,
    user: User = Depends(PermissionChecker(Resource.REVIEWS, Action.UPDATE)),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> ComparisonResponse:
    service = ComparisonService(db)
    comparison = await service.update(comparison_id, tenant_id, data, user_id=user.id)
    return ComparisonResponse.model_validate(comparison)


@router.post(
    "/admin/comparisons/{comparison_id}/publish",
    response_model=ComparisonResponse,
    summary="Publish comparison",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.REVIEWS, Action.PUBLISH))],
)
async def publish_comparison(
    comparison_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> ComparisonResponse:
    service = ComparisonService(db)
    comparison = await service.publish(comparison_id, tenant_id)
    return ComparisonResponse.model_validate(comparison)


@router.post(
    "/admin/comparisons/{comparison_id}/unpublish",
    response_model=ComparisonResponse,
    summary="Unpublish comparison",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.REVIEWS, Action.PUBLISH))],
)
async def unpublish_comparison(
    comparison_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> ComparisonResponse:
    service = ComparisonService(db)
    comparison = await service.unpublish(comparison_id, tenant_id)
    return ComparisonResponse.model_validate(comparison)


@router.delete(
    "/admin/comparisons/{comparison_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete comparison",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.REVIEWS, Action.DELETE))],
)
async def delete_comparison(
    comparison_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> None:
    service = ComparisonService(db)
    await service.soft_delete(comparison_id, tenant_id)
