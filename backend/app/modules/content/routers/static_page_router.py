"""Static page routes for content module."""

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
    StaticPageCreate,
    StaticPageListResponse,
    StaticPageResponse,
    StaticPageUpdate,
)
from app.modules.content.service import StaticPageService

router = APIRouter()


# ============================================================================
# Public Routes - Static Pages
# ============================================================================


@router.get(
    "/public/pages",
    response_model=list[StaticPageResponse],
    summary="Footer pages",
    description="Published pages flagged for the footer, in display order.",
    tags=["Public - Content"],
)
async def list_footer_pages_public(
    tenant_id: PublicTenantId,
    db: AsyncSession = Depends(get_db),
) -> list[StaticPageResponse]:
    service = StaticPageService(db)
    pages = await service.list_footer(tenant_id)
    return [StaticPageResponse.model_validate(p) for p in pages]


@router.get(
    "/public/pages/{slug}",
    response_model=StaticPageResponse,
    summary="Get published page by slug",
    tags=["Public - Content"],
)
async def get_page_public(
    slug: str,
    tenant_id: PublicTenantId,
    db: AsyncSession = Depends(get_db),
) -> StaticPageResponse:
    service = StaticPageService(db)
    page = await service.get_published_by_slug(slug, tenant_id)
    return StaticPageResponse.model_validate(page)


# ============================================================================
# Admin Routes - Static Pages
# ============================================================================


@router.get(
    "/admin/pages",
    response_model=StaticPageListResponse,
    summary="List static pages",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.STATIC_PAGES, Action.READ))],
)
async def list_pages_admin(
    pagination: Pagination,
    status_filter: PublishStatus | None = Query(default=None, alias="status"),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> StaticPageListResponse:
    service = StaticPageService(db)
    pages, total = await service.list_pages(
        tenant_id=tenant_id,
        page=pagination.page,
        page_size=pagination.page_size,
        status=status_filter,
    )

    return StaticPageListResponse(
        items=[StaticPageResponse.model_validate(p) for p in pages],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.post(
    "/admin/pages",
    response_model=StaticPageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create static page",
    tags=["Admin - Content"],
)
async def create_page(
    data: StaticPageCreate,
    user: User = Depends(PermissionChecker(Resource.STATIC_PAGES, Action.CREATE)),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> StaticPageResponse:
    service = StaticPageService(db)
    page = await service.create(tenant_id, data, user_id=user.id)
    return StaticPageResponse.model_validate(page)


@router.get(
    "/admin/pages/{page_id}",
    response_model=StaticPageResponse,
    summary="Get static page",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.STATIC_PAGES, Action.READ))],
)
async def get_page_admin(
    page_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> StaticPageResponse:
    service = StaticPageService(db)
    page = await service.get_by_id(page_id, tenant_id)
    return StaticPageResponse.model_validate(page)


@router.patch(
    "/admin/pages/{page_id}",
    response_model=StaticPageResponse,
    summary="Update static page",
    tags=["Admin - Content"],
)
async def update_page(
    page_id: UUID,
    data: StaticPageUpdate,
    user: User = Depends(PermissionChecker(Resource.STATIC_PAGES, Action.UPDATE)),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> StaticPageResponse:
    service = StaticPageService(db)
    page = await service.update(page_id, tenant_id, data, user_id=user.id)
    return StaticPageResponse.model_validate(page)


@router.post(
    "/admin/pages/{page_id}/publish",
    response_model=StaticPageResponse,
    summary="Publish static page",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.STATIC_PAGES, Action.UPDATE))],
)
async def publish_page(
    page_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> StaticPageResponse:
    service = StaticPageService(db)
    page = await service.publish(page_id, tenant_id)
    return StaticPageResponse.model_validate(page)


@router.post(
    "/admin/pages/{page_id}/unpublish",
    response_model=StaticPageResponse,
    summary="Unpublish static page",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.STATIC_PAGES, Action.UPDATE))],
)
async def unpublish_page(
    page_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> StaticPageResponse:
    service = StaticPageService(db)
    page = await service.unpublish(page_id, tenant_id)
    return StaticPageResponse.model_validate(page)


@router.delete(
    "/admin/pages/{page_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete static page",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.STATIC_PAGES, Action.DELETE))],
)
async def delete_page(
    page_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> None:
    service = StaticPageService(db)
    await service.soft_delete(page_id, tenant_id)
