"""Tech news routes for content module."""

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
    TechNewsCreate,
    TechNewsListResponse,
    TechNewsResponse,
    TechNewsUpdate,
)
from app.modules.content.service import TechNewsService

router = APIRouter()


# ============================================================================
# Public Routes - Tech News
# ============================================================================


@router.get(
    "/public/tech-news",
    response_model=TechNewsListResponse,
    summary="List published tech news",
    tags=["Public - Content"],
)
async def list_tech_news_public(
    pagination: Pagination,
    tenant_id: PublicTenantId,
    category_id: UUID | None = Query(default=None),
    subcategory_id: UUID | None = Query(default=None),
    is_featured: bool | None = Query(default=None),
    search: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> TechNewsListResponse:
    service = TechNewsService(db)
    items, total = await service.list_published(
        tenant_id=tenant_id,
        page=pagination.page,
        page_size=pagination.page_size,
        category_id=category_id,
        subcategory_id=subcategory_id,
        is_featured=is_featured,
        search=search,
    )

    return TechNewsListResponse(
        items=[TechNewsResponse.model_validate(r) for r in items],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.get(
    "/public/tech-news/{slug}",
    response_model=TechNewsResponse,
    summary="Get published news item by slug",
    tags=["Public - Content"],
)
async def get_tech_news_public(
    slug: str,
    tenant_id: PublicTenantId,
    db: AsyncSession = Depends(get_db),
) -> TechNewsResponse:
    service = TechNewsService(db)
    news = await service.get_published_by_slug(slug, tenant_id)
    response = TechNewsResponse.model_validate(news)

    await service.increment_view(news.id)
    return response


# ============================================================================
# Admin Routes - Tech News
# ============================================================================


@router.get(
    "/admin/tech-news",
    response_model=TechNewsListResponse,
    summary="List tech news",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.TECH_NEWS, Action.READ))],
)
async def list_tech_news_admin(
    pagination: Pagination,
    status_filter: PublishStatus | None = Query(default=None, alias="status"),
    category_id: UUID | None = Query(default=None),
    subcategory_id: UUID | None = Query(default=None),
    is_featured: bool | None = Query(default=None),
    search: str | None = Query(default=None),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> TechNewsListResponse:
    service = TechNewsService(db)
    items, total = await service.list_items(
        tenant_id=tenant_id,
        page=pagination.page,
        page_size=pagination.page_size,
        status=status_filter,
        category_id=category_id,
        subcategory_id=subcategory_id,
        is_featured=is_featured,
        search=search,
    )

    return TechNewsListResponse(
        items=[TechNewsResponse.model_validate(r) for r in items],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.post(
    "/admin/tech-news",
    response_model=TechNewsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create news item",
    description="New news items are created as drafts.",
    tags=["Admin - Content"],
)
async def create_tech_news(
    data: TechNewsCreate,
    user: User = Depends(PermissionChecker(Resource.TECH_NEWS, Action.CREATE)),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> TechNewsResponse:
    service = TechNewsService(db)
    news = await service.create(tenant_id, data, author_id=user.id)
    return TechNewsResponse.model_validate(news)


@router.get(
    "/admin/tech-news/{news_id}",
    response_model=TechNewsResponse,
    summary="Get news item",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.TECH_NEWS, Action.READ))],
)
async def get_tech_news_admin(
    news_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> TechNewsResponse:
    service = TechNewsService(db)
    news = await service.get_by_id(news_id, tenant_id)
    return TechNewsResponse.model_validate(news)


@router.get(
    "/admin/tech-news/{news_id}/usage",
    response_model=UsageReport,
    summary="News item usage",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.TECH_NEWS, Action.READ))],
)
async def get_tech_news_usage(
    news_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> UsageReport:
    service = TechNewsService(db)
    return await service.get_usage(news_id, tenant_id)


@router.patch(
    "/admin/tech-news/{news_id}",
    response_model=TechNewsResponse,
    summary="Update news item",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.TECH_NEWS, Action.UPDATE))],
)
async def update_tech_news(
    news_id: UUID,
    data: TechNewsUpdate,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> TechNewsResponse:
    service = TechNewsService(db)
    news = await service.update(news_id, tenant_id, data)
    return TechNewsResponse.model_validate(news)


@router.post(
    "/admin/tech-news/{news_id}/publish",
    response_model=TechNewsResponse,
    summary="Publish news item",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.TECH_NEWS, Action.PUBLISH))],
)
async def publish_tech_news(
    news_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> TechNewsResponse:
    service = TechNewsService(db)
    news = await service.publish(news_id, tenant_id)
    return TechNewsResponse.model_validate(news)


@router.post(
    "/admin/tech-news/{news_id}/unpublish",
    response_model=TechNewsResponse,
    summary="Unpublish news item",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.TECH_NEWS, Action.PUBLISH))],
)
async def unpublish_tech_news(
    news_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> TechNewsResponse:
    service = TechNewsService(db)
    news = await service.unpublish(news_id, tenant_id)
    return TechNewsResponse.model_validate(news)


@router.post(
    "/admin/tech-news/{news_id}/archive",
    response_model=TechNewsResponse,
    summary="Archive news item",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.TECH_NEWS, Action.PUBLISH))],
)
async def archive_tech_news(
    news_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> TechNewsResponse:
    service = TechNewsService(db)
    news = await service.archive(news_id, tenant_id)
    return TechNewsResponse.model_validate(news)


@router.delete(
    "/admin/tech-news/{news_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete news item",
    description="Fails with 409 while the news item has comments.",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.TECH_NEWS, Action.DELETE))],
)
async def delete_tech_news(
    news_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> None:
    service = TechNewsService(db)
    await service.soft_delete(news_id, tenant_id)
