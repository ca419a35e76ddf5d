"""Comment routes for content module."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import Pagination, PublicTenantId
from app.core.permissions import Action, Resource
from app.core.security import PermissionChecker, get_current_tenant_id
from app.modules.auth.models import User
from app.modules.content.schemas import (
    CommentCreate,
    CommentListResponse,
    CommentModerate,
    CommentPublicListResponse,
    CommentPublicResponse,
    CommentResponse,
    CommentUpdate,
)
from app.modules.content.service import CommentService

router = APIRouter()


# ============================================================================
# Public Routes - Comments
# ============================================================================


@router.get(
    "/public/reviews/{review_id}/comments",
    response_model=CommentPublicListResponse,
    summary="Comments of a review",
    tags=["Public - Content"],
)
async def list_review_comments_public(
    review_id: UUID,
    pagination: Pagination,
    tenant_id: PublicTenantId,
    db: AsyncSession = Depends(get_db),
) -> CommentPublicListResponse:
    service = CommentService(db)
    comments, total = await service.list_visible(
        tenant_id,
        review_id=review_id,
        page=pagination.page,
        page_size=pagination.page_size,
    )

    return CommentPublicListResponse(
        items=[CommentPublicResponse.model_validate(c) for c in comments],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.get(
    "/public/tech-news/{news_id}/comments",
    response_model=CommentPublicListResponse,
    summary="Comments of a news item",
    tags=["Public - Content"],
)
async def list_tech_news_comments_public(
    news_id: UUID,
    pagination: Pagination,
    tenant_id: PublicTenantId,
    db: AsyncSession = Depends(get_db),
) -> CommentPublicListResponse:
    service = CommentService(db)
    comments, total = await service.list_visible(
        tenant_id,
        tech_news_id=news_id,
        page=pagination.page,
        page_size=pagination.page_size,
    )

    return CommentPublicListResponse(
        items=[CommentPublicResponse.model_validate(c) for c in comments],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


# ============================================================================
# Authenticated Routes - Comments
# ============================================================================


@router.post(
    "/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post comment",
    description="Comment on a published review or news item.",
    tags=["Comments"],
)
async def create_comment(
    data: CommentCreate,
    user: User = Depends(PermissionChecker(Resource.COMMENTS, Action.CREATE)),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> CommentResponse:
    service = CommentService(db)
    comment = await service.create(tenant_id, data, user)
    return CommentResponse.model_validate(comment)


@router.patch(
    "/comments/{comment_id}",
    response_model=CommentResponse,
    summary="Edit comment",
    description="Authors may edit their own comments; moderators may edit any.",
    tags=["Comments"],
)
async def update_comment(
    comment_id: UUID,
    data: CommentUpdate,
    user: User = Depends(PermissionChecker(Resource.COMMENTS, Action.UPDATE)),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> CommentResponse:
    service = CommentService(db)
    comment = await service.update(comment_id, tenant_id, data, user)
    return CommentResponse.model_validate(comment)


# ============================================================================
# Admin Routes - Comments
# ============================================================================


@router.get(
    "/admin/comments",
    response_model=CommentListResponse,
    summary="List comments",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.COMMENTS, Action.READ))],
)
async def list_comments_admin(
    pagination: Pagination,
    review_id: UUID | None = Query(default=None),
    tech_news_id: UUID | None = Query(default=None),
    is_hidden: bool | None = Query(default=None),
    is_approved: bool | None = Query(default=None),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> CommentListResponse:
    service = CommentService(db)
    comments, total = await service.list_comments(
        tenant_id=tenant_id,
        page=pagination.page,
        page_size=pagination.page_size,
        review_id=review_id,
        tech_news_id=tech_news_id,
        is_hidden=is_hidden,
        is_approved=is_approved,
    )

    return CommentListResponse(
        items=[CommentResponse.model_validate(c) for c in comments],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.post(
    "/admin/comments/{comment_id}/moderate",
    response_model=CommentResponse,
    summary="Moderate comment",
    description="Approve, reject or hide a comment. Hiding requires a reason.",
    tags=["Admin - Content"],
)
async def moderate_comment(
    comment_id: UUID,
    data: CommentModerate,
    user: User = Depends(PermissionChecker(Resource.COMMENTS, Action.MODERATE)),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> CommentResponse:
    service = CommentService(db)
    comment = await service.moderate(comment_id, tenant_id, data, moderator_id=user.id)
    return CommentResponse.model_validate(comment)


@router.delete(
    "/admin/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete comment",
    tags=["Admin - Content"],
    dependencies=[Depends(PermissionChecker(Resource.COMMENTS, Action.DELETE))],
)
async def delete_comment(
    comment_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> None:
    service = CommentService(db)
    await service.soft_delete(comment_id, tenant_id)
