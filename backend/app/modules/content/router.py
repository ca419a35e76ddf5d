"""API routes for content module."""

from fastapi import APIRouter

from app.modules.content.routers import (
    comment_router,
    comparison_router,
    review_router,
    static_page_router,
    tech_news_router,
)

router = APIRouter()

router.include_router(review_router)
router.include_router(tech_news_router)
router.include_router(comparison_router)
router.include_router(comment_router)
router.include_router(static_page_router)
