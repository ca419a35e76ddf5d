"""Content module sub-routers."""

from app.modules.content.routers.review_router import router as review_router
from app.modules.content.routers.tech_news_router import router as tech_news_router
from app.modules.content.routers.comparison_router import router as comparison_router
from app.modules.content.routers.comment_router import router as comment_router
from app.modules.content.routers.static_page_router import router as static_page_router

__all__ = [
    "review_router",
    "tech_news_router",
    "comparison_router",
    "comment_router",
    "static_page_router",
]
