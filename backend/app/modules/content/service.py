"""Content service - reviews, tech news, comparisons, comments and static pages."""

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.sql import Select

from app.core.base_model import PublishStatus
from app.core.base_service import BaseService, ModelT
from app.core.database import transactional
from app.core.exceptions import (
    AlreadyExistsError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.core.logging import get_logger
from app.core.permissions import Action, Resource
from app.core.security import user_can
from app.core.slugs import slugify
from app.modules.auth.models import User
from app.modules.catalog.models import Category, Subcategory
from app.modules.catalog.service import CategoryService, SubcategoryService
from app.modules.content.models import (
    Comment,
    Comparison,
    ComparisonWinner,
    MetricVerdict,
    Review,
    StaticPage,
    TechNews,
)
from app.modules.content.schemas import (
    CategoryCount,
    CommentCreate,
    CommentModerate,
    CommentUpdate,
    ComparisonCreate,
    ComparisonMetric,
    ComparisonUpdate,
    ReviewBrief,
    ReviewCreate,
    ReviewStats,
    ReviewUpdate,
    StaticPageCreate,
    StaticPageUpdate,
    TechNewsCreate,
    TechNewsUpdate,
)

logger = get_logger(__name__)


class _SlugMixin:
    """Slug helpers for tenant-scoped content services."""

    async def _ensure_slug_free(
        self,
        tenant_id: UUID,
        slug: str,
        exclude_id: UUID | None = None,
    ) -> None:
        stmt = self._build_base_query(tenant_id, filters=[self.model.slug == slug])
        if exclude_id is not None:
            stmt = stmt.where(self.model.id != exclude_id)
        existing = (await self.db.execute(stmt.limit(1))).scalar_one_or_none()
        if existing is not None:
            raise AlreadyExistsError(self.model.__name__, "slug", slug)

    async def _new_slug(self, tenant_id: UUID, slug: str | None, title: str) -> str:
        candidate = slug or slugify(title)
        if not candidate:
            raise ValidationError(
                "Could not derive a slug from the title, provide one explicitly",
                errors=[{"field": "slug", "value": slug}],
            )
        await self._ensure_slug_free(tenant_id, candidate)
        return candidate


# ============================================================================
# Reviews and Tech News
# ============================================================================


class PublishableContentService(_SlugMixin, BaseService[ModelT]):
    """Shared lifecycle for categorized, publishable articles.

    Subclasses set ``model``, ``usage_entity_type`` and whether a
    subcategory is mandatory.
    """

    subcategory_required: bool = True

    async def get_by_id(self, entity_id: UUID, tenant_id: UUID) -> ModelT:
        return await self._get_by_id(entity_id, tenant_id)

    async def get_published_by_slug(self, slug: str, tenant_id: UUID) -> ModelT:
        stmt = self._build_base_query(
            tenant_id,
            filters=[
                self.model.slug == slug,
                self.model.status == PublishStatus.PUBLISHED.value,
            ],
        )
        item = (await self.db.execute(stmt)).scalar_one_or_none()
        if not item:
            raise NotFoundError(self.model.__name__, slug)
        return item

    def _list_filters(
        self,
        category_id: UUID | None,
        subcategory_id: UUID | None,
        is_featured: bool | None,
        search: str | None,
    ) -> list[Any]:
        filters: list[Any] = []
        if category_id is not None:
            filters.append(self.model.category_id == category_id)
        if subcategory_id is not None:
            filters.append(self.model.subcategory_id == subcategory_id)
        if is_featured is not None:
            filters.append(self.model.is_featured == is_featured)
        if search:
            pattern = f"%{search}%"
            filters.append(or_(self.model.title.ilike(pattern), self.model.excerpt.ilike(pattern)))
        return filters

    async def list_items(
        self,
        tenant_id: UUID,
        page: int = 1,
        page_size: int = 20,
        status: PublishStatus | None = None,
        category_id: UUID | None = None,
        subcategory_id: UUID | None = None,
        is_featured: bool | None = None,
        search: str | None = None,
    ) -> tuple[list[ModelT], int]:
        """List items for the admin panel, drafts included."""
        filters = self._list_filters(category_id, subcategory_id, is_featured, search)
        if status is not None:
            filters.append(self.model.status == status.value)

        base_query = self._build_base_query(tenant_id, filters=filters)
        return await self._paginate(
            base_query,
            page,
            page_size,
            order_by=[self.model.published_at.desc().nullsfirst(), self.model.created_at.desc()],
        )

    async def list_published(
        self,
        tenant_id: UUID,
        page: int = 1,
        page_size: int = 20,
        category_id: UUID | None = None,
        subcategory_id: UUID | None = None,
        is_featured: bool | None = None,
        search: str | None = None,
    ) -> tuple[list[ModelT], int]:
        filters = self._list_filters(category_id, subcategory_id, is_featured, search)
        filters.append(self.model.status == PublishStatus.PUBLISHED.value)

        base_query = self._build_base_query(tenant_id, filters=filters)
        return await self._paginate(
            base_query,
            page,
            page_size,
            order_by=self._public_order(),
        )

    def _public_order(self) -> list[Any]:
        return [self.model.published_at.desc()]

    async def _check_taxonomy(
        self,
        tenant_id: UUID,
        category_id: UUID,
        subcategory_id: UUID | None,
    ) -> None:
        """Category must exist; the subcategory, if any, must belong to it."""
        await CategoryService(self.db).get_by_id(category_id, tenant_id)

        if subcategory_id is None:
            if self.subcategory_required:
                raise ValidationError(
                    "subcategory_id is required",
                    errors=[{"field": "subcategory_id"}],
                )
            return

        subcategory: Subcategory = await SubcategoryService(self.db).get_by_id(
            subcategory_id, tenant_id
        )
        if subcategory.category_id != category_id:
            raise ValidationError(
                "Subcategory does not belong to the selected category",
                errors=[{
                    "field": "subcategory_id",
                    "value": str(subcategory_id),
                    "category_id": str(category_id),
                }],
            )

    async def _create(
        self,
        tenant_id: UUID,
        data: ReviewCreate | TechNewsCreate,
        author_id: UUID | None,
    ) -> ModelT:
        await self._check_taxonomy(tenant_id, data.category_id, data.subcategory_id)
        slug = await self._new_slug(tenant_id, data.slug, data.title)

        item = self.model(
            tenant_id=tenant_id,
            slug=slug,
            author_id=author_id,
            status=PublishStatus.DRAFT.value,
            **data.model_dump(exclude={"slug"}),
        )
        self.db.add(item)
        await self.db.flush()
        await self.db.refresh(item)

        logger.info(
            "content_created",
            entity_type=self.model.__name__,
            entity_id=str(item.id),
            slug=slug,
        )
        return item

    async def _update(
        self,
        entity_id: UUID,
        tenant_id: UUID,
        data: ReviewUpdate | TechNewsUpdate,
    ) -> ModelT:
        item = await self.get_by_id(entity_id, tenant_id)
        item.check_version(data.version)

        update_data = data.model_dump(exclude_unset=True, exclude={"version"})

        if "category_id" in update_data or "subcategory_id" in update_data:
            category_id = update_data.get("category_id") or item.category_id
            subcategory_id = update_data.get("subcategory_id", item.subcategory_id)
            await self._check_taxonomy(tenant_id, category_id, subcategory_id)

        slug = update_data.pop("slug", None)
        if slug and slug != item.slug:
            await self._ensure_slug_free(tenant_id, slug, exclude_id=entity_id)
            item.slug = slug

        for field, value in update_data.items():
            setattr(item, field, value)

        await self.db.flush()
        await self.db.refresh(item)
        return item

    @transactional
    async def publish(self, entity_id: UUID, tenant_id: UUID) -> ModelT:
        item = await self.get_by_id(entity_id, tenant_id)
        item.publish()
        await self.db.flush()
        await self.db.refresh(item)
        logger.info("content_published", entity_type=self.model.__name__, entity_id=str(entity_id))
        return item

    @transactional
    async def unpublish(self, entity_id: UUID, tenant_id: UUID) -> ModelT:
        """Move back to draft."""
        item = await self.get_by_id(entity_id, tenant_id)
        item.unpublish()
        await self.db.flush()
        await self.db.refresh(item)
        return item

    @transactional
    async def archive(self, entity_id: UUID, tenant_id: UUID) -> ModelT:
        item = await self.get_by_id(entity_id, tenant_id)
        item.archive()
        await self.db.flush()
        await self.db.refresh(item)
        return item

    @transactional
    async def soft_delete(self, entity_id: UUID, tenant_id: UUID) -> None:
        """Soft delete an item nothing active still references.

        Raises:
            EntityInUseError: If comments or comparisons reference it
        """
        await self._soft_delete(entity_id, tenant_id)

    async def increment_view(self, entity_id: UUID) -> None:
        """Bump the view counter without touching the version."""
        stmt = (
            update(self.model)
            .where(self.model.id == entity_id)
            .values(view_count=self.model.view_count + 1)
        )
        await self.db.execute(stmt)
        await self.db.commit()


class ReviewService(PublishableContentService[Review]):
    """Service for product reviews."""

    model = Review
    usage_entity_type = "Review"
    subcategory_required = True

    @transactional
    async def create(
        self,
        tenant_id: UUID,
        data: ReviewCreate,
        author_id: UUID | None = None,
    ) -> Review:
        return await self._create(tenant_id, data, author_id)

    @transactional
    async def update(self, review_id: UUID, tenant_id: UUID, data: ReviewUpdate) -> Review:
        return await self._update(review_id, tenant_id, data)

    def _published(self, tenant_id: UUID, *filters: Any) -> Select:
        return self._build_base_query(
            tenant_id,
            filters=[Review.status == PublishStatus.PUBLISHED.value, *filters],
        )

    async def list_trending(self, tenant_id: UUID, days: int = 7, limit: int = 10) -> list[Review]:
        """Most viewed reviews published within the last ``days`` days."""
        since = datetime.now(UTC) - timedelta(days=days)
        stmt = (
            self._published(tenant_id, Review.published_at >= since)
            .order_by(Review.view_count.desc(), Review.published_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_featured(self, tenant_id: UUID, limit: int = 5) -> list[Review]:
        stmt = (
            self._published(tenant_id, Review.is_featured.is_(True))
            .order_by(Review.published_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_stats(self, tenant_id: UUID) -> ReviewStats:
        """Status counters, per-category counts and the five most viewed."""
        since = datetime.now(UTC) - timedelta(days=7)
        active = [Review.tenant_id == tenant_id, Review.deleted_at.is_(None)]

        counts_stmt = select(
            func.count(),
            func.count().filter(Review.status == PublishStatus.PUBLISHED.value),
            func.count().filter(Review.status == PublishStatus.DRAFT.value),
            func.count().filter(Review.status == PublishStatus.ARCHIVED.value),
            func.count().filter(Review.is_featured.is_(True)),
            func.count().filter(Review.created_at >= since),
        ).where(*active)
        total, published, draft, archived, featured, recent = (
            await self.db.execute(counts_stmt)
        ).one()

        by_category_stmt = (
            select(Category.name, func.count(Review.id))
            .join(Category, Review.category_id == Category.id)
            .where(*active)
            .group_by(Category.name)
            .order_by(func.count(Review.id).desc(), Category.name)
        )
        by_category = (await self.db.execute(by_category_stmt)).all()

        top_stmt = (
            self._build_base_query(tenant_id)
            .order_by(Review.view_count.desc())
            .limit(5)
        )
        most_viewed = (await self.db.execute(top_stmt)).scalars().all()

        return ReviewStats(
            total=total,
            published=published,
            draft=draft,
            archived=archived,
            featured=featured,
            created_last_7_days=recent,
            by_category=[CategoryCount(category=name, count=n) for name, n in by_category],
            most_viewed=[ReviewBrief.model_validate(r) for r in most_viewed],
        )


class TechNewsService(PublishableContentService[TechNews]):
    """Service for tech news. Breaking and high-priority items list first."""

    model = TechNews
    usage_entity_type = "TechNews"
    subcategory_required = False

    def _public_order(self) -> list[Any]:
        return [
            TechNews.is_breaking.desc(),
            TechNews.priority.desc(),
            TechNews.published_at.desc(),
        ]

    @transactional
    async def create(
        self,
        tenant_id: UUID,
        data: TechNewsCreate,
        author_id: UUID | None = None,
    ) -> TechNews:
        return await self._create(tenant_id, data, author_id)

    @transactional
    async def update(self, news_id: UUID, tenant_id: UUID, data: TechNewsUpdate) -> TechNews:
        return await self._update(news_id, tenant_id, data)


# ============================================================================
# Comparisons
# ============================================================================


def score_metrics(metrics: list[ComparisonMetric]) -> tuple[int, int, str]:
    """Points per product and the winner: one point per favoured metric."""
    points_a = sum(1 for m in metrics if m.better == MetricVerdict.PRODUCT_A)
    points_b = sum(1 for m in metrics if m.better == MetricVerdict.PRODUCT_B)

    if points_a > points_b:
        winner = ComparisonWinner.PRODUCT_A
    elif points_b > points_a:
        winner = ComparisonWinner.PRODUCT_B
    else:
        winner = ComparisonWinner.TIE
    return points_a, points_b, winner.value


class ComparisonSort(str, Enum):
    LATEST = "latest"
    POPULAR = "popular"
    PRIORITY = "priority"


class ComparisonService(_SlugMixin, BaseService[Comparison]):
    """Service for product comparisons built on two published reviews."""

    model = Comparison

    async def get_by_id(self, comparison_id: UUID, tenant_id: UUID) -> Comparison:
        return await self._get_by_id(comparison_id, tenant_id)

    async def get_published_by_slug(self, slug: str, tenant_id: UUID) -> Comparison:
        stmt = self._build_base_query(
            tenant_id,
            filters=[
                Comparison.slug == slug,
                Comparison.status == PublishStatus.PUBLISHED.value,
            ],
        )
        comparison = (await self.db.execute(stmt)).scalar_one_or_none()
        if not comparison:
            raise NotFoundError("Comparison", slug)
        return comparison

    def _list_filters(
        self,
        category_id: UUID | None,
        is_featured: bool | None,
        search: str | None,
    ) -> list[Any]:
        filters: list[Any] = []
        if category_id is not None:
            # Comparisons take their category from the compared reviews
            in_category = select(Review.id).where(Review.category_id == category_id)
            filters.append(
                or_(
                    Comparison.product_a_id.in_(in_category),
                    Comparison.product_b_id.in_(in_category),
                )
            )
        if is_featured is not None:
            filters.append(Comparison.is_featured == is_featured)
        if search:
            pattern = f"%{search}%"
            filters.append(
                or_(Comparison.title.ilike(pattern), Comparison.summary.ilike(pattern))
            )
        return filters

    async def list_items(
        self,
        tenant_id: UUID,
        page: int = 1,
        page_size: int = 20,
        status: PublishStatus | None = None,
        category_id: UUID | None = None,
        is_featured: bool | None = None,
        search: str | None = None,
    ) -> tuple[list[Comparison], int]:
        """List comparisons for the admin panel, drafts included."""
        filters = self._list_filters(category_id, is_featured, search)
        if status is not None:
            filters.append(Comparison.status == status.value)

        base_query = self._build_base_query(tenant_id, filters=filters)
        return await self._paginate(
            base_query,
            page,
            page_size,
            order_by=[Comparison.created_at.desc()],
        )

    async def list_published(
        self,
        tenant_id: UUID,
        page: int = 1,
        page_size: int = 20,
        category_id: UUID | None = None,
        is_featured: bool | None = None,
        search: str | None = None,
        sort: ComparisonSort = ComparisonSort.LATEST,
    ) -> tuple[list[Comparison], int]:
        filters = self._list_filters(category_id, is_featured, search)
        filters.append(Comparison.status == PublishStatus.PUBLISHED.value)

        if sort == ComparisonSort.POPULAR:
            order_by = [Comparison.view_count.desc()]
        elif sort == ComparisonSort.PRIORITY:
            order_by = [Comparison.priority.desc(), Comparison.published_at.desc()]
        else:
            order_by = [Comparison.published_at.desc()]

        base_query = self._build_base_query(tenant_id, filters=filters)
        return await self._paginate(base_query, page, page_size, order_by=order_by)

    async def search_published(
        self,
        tenant_id: UUID,
        query: str,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Comparison], int]:
        """Search published comparisons by title and summary.

        Raises:
            ValidationError: If the query is blank
        """
        if not query.strip():
            raise ValidationError("Search query is required", errors=[{"field": "q"}])
        return await self.list_published(
            tenant_id,
            page=page,
            page_size=page_size,
            search=query.strip(),
        )

    async def list_featured(self, tenant_id: UUID, limit: int = 5) -> list[Comparison]:
        stmt = (
            self._build_base_query(
                tenant_id,
                filters=[
                    Comparison.status == PublishStatus.PUBLISHED.value,
                    Comparison.is_featured.is_(True),
                ],
            )
            .order_by(Comparison.published_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _check_products(self, tenant_id: UUID, product_a_id: UUID, product_b_id: UUID) -> None:
        """Both products must be distinct, published reviews of the tenant."""
        if product_a_id == product_b_id:
            raise ValidationError(
                "A product cannot be compared with itself",
                errors=[{"field": "product_b_id", "value": str(product_b_id)}],
            )

        stmt = (
            select(Review.id)
            .where(Review.tenant_id == tenant_id)
            .where(Review.deleted_at.is_(None))
            .where(Review.status == PublishStatus.PUBLISHED.value)
            .where(Review.id.in_([product_a_id, product_b_id]))
        )
        found = set((await self.db.execute(stmt)).scalars().all())
        missing = [
            {"field": field, "value": str(value)}
            for field, value in (("product_a_id", product_a_id), ("product_b_id", product_b_id))
            if value not in found
        ]
        if missing:
            raise ValidationError(
                "One or more product reviews not found or not published",
                errors=missing,
            )

    @transactional
    async def create(
        self,
        tenant_id: UUID,
        data: ComparisonCreate,
        author_id: UUID | None = None,
    ) -> Comparison:
        """Create a draft comparison.

        Raises:
            ValidationError: If a product is not a published review
            AlreadyExistsError: If the slug is taken
        """
        await self._check_products(tenant_id, data.product_a_id, data.product_b_id)
        slug = await self._new_slug(tenant_id, data.slug, data.title)
        points_a, points_b, winner = score_metrics(data.metrics)

        comparison = Comparison(
            tenant_id=tenant_id,
            slug=slug,
            author_id=author_id,
            updated_by_id=author_id,
            status=PublishStatus.DRAFT.value,
            product_a_points=points_a,
            product_b_points=points_b,
            winner=winner,
            **data.model_dump(exclude={"slug", "metrics"}),
            metrics=[m.model_dump(mode="json") for m in data.metrics],
        )
        self.db.add(comparison)
        await self.db.flush()
        await self.db.refresh(comparison)

        logger.info(
            "comparison_created",
            comparison_id=str(comparison.id),
            slug=slug,
            winner=winner,
        )
        return comparison

    @transactional
    async def update(
        self,
        comparison_id: UUID,
        tenant_id: UUID,
        data: ComparisonUpdate,
        user_id: UUID | None = None,
    ) -> Comparison:
        """Update a comparison with optimistic locking.

        Changed products are re-validated; new metrics re-score the winner.
        """
        comparison = await self.get_by_id(comparison_id, tenant_id)
        comparison.check_version(data.version)

        update_data = data.model_dump(exclude_unset=True, exclude={"version", "metrics"})

        if "product_a_id" in update_data or "product_b_id" in update_data:
            await self._check_products(
                tenant_id,
                update_data.get("product_a_id", comparison.product_a_id),
                update_data.get("product_b_id", comparison.product_b_id),
            )

        slug = update_data.pop("slug", None)
        if slug and slug != comparison.slug:
            await self._ensure_slug_free(tenant_id, slug, exclude_id=comparison_id)
            comparison.slug = slug

        if data.metrics is not None:
            comparison.metrics = [m.model_dump(mode="json") for m in data.metrics]
            (
                comparison.product_a_points,
                comparison.product_b_points,
                comparison.winner,
            ) = score_metrics(data.metrics)

        for field, value in update_data.items():
            setattr(comparison, field, value)
        comparison.updated_by_id = user_id

        await self.db.flush()
        await self.db.refresh(comparison)
        return comparison

    @transactional
    async def publish(self, comparison_id: UUID, tenant_id: UUID) -> Comparison:
        comparison = await self.get_by_id(comparison_id, tenant_id)
        comparison.publish()
        await self.db.flush()
        await self.db.refresh(comparison)
        logger.info("comparison_published", comparison_id=str(comparison_id))
        return comparison

    @transactional
    async def unpublish(self, comparison_id: UUID, tenant_id: UUID) -> Comparison:
        comparison = await self.get_by_id(comparison_id, tenant_id)
        comparison.unpublish()
        await self.db.flush()
        await self.db.refresh(comparison)
        return comparison

    @transactional
    async def soft_delete(self, comparison_id: UUID, tenant_id: UUID) -> None:
        await self._soft_delete(comparison_id, tenant_id)

    async def increment_view(self, comparison_id: UUID) -> None:
        stmt = (
            update(Comparison)
            .where(Comparison.id == comparison_id)
            .values(view_count=Comparison.view_count + 1)
        )
        await self.db.execute(stmt)
        await self.db.commit()


# ============================================================================
# Comments
# ============================================================================


class CommentService(BaseService[Comment]):
    """Service for reader comments and their moderation."""

    model = Comment

    async def get_by_id(self, comment_id: UUID, tenant_id: UUID) -> Comment:
        return await self._get_by_id(comment_id, tenant_id)

    async def list_comments(
        self,
        tenant_id: UUID,
        page: int = 1,
        page_size: int = 20,
        review_id: UUID | None = None,
        tech_news_id: UUID | None = None,
        is_hidden: bool | None = None,
        is_approved: bool | None = None,
    ) -> tuple[list[Comment], int]:
        """List comments for moderation, hidden ones included."""
        filters = []
        if review_id is not None:
            filters.append(Comment.review_id == review_id)
        if tech_news_id is not None:
            filters.append(Comment.tech_news_id == tech_news_id)
        if is_hidden is not None:
            filters.append(Comment.is_hidden == is_hidden)
        if is_approved is not None:
            filters.append(Comment.is_approved == is_approved)

        base_query = self._build_base_query(tenant_id, filters=filters)
        return await self._paginate(
            base_query,
            page,
            page_size,
            order_by=[Comment.created_at.desc()],
        )

    async def list_visible(
        self,
        tenant_id: UUID,
        *,
        review_id: UUID | None = None,
        tech_news_id: UUID | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Comment], int]:
        """Approved, non-hidden comments of one published item, oldest first."""
        if review_id is not None:
            await self._get_published_target(ReviewService(self.db), review_id, tenant_id)
            target = Comment.review_id == review_id
        elif tech_news_id is not None:
            await self._get_published_target(TechNewsService(self.db), tech_news_id, tenant_id)
            target = Comment.tech_news_id == tech_news_id
        else:
            raise ValidationError("Either review_id or tech_news_id is required")

        base_query = self._build_base_query(
            tenant_id,
            filters=[target, Comment.is_approved.is_(True), Comment.is_hidden.is_(False)],
        )
        return await self._paginate(
            base_query,
            page,
            page_size,
            order_by=[Comment.created_at.asc()],
        )

    @staticmethod
    async def _get_published_target(
        service: PublishableContentService,
        entity_id: UUID,
        tenant_id: UUID,
    ) -> Any:
        item = await service.get_by_id(entity_id, tenant_id)
        if not item.is_published:
            raise NotFoundError(service.model.__name__, entity_id)
        return item

    @transactional
    async def create(self, tenant_id: UUID, data: CommentCreate, author: User) -> Comment:
        """Post a comment on a published review or news item.

        Raises:
            NotFoundError: If the target is missing or not published
            ValidationError: If the parent comment is on another item
        """
        if data.review_id is not None:
            await self._get_published_target(ReviewService(self.db), data.review_id, tenant_id)
        else:
            await self._get_published_target(
                TechNewsService(self.db), data.tech_news_id, tenant_id
            )

        if data.parent_id is not None:
            parent = await self.get_by_id(data.parent_id, tenant_id)
            if parent.review_id != data.review_id or parent.tech_news_id != data.tech_news_id:
                raise ValidationError(
                    "Parent comment belongs to a different item",
                    errors=[{"field": "parent_id", "value": str(data.parent_id)}],
                )

        comment = Comment(
            tenant_id=tenant_id,
            author_id=author.id,
            content=data.content,
            review_id=data.review_id,
            tech_news_id=data.tech_news_id,
            parent_id=data.parent_id,
        )
        self.db.add(comment)
        await self.db.flush()
        await self.db.refresh(comment)

        logger.info(
            "comment_created",
            comment_id=str(comment.id),
            review_id=str(data.review_id) if data.review_id else None,
            tech_news_id=str(data.tech_news_id) if data.tech_news_id else None,
        )
        return comment

    @transactional
    async def update(
        self,
        comment_id: UUID,
        tenant_id: UUID,
        data: CommentUpdate,
        user: User,
    ) -> Comment:
        """Edit a comment. Only its author or a moderator may do so.

        Raises:
            PermissionDeniedError: If the user neither wrote nor moderates it
        """
        comment = await self.get_by_id(comment_id, tenant_id)

        if comment.author_id != user.id and not user_can(user, Resource.COMMENTS, Action.MODERATE):
            raise PermissionDeniedError("You can only edit your own comments")

        comment.edit(data.content)
        await self.db.flush()
        await self.db.refresh(comment)
        return comment

    @transactional
    async def moderate(
        self,
        comment_id: UUID,
        tenant_id: UUID,
        data: CommentModerate,
        moderator_id: UUID,
    ) -> Comment:
        comment = await self.get_by_id(comment_id, tenant_id)
        comment.moderate(
            moderator_id,
            is_approved=data.is_approved,
            is_hidden=data.is_hidden,
            hidden_reason=data.hidden_reason,
        )
        await self.db.flush()
        await self.db.refresh(comment)

        logger.info(
            "comment_moderated",
            comment_id=str(comment_id),
            moderator_id=str(moderator_id),
            is_approved=data.is_approved,
            is_hidden=data.is_hidden,
        )
        return comment

    @transactional
    async def soft_delete(self, comment_id: UUID, tenant_id: UUID) -> None:
        await self._soft_delete(comment_id, tenant_id)


# ============================================================================
# Static Pages
# ============================================================================


class StaticPageService(_SlugMixin, BaseService[StaticPage]):
    """Service for static pages (about, privacy policy, ...)."""

    model = StaticPage

    async def get_by_id(self, page_id: UUID, tenant_id: UUID) -> StaticPage:
        return await self._get_by_id(page_id, tenant_id)

    async def get_published_by_slug(self, slug: str, tenant_id: UUID) -> StaticPage:
        stmt = self._build_base_query(
            tenant_id,
            filters=[
                StaticPage.slug == slug,
                StaticPage.status == PublishStatus.PUBLISHED.value,
            ],
        )
        page = (await self.db.execute(stmt)).scalar_one_or_none()
        if not page:
            raise NotFoundError("StaticPage", slug)
        return page

    async def list_pages(
        self,
        tenant_id: UUID,
        page: int = 1,
        page_size: int = 20,
        status: PublishStatus | None = None,
    ) -> tuple[list[StaticPage], int]:
        filters = []
        if status is not None:
            filters.append(StaticPage.status == status.value)

        base_query = self._build_base_query(tenant_id, filters=filters)
        return await self._paginate(
            base_query,
            page,
            page_size,
            order_by=[StaticPage.sort_order, StaticPage.title],
        )

    async def list_footer(self, tenant_id: UUID) -> list[StaticPage]:
        stmt = self._build_base_query(
            tenant_id,
            filters=[
                StaticPage.status == PublishStatus.PUBLISHED.value,
                StaticPage.show_in_footer.is_(True),
            ],
        ).order_by(StaticPage.sort_order, StaticPage.title)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    @transactional
    async def create(
        self,
        tenant_id: UUID,
        data: StaticPageCreate,
        user_id: UUID | None = None,
    ) -> StaticPage:
        slug = await self._new_slug(tenant_id, data.slug, data.title)

        page = StaticPage(
            tenant_id=tenant_id,
            slug=slug,
            updated_by_id=user_id,
            status=PublishStatus.DRAFT.value,
            **data.model_dump(exclude={"slug", "publish", "page_type"}),
            page_type=data.page_type.value,
        )
        if data.publish:
            page.publish()

        self.db.add(page)
        await self.db.flush()
        await self.db.refresh(page)

        logger.info("static_page_created", page_id=str(page.id), slug=slug)
        return page

    @transactional
    async def update(
        self,
        page_id: UUID,
        tenant_id: UUID,
        data: StaticPageUpdate,
        user_id: UUID | None = None,
    ) -> StaticPage:
        page = await self.get_by_id(page_id, tenant_id)
        page.check_version(data.version)

        update_data = data.model_dump(exclude_unset=True, exclude={"version"})

        slug = update_data.pop("slug", None)
        if slug and slug != page.slug:
            await self._ensure_slug_free(tenant_id, slug, exclude_id=page_id)
            page.slug = slug

        page_type = update_data.pop("page_type", None)
        if page_type is not None:
            page.page_type = page_type.value

        for field, value in update_data.items():
            setattr(page, field, value)
        page.updated_by_id = user_id

        await self.db.flush()
        await self.db.refresh(page)
        return page

    @transactional
    async def publish(self, page_id: UUID, tenant_id: UUID) -> StaticPage:
        page = await self.get_by_id(page_id, tenant_id)
        page.publish()
        await self.db.flush()
        await self.db.refresh(page)
        return page

    @transactional
    async def unpublish(self, page_id: UUID, tenant_id: UUID) -> StaticPage:
        page = await self.get_by_id(page_id, tenant_id)
        page.unpublish()
        await self.db.flush()
        await self.db.refresh(page)
        return page

    @transactional
    async def soft_delete(self, page_id: UUID, tenant_id: UUID) -> None:
        await self._soft_delete(page_id, tenant_id)
