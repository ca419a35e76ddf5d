"""Unit tests for review, tech news, comment and static page services."""

from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.core.base_model import PublishStatus
from app.core.exceptions import (
    AlreadyExistsError,
    EntityInUseError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.core.permissions import RoleName
from app.modules.content.models import StaticPageType
from app.modules.content.schemas import (
    CommentCreate,
    CommentModerate,
    CommentUpdate,
    ReviewCreate,
    ReviewUpdate,
    StaticPageCreate,
    TechNewsCreate,
)
from app.modules.content.service import (
    CommentService,
    ReviewService,
    StaticPageService,
    TechNewsService,
)
from tests.fixtures.auth import make_user
from tests.fixtures.db import scalar_result, scalars_result
from tests.fixtures.factories import (
    CategoryFactory,
    CommentFactory,
    ReviewFactory,
    SubcategoryFactory,
    TechNewsFactory,
)


def _review_create(category_id: UUID, subcategory_id: UUID, **overrides) -> ReviewCreate:
    data = {
        "title": "Pixel 9 Pro Review",
        "product_name": "Pixel 9 Pro",
        "excerpt": "Google's best phone yet",
        "content": "Long form review text",
        "rating": 8.5,
        "pros": [" Camera ", ""],
        "category_id": category_id,
        "subcategory_id": subcategory_id,
    }
    data.update(overrides)
    return ReviewCreate(**data)


class TestReviewService:
    """Tests for ReviewService."""

    @pytest.fixture
    def service(self, mock_db: AsyncMock) -> ReviewService:
        return ReviewService(mock_db)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_review_as_draft(
        self,
        service: ReviewService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        category = CategoryFactory(tenant_id=tenant_id)
        subcategory = SubcategoryFactory(tenant_id=tenant_id, category_id=category.id)
        author_id = uuid4()
        mock_db.execute.side_effect = [
            scalar_result(category),
            scalar_result(subcategory),
            scalar_result(None),
        ]

        review = await service.create(
            tenant_id,
            _review_create(category.id, subcategory.id),
            author_id=author_id,
        )

        assert review.slug == "pixel-9-pro-review"
        assert review.status == PublishStatus.DRAFT.value
        assert review.author_id == author_id
        assert review.pros == ["Camera"]
        mock_db.add.assert_called_once()
        mock_db.commit.assert_called_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_review_cannot_drop_subcategory(
        self,
        service: ReviewService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        review = ReviewFactory(tenant_id=tenant_id)
        mock_db.execute.side_effect = [
            scalar_result(review),
            scalar_result(CategoryFactory(tenant_id=tenant_id)),
        ]

        with pytest.raises(ValidationError, match="subcategory_id"):
            await service.update(
                review.id,
                tenant_id,
                ReviewUpdate(subcategory_id=None, version=1),
            )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_review_with_foreign_subcategory(
        self,
        service: ReviewService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        """The subcategory must belong to the chosen category."""
        category = CategoryFactory(tenant_id=tenant_id)
        other = SubcategoryFactory(tenant_id=tenant_id, category_id=uuid4())
        mock_db.execute.side_effect = [scalar_result(category), scalar_result(other)]

        with pytest.raises(ValidationError, match="does not belong"):
            await service.create(tenant_id, _review_create(category.id, other.id))

        mock_db.add.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_review_duplicate_slug(
        self,
        service: ReviewService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        category = CategoryFactory(tenant_id=tenant_id)
        subcategory = SubcategoryFactory(tenant_id=tenant_id, category_id=category.id)
        mock_db.execute.side_effect = [
            scalar_result(category),
            scalar_result(subcategory),
            scalar_result(ReviewFactory(slug="taken")),
        ]

        with pytest.raises(AlreadyExistsError):
            await service.create(
                tenant_id,
                _review_create(category.id, subcategory.id, slug="taken"),
            )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_review_fields(
        self,
        service: ReviewService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        review = ReviewFactory(tenant_id=tenant_id, rating=7.0)
        mock_db.execute.return_value = scalar_result(review)

        updated = await service.update(
            review.id,
            tenant_id,
            ReviewUpdate(rating=9.0, title="Updated", version=1),
        )

        assert updated.rating == 9.0
        assert updated.title == "Updated"
        assert updated.version == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_publish_sets_date_once(
        self,
        service: ReviewService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        review = ReviewFactory(tenant_id=tenant_id)
        mock_db.execute.return_value = scalar_result(review)

        published = await service.publish(review.id, tenant_id)
        first_date = published.published_at

        await service.unpublish(review.id, tenant_id)
        republished = await service.publish(review.id, tenant_id)

        assert republished.status == PublishStatus.PUBLISHED.value
        assert republished.published_at == first_date

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_archive(
        self,
        service: ReviewService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        review = ReviewFactory(tenant_id=tenant_id, status=PublishStatus.PUBLISHED.value)
        mock_db.execute.return_value = scalar_result(review)

        archived = await service.archive(review.id, tenant_id)

        assert archived.status == PublishStatus.ARCHIVED.value

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_published_by_slug_not_found(
        self,
        service: ReviewService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(NotFoundError):
            await service.get_published_by_slug("missing", tenant_id)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_list_published(
        self,
        service: ReviewService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        reviews = [ReviewFactory(tenant_id=tenant_id, status="published") for _ in range(2)]
        mock_db.execute.side_effect = [scalar_result(2), scalars_result(reviews)]

        items, total = await service.list_published(tenant_id, page=1, page_size=10)

        assert total == 2
        assert items == reviews
        list_stmt = str(mock_db.execute.call_args_list[1].args[0])
        assert "reviews.status" in list_stmt

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_delete_with_comments(
        self,
        service: ReviewService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        review = ReviewFactory(tenant_id=tenant_id)
        mock_db.execute.side_effect = [
            scalar_result(review),
            scalar_result(12),
            scalar_result(0),
            scalar_result(0),
        ]

        with pytest.raises(EntityInUseError) as exc_info:
            await service.soft_delete(review.id, tenant_id)

        assert exc_info.value.detail["dependencies"] == {"comments": 12}
        assert review.deleted_at is None


class TestTechNewsService:
    """Tests for TechNewsService."""

    @pytest.fixture
    def service(self, mock_db: AsyncMock) -> TechNewsService:
        return TechNewsService(mock_db)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_without_subcategory(
        self,
        service: TechNewsService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        category = CategoryFactory(tenant_id=tenant_id)
        mock_db.execute.side_effect = [scalar_result(category), scalar_result(None)]

        news = await service.create(
            tenant_id,
            TechNewsCreate(
                title="Chip shortage ends",
                excerpt="Supply is back",
                content="Details",
                tags=["Chips", " supply "],
                category_id=category.id,
            ),
        )

        assert news.slug == "chip-shortage-ends"
        assert news.subcategory_id is None
        assert news.tags == ["chips", "supply"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_delete_unused_news(
        self,
        service: TechNewsService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        news = TechNewsFactory(tenant_id=tenant_id)
        mock_db.execute.side_effect = [scalar_result(news), scalar_result(0)]

        await service.soft_delete(news.id, tenant_id)

        assert news.deleted_at is not None


class TestCommentService:
    """Tests for CommentService."""

    @pytest.fixture
    def service(self, mock_db: AsyncMock) -> CommentService:
        return CommentService(mock_db)

    @pytest.mark.unit
    def test_comment_needs_exactly_one_target(self) -> None:
        with pytest.raises(PydanticValidationError):
            CommentCreate(content="hi")
        with pytest.raises(PydanticValidationError):
            CommentCreate(content="hi", review_id=uuid4(), tech_news_id=uuid4())

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_on_published_review(
        self,
        service: CommentService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        review = ReviewFactory(tenant_id=tenant_id, status=PublishStatus.PUBLISHED.value)
        author = make_user(RoleName.USER)
        mock_db.execute.return_value = scalar_result(review)

        comment = await service.create(
            tenant_id,
            CommentCreate(content="Great review", review_id=review.id),
            author,
        )

        assert comment.author_id == author.id
        assert comment.review_id == review.id
        mock_db.add.assert_called_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_on_draft_is_not_found(
        self,
        service: CommentService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        draft = ReviewFactory(tenant_id=tenant_id, status=PublishStatus.DRAFT.value)
        mock_db.execute.return_value = scalar_result(draft)

        with pytest.raises(NotFoundError):
            await service.create(
                tenant_id,
                CommentCreate(content="Early!", review_id=draft.id),
                make_user(RoleName.USER),
            )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reply_to_comment_on_other_item(
        self,
        service: CommentService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        news = TechNewsFactory(tenant_id=tenant_id, status=PublishStatus.PUBLISHED.value)
        parent = CommentFactory(tenant_id=tenant_id, review_id=uuid4())
        mock_db.execute.side_effect = [scalar_result(news), scalar_result(parent)]

        with pytest.raises(ValidationError, match="different item"):
            await service.create(
                tenant_id,
                CommentCreate(content="Reply", tech_news_id=news.id, parent_id=parent.id),
                make_user(RoleName.USER),
            )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_author_can_edit(
        self,
        service: CommentService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        author = make_user(RoleName.USER)
        comment = CommentFactory(tenant_id=tenant_id, author_id=author.id)
        mock_db.execute.return_value = scalar_result(comment)

        edited = await service.update(comment.id, tenant_id, CommentUpdate(content="Fixed typo"), author)

        assert edited.content == "Fixed typo"
        assert edited.is_edited is True
        assert edited.edited_at is not None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_other_reader_cannot_edit(
        self,
        service: CommentService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        comment = CommentFactory(tenant_id=tenant_id, author_id=uuid4(), content="original")
        mock_db.execute.return_value = scalar_result(comment)

        with pytest.raises(PermissionDeniedError):
            await service.update(
                comment.id,
                tenant_id,
                CommentUpdate(content="hijacked"),
                make_user(RoleName.USER),
            )

        assert comment.content == "original"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_moderator_can_edit(
        self,
        service: CommentService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        comment = CommentFactory(tenant_id=tenant_id, author_id=uuid4())
        mock_db.execute.return_value = scalar_result(comment)

        edited = await service.update(
            comment.id,
            tenant_id,
            CommentUpdate(content="[removed link]"),
            make_user(RoleName.EDITOR),
        )

        assert edited.content == "[removed link]"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_moderate_hides_with_reason(
        self,
        service: CommentService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        comment = CommentFactory(tenant_id=tenant_id)
        moderator_id = uuid4()
        mock_db.execute.return_value = scalar_result(comment)

        moderated = await service.moderate(
            comment.id,
            tenant_id,
            CommentModerate(is_hidden=True, hidden_reason="spam"),
            moderator_id,
        )

        assert moderated.is_hidden is True
        assert moderated.hidden_reason == "spam"
        assert moderated.moderated_by_id == moderator_id
        assert moderated.is_visible is False

    @pytest.mark.unit
    def test_hiding_requires_reason(self) -> None:
        with pytest.raises(PydanticValidationError):
            CommentModerate(is_hidden=True)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_list_visible_requires_target(
        self,
        service: CommentService,
        tenant_id: UUID,
    ) -> None:
        with pytest.raises(ValidationError):
            await service.list_visible(tenant_id)


class TestStaticPageService:
    """Tests for StaticPageService."""

    @pytest.fixture
    def service(self, mock_db: AsyncMock) -> StaticPageService:
        return StaticPageService(mock_db)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_published_page(
        self,
        service: StaticPageService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        mock_db.execute.return_value = scalar_result(None)

        page = await service.create(
            tenant_id,
            StaticPageCreate(
                title="Privacy Policy",
                page_type=StaticPageType.PRIVACY_POLICY,
                content="We respect your privacy",
                publish=True,
            ),
        )

        assert page.slug == "privacy-policy"
        assert page.page_type == "privacy-policy"
        assert page.status == PublishStatus.PUBLISHED.value
        assert page.published_at is not None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_draft_page(
        self,
        service: StaticPageService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        mock_db.execute.return_value = scalar_result(None)

        page = await service.create(
            tenant_id,
            StaticPageCreate(
                title="Careers",
                page_type=StaticPageType.CAREERS,
                content="Join us",
            ),
        )

        assert page.status == PublishStatus.DRAFT.value
        assert page.published_at is None
