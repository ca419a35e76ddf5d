"""Unit tests for category and subcategory services."""

from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import (
    AlreadyExistsError,
    EntityInUseError,
    NotFoundError,
    SortOrderConflictError,
    ValidationError,
    VersionConflictError,
)
from app.modules.catalog.models import CategoryGroup
from app.modules.catalog.schemas import (
    CategoryCreate,
    CategoryUpdate,
    SubcategoryCreate,
    SubcategoryUpdate,
)
from app.modules.catalog.service import CategoryService, SubcategoryService
from tests.fixtures.db import scalar_result, scalars_result
from tests.fixtures.factories import CategoryFactory, StaticPageFactory, SubcategoryFactory


def _category_create(**overrides) -> CategoryCreate:
    data = {
        "name": "Smartphones",
        "group": CategoryGroup.REVIEWS,
        "description": "Phones of every size",
    }
    data.update(overrides)
    return CategoryCreate(**data)


class TestCategoryService:
    """Tests for CategoryService."""

    @pytest.fixture
    def service(self, mock_db: AsyncMock) -> CategoryService:
        return CategoryService(mock_db)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_by_id_not_found(
        self,
        service: CategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(NotFoundError):
            await service.get_by_id(uuid4(), tenant_id)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_appends_after_last(
        self,
        service: CategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        """Without a position the category goes after the current last one."""
        user_id = uuid4()
        mock_db.execute.side_effect = [scalar_result(None), scalar_result(4)]

        category = await service.create(tenant_id, _category_create(), user_id=user_id)

        assert category.slug == "smartphones"
        assert category.sort_order == 5
        assert category.group == "Reviews"
        assert category.created_by_id == user_id
        mock_db.add.assert_called_once()
        mock_db.commit.assert_called_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_first_category_gets_one(
        self,
        service: CategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        mock_db.execute.side_effect = [scalar_result(None), scalar_result(None)]

        category = await service.create(tenant_id, _category_create())

        assert category.sort_order == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_with_free_position(
        self,
        service: CategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        mock_db.execute.side_effect = [scalar_result(None), scalar_result(None)]

        category = await service.create(tenant_id, _category_create(sort_order=10))

        assert category.sort_order == 10

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_with_taken_position(
        self,
        service: CategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        holder = CategoryFactory(tenant_id=tenant_id, name="Laptops", sort_order=2)
        mock_db.execute.side_effect = [scalar_result(None), scalar_result(holder)]

        with pytest.raises(SortOrderConflictError, match="Laptops"):
            await service.create(tenant_id, _category_create(sort_order=2))

        mock_db.add.assert_not_called()
        mock_db.rollback.assert_called_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_translates_unique_index_race(
        self,
        service: CategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        """A concurrent insert of the same position surfaces as a conflict."""
        mock_db.execute.side_effect = [scalar_result(None), scalar_result(None)]
        mock_db.flush.side_effect = IntegrityError(
            "INSERT", {}, Exception('violates unique constraint "uq_categories_tenant_sort_order"')
        )

        with pytest.raises(SortOrderConflictError):
            await service.create(tenant_id, _category_create(sort_order=3))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_duplicate_slug(
        self,
        service: CategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        mock_db.execute.return_value = scalar_result(CategoryFactory(slug="smartphones"))

        with pytest.raises(AlreadyExistsError):
            await service.create(tenant_id, _category_create())

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_without_sluggable_name(
        self,
        service: CategoryService,
        tenant_id: UUID,
    ) -> None:
        with pytest.raises(ValidationError):
            await service.create(tenant_id, _category_create(name="!!!"))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_same_position_skips_check(
        self,
        service: CategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        category = CategoryFactory(tenant_id=tenant_id, sort_order=3)
        mock_db.execute.return_value = scalar_result(category)

        updated = await service.update(
            category.id,
            tenant_id,
            CategoryUpdate(sort_order=3, name="Renamed", version=1),
        )

        assert updated.sort_order == 3
        assert updated.name == "Renamed"
        # Only the lookup, no collision query
        assert mock_db.execute.await_count == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_to_taken_position(
        self,
        service: CategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        category = CategoryFactory(tenant_id=tenant_id, sort_order=3)
        holder = CategoryFactory(tenant_id=tenant_id, sort_order=1)
        mock_db.execute.side_effect = [scalar_result(category), scalar_result(holder)]

        with pytest.raises(SortOrderConflictError):
            await service.update(category.id, tenant_id, CategoryUpdate(sort_order=1, version=1))

        assert category.sort_order == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_stale_version(
        self,
        service: CategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        category = CategoryFactory(tenant_id=tenant_id, version=4)
        mock_db.execute.return_value = scalar_result(category)

        with pytest.raises(VersionConflictError):
            await service.update(category.id, tenant_id, CategoryUpdate(name="x", version=2))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_delete_in_use_category(
        self,
        service: CategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        category = CategoryFactory(tenant_id=tenant_id)
        mock_db.execute.side_effect = [
            scalar_result(category),
            scalar_result(2),
            scalar_result(0),
            scalar_result(0),
        ]

        with pytest.raises(EntityInUseError) as exc_info:
            await service.soft_delete(category.id, tenant_id)

        assert exc_info.value.detail["dependencies"] == {"subcategories": 2}
        assert "used in 2 subcategories" in exc_info.value.message
        assert category.deleted_at is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_delete_unused_category(
        self,
        service: CategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        category = CategoryFactory(tenant_id=tenant_id)
        mock_db.execute.side_effect = [scalar_result(category)] + [scalar_result(0)] * 3

        await service.soft_delete(category.id, tenant_id)

        assert category.deleted_at is not None
        mock_db.commit.assert_called_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_usage(
        self,
        service: CategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        category = CategoryFactory(tenant_id=tenant_id)
        mock_db.execute.side_effect = [
            scalar_result(category),
            scalar_result(0),
            scalar_result(7),
            scalar_result(0),
        ]

        report = await service.get_usage(category.id, tenant_id)

        assert report.is_used is True
        assert report.message == "used in 7 reviews"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_menu_groups_categories(
        self,
        service: CategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        """Groups come out in declaration order with their subcategories."""
        news = CategoryFactory(tenant_id=tenant_id, group=CategoryGroup.NEWS.value, sort_order=1)
        phones = CategoryFactory(tenant_id=tenant_id, group=CategoryGroup.REVIEWS.value, sort_order=2)
        android = SubcategoryFactory(tenant_id=tenant_id, category_id=phones.id)
        about = StaticPageFactory(tenant_id=tenant_id, show_in_menu=True)
        mock_db.execute.side_effect = [
            scalars_result([news, phones]),
            scalars_result([android]),
            scalars_result([about]),
        ]

        groups, pages = await service.get_menu(tenant_id)

        assert list(groups) == [CategoryGroup.REVIEWS, CategoryGroup.NEWS]
        assert groups[CategoryGroup.REVIEWS] == [(phones, [android])]
        assert groups[CategoryGroup.NEWS] == [(news, [])]
        assert pages == [about]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_menu_without_categories(
        self,
        service: CategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        mock_db.execute.side_effect = [scalars_result([]), scalars_result([])]

        groups, pages = await service.get_menu(tenant_id)

        assert groups == {}
        assert pages == []
        assert mock_db.execute.await_count == 2


class TestSubcategoryService:
    """Tests for SubcategoryService."""

    @pytest.fixture
    def service(self, mock_db: AsyncMock) -> SubcategoryService:
        return SubcategoryService(mock_db)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_scopes_position_to_parent(
        self,
        service: SubcategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        parent = CategoryFactory(tenant_id=tenant_id)
        mock_db.execute.side_effect = [
            scalar_result(parent),
            scalar_result(None),
            scalar_result(2),
        ]

        subcategory = await service.create(
            tenant_id,
            SubcategoryCreate(category_id=parent.id, name="Android Phones", description="Android"),
        )

        assert subcategory.slug == "android-phones"
        assert subcategory.sort_order == 3
        assert subcategory.category_id == parent.id

        max_stmt = mock_db.execute.call_args_list[2].args[0]
        assert "subcategories.category_id" in str(max_stmt)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_under_missing_category(
        self,
        service: SubcategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(NotFoundError):
            await service.create(
                tenant_id,
                SubcategoryCreate(category_id=uuid4(), name="Orphan", description="None"),
            )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_move_assigns_position_in_new_parent(
        self,
        service: SubcategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        subcategory = SubcategoryFactory(tenant_id=tenant_id, sort_order=1)
        new_parent = CategoryFactory(tenant_id=tenant_id)
        mock_db.execute.side_effect = [
            scalar_result(subcategory),
            scalar_result(new_parent),
            scalar_result(None),
            scalar_result(6),
        ]

        moved = await service.update(
            subcategory.id,
            tenant_id,
            SubcategoryUpdate(category_id=new_parent.id, version=1),
        )

        assert moved.category_id == new_parent.id
        assert moved.sort_order == 7

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_move_with_taken_slug(
        self,
        service: SubcategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        subcategory = SubcategoryFactory(tenant_id=tenant_id, slug="gaming")
        new_parent = CategoryFactory(tenant_id=tenant_id)
        mock_db.execute.side_effect = [
            scalar_result(subcategory),
            scalar_result(new_parent),
            scalar_result(SubcategoryFactory(slug="gaming")),
        ]

        with pytest.raises(AlreadyExistsError):
            await service.update(
                subcategory.id,
                tenant_id,
                SubcategoryUpdate(category_id=new_parent.id, version=1),
            )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_delete_referenced_by_news(
        self,
        service: SubcategoryService,
        mock_db: AsyncMock,
        tenant_id: UUID,
    ) -> None:
        subcategory = SubcategoryFactory(tenant_id=tenant_id)
        mock_db.execute.side_effect = [
            scalar_result(subcategory),
            scalar_result(0),
            scalar_result(1),
        ]

        with pytest.raises(EntityInUseError) as exc_info:
            await service.soft_delete(subcategory.id, tenant_id)

        assert exc_info.value.detail["dependencies"] == {"tech news": 1}
