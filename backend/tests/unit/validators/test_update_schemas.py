"""Unit tests for partial update bodies."""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from app.modules.auth.schemas import UserUpdate
from app.modules.catalog.schemas import CategoryUpdate, SubcategoryUpdate
from app.modules.content.schemas import ReviewUpdate, StaticPageUpdate, TechNewsUpdate


class TestExplicitNulls:
    """Omitted fields are fine; null for a required column is not."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("schema", "field"),
        [
            (CategoryUpdate, "name"),
            (CategoryUpdate, "is_active"),
            (SubcategoryUpdate, "description"),
            (ReviewUpdate, "content"),
            (ReviewUpdate, "category_id"),
            (TechNewsUpdate, "tags"),
            (StaticPageUpdate, "show_in_menu"),
            (UserUpdate, "first_name"),
        ],
    )
    def test_null_is_rejected(self, schema: type, field: str) -> None:
        with pytest.raises(ValidationError, match=field):
            schema.model_validate({field: None, "version": 1})

    @pytest.mark.unit
    def test_omitted_fields_are_accepted(self) -> None:
        data = CategoryUpdate(version=1)

        assert data.model_dump(exclude_unset=True) == {"version": 1}

    @pytest.mark.unit
    def test_nullable_columns_accept_null(self) -> None:
        data = CategoryUpdate.model_validate({"icon": None, "meta_title": None, "version": 1})

        assert data.icon is None
        assert data.model_fields_set == {"icon", "meta_title", "version"}

    @pytest.mark.unit
    def test_review_subcategory_null_left_to_service(self) -> None:
        data = ReviewUpdate.model_validate({"subcategory_id": None, "version": 1})

        assert "subcategory_id" in data.model_fields_set

    @pytest.mark.unit
    def test_user_role_can_be_cleared(self) -> None:
        data = UserUpdate.model_validate({"role_id": None, "version": 1})

        assert data.role_id is None

    @pytest.mark.unit
    def test_values_still_accepted(self) -> None:
        category_id = uuid4()

        data = TechNewsUpdate(title="New", category_id=category_id, version=2)

        assert data.category_id == category_id
