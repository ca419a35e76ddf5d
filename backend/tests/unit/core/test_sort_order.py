"""Unit tests for sort order assignment."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import SortOrderConflictError, ValidationError
from app.core.sort_order import (
    assign_sort_order,
    coerce_sort_order,
    is_sort_order_violation,
    sort_order_guard,
)
from app.modules.catalog.models import Category, Subcategory
from tests.fixtures.db import scalar_result
from tests.fixtures.factories import CategoryFactory


def _integrity_error(message: str) -> IntegrityError:
    return IntegrityError("INSERT", {}, Exception(message))


class TestCoerceSortOrder:
    """Tests for coerce_sort_order."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (3, 3),
            (0, 0),
            (4.0, 4),
            ("7", 7),
            (" 12 ", 12),
            (None, None),
            ("", None),
            ("abc", None),
            (True, None),
            ([1], None),
        ],
    )
    def test_coerce(self, value, expected) -> None:
        assert coerce_sort_order(value) == expected

    @pytest.mark.unit
    def test_fractional_value_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            coerce_sort_order(2.5)


class TestAssignSortOrder:
    """Tests for assign_sort_order."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_value_goes_after_last(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = scalar_result(7)

        assert await assign_sort_order(mock_db, Category, None) == 8

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_value_in_empty_scope_is_one(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = scalar_result(None)

        assert await assign_sort_order(mock_db, Category, None) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_non_numeric_value_is_treated_as_missing(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = scalar_result(2)

        assert await assign_sort_order(mock_db, Category, "first") == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_free_value_is_kept(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = scalar_result(None)

        assert await assign_sort_order(mock_db, Category, 5) == 5

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_numeric_string_is_kept(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = scalar_result(None)

        assert await assign_sort_order(mock_db, Category, "5") == 5

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_taken_value_conflicts(self, mock_db: AsyncMock) -> None:
        holder = CategoryFactory(name="Smartphones", sort_order=2)
        mock_db.execute.return_value = scalar_result(holder)

        with pytest.raises(SortOrderConflictError) as exc_info:
            await assign_sort_order(mock_db, Category, 2)

        error = exc_info.value
        assert error.status_code == 400
        assert "Smartphones" in error.message
        assert error.detail["sort_order"] == 2
        assert error.detail["conflicting_id"] == str(holder.id)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_collision_query_is_scoped(self, mock_db: AsyncMock) -> None:
        """The lookup filters by scope, excluded id and soft deletion."""
        category_id = uuid4()
        own_id = uuid4()
        mock_db.execute.return_value = scalar_result(None)

        await assign_sort_order(
            mock_db,
            Subcategory,
            3,
            scope=[Subcategory.category_id == category_id],
            exclude_id=own_id,
        )

        stmt = mock_db.execute.call_args.args[0]
        sql = str(stmt)
        assert "subcategories.category_id" in sql
        assert "subcategories.deleted_at IS NULL" in sql
        assert "subcategories.id !=" in sql

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_existing_rows_are_never_renumbered(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = scalar_result(None)

        await assign_sort_order(mock_db, Category, 1)

        mock_db.flush.assert_not_called()
        assert mock_db.execute.await_count == 1


class TestSortOrderGuard:
    """Tests for sort_order_guard."""

    @pytest.mark.unit
    def test_detects_sort_order_index(self) -> None:
        error = _integrity_error(
            'duplicate key value violates unique constraint "uq_categories_tenant_sort_order"'
        )

        assert is_sort_order_violation(error) is True

    @pytest.mark.unit
    def test_ignores_other_constraints(self) -> None:
        error = _integrity_error('duplicate key value violates unique constraint "uq_categories_tenant_slug"')

        assert is_sort_order_violation(error) is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_translates_race_into_conflict(self) -> None:
        flush = AsyncMock(side_effect=_integrity_error("uq_subcategories_category_sort_order"))

        with pytest.raises(SortOrderConflictError) as exc_info:
            async with sort_order_guard(4):
                await flush()

        assert exc_info.value.detail["sort_order"] == 4

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reraises_unrelated_integrity_error(self) -> None:
        flush = AsyncMock(side_effect=_integrity_error("uq_categories_tenant_slug"))

        with pytest.raises(IntegrityError):
            async with sort_order_guard(4):
                await flush()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_passes_through_success(self) -> None:
        flush = Mock()

        async with sort_order_guard(1):
            flush()

        flush.assert_called_once()
