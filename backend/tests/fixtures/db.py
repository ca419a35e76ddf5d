"""Scripted stand-ins for ``AsyncSession`` and its results."""

from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock, Mock
from uuid import uuid4


class FakeSavepoint:
    """Async context manager standing in for ``AsyncSession.begin_nested()``."""

    async def __aenter__(self) -> "FakeSavepoint":
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> bool:
        return False


def scalar_result(value: Any) -> MagicMock:
    """Result whose ``scalar()`` and ``scalar_one_or_none()`` return ``value``."""
    result = MagicMock()
    result.scalar.return_value = value
    result.scalar_one_or_none.return_value = value
    return result


def scalars_result(items: list[Any]) -> MagicMock:
    """Result whose ``scalars().all()`` returns ``items``."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = items
    return result


async def apply_insert_defaults(obj: Any, attribute_names: list[str] | None = None) -> None:
    """Fill what a real flush and refresh would load for a new row."""
    now = datetime.now(UTC)
    defaults = {
        "id": uuid4,
        "created_at": lambda: now,
        "updated_at": lambda: now,
        "version": lambda: 1,
        "view_count": lambda: 0,
        "is_edited": lambda: False,
        "is_approved": lambda: True,
        "is_hidden": lambda: False,
    }
    for attr, factory in defaults.items():
        if hasattr(obj, attr) and getattr(obj, attr) is None:
            setattr(obj, attr, factory())


def make_mock_db() -> AsyncMock:
    db = AsyncMock()
    db.add = Mock()
    db.begin_nested = Mock(side_effect=lambda: FakeSavepoint())
    db.refresh = AsyncMock(side_effect=apply_insert_defaults)
    # Raw driver statements (SET LOCAL ...) go through the connection
    db.connection = AsyncMock(return_value=AsyncMock())
    return db
