"""Sort order assignment for manually ordered records.

A requested position is kept as is unless another active record in the same
scope already holds it; a missing position goes after the current last one.
Other records are never renumbered.

The check here is a read. Uniqueness itself is enforced by partial unique
indexes on (scope..., sort_order) and ``sort_order_guard`` turns a violation
raised at flush time into the same ``SortOrderConflictError``.
"""

from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.base_model import Base
from app.core.exceptions import SortOrderConflictError, ValidationError
from app.core.logging import get_logger

logger = get_logger(__name__)

# Partial unique indexes guarding sort positions
SORT_ORDER_INDEXES = frozenset({
    "uq_categories_tenant_sort_order",
    "uq_subcategories_category_sort_order",
})


def coerce_sort_order(requested: Any) -> int | None:
    """Return the requested position as int, or None when it is not a number."""
    if requested is None or isinstance(requested, bool):
        return None
    if isinstance(requested, int):
        return requested
    if isinstance(requested, float):
        if not requested.is_integer():
            raise ValidationError(
                "sort_order must be a whole number",
                errors=[{"field": "sort_order", "value": requested}],
            )
        return int(requested)
    if isinstance(requested, str):
        candidate = requested.strip()
        if candidate.lstrip("-").isdigit():
            return int(candidate)
    return None


def _display_name(record: Any) -> str | None:
    for attr in ("name", "title", "slug"):
        value = getattr(record, attr, None)
        if value:
            return str(value)
    return None


async def assign_sort_order(
    db: AsyncSession,
    model: type[Base],
    requested: Any = None,
    *,
    scope: Sequence[Any] = (),
    exclude_id: UUID | None = None,
) -> int:
    """Pick the sort position for a new or repositioned record.

    Args:
        db: Database session
        model: Mapped class with a ``sort_order`` column
        requested: Position asked for by the client (may be missing)
        scope: Filter expressions limiting the collection, e.g. tenant/parent
        exclude_id: Record being updated, ignored when looking for collisions

    Raises:
        SortOrderConflictError: If another active record holds the position
    """
    value = coerce_sort_order(requested)

    conditions = list(scope)
    if hasattr(model, "deleted_at"):
        conditions.append(model.deleted_at.is_(None))

    if value is None:
        stmt = select(func.max(model.sort_order))
        for condition in conditions:
            stmt = stmt.where(condition)
        current_max = (await db.execute(stmt)).scalar()
        return 1 if current_max is None else current_max + 1

    stmt = select(model).where(model.sort_order == value)
    for condition in conditions:
        stmt = stmt.where(condition)
    if exclude_id is not None:
        stmt = stmt.where(model.id != exclude_id)

    existing = (await db.execute(stmt.limit(1))).scalar_one_or_none()
    if existing is not None:
        raise SortOrderConflictError(
            value,
            conflicting_id=existing.id,
            conflicting_name=_display_name(existing),
        )

    return value


def is_sort_order_violation(error: IntegrityError) -> bool:
    """Check whether an IntegrityError comes from a sort order unique index."""
    message = str(error.orig) if error.orig is not None else str(error)
    return any(name in message for name in SORT_ORDER_INDEXES)


@asynccontextmanager
async def sort_order_guard(sort_order: int) -> AsyncGenerator[None, None]:
    """Translate a sort order unique violation raised inside the block.

    Usage:
        async with sort_order_guard(category.sort_order):
            await self.db.flush()
    """
    try:
        yield
    except IntegrityError as e:
        if not is_sort_order_violation(e):
            raise
        logger.info("sort_order_race_detected", sort_order=sort_order)
        raise SortOrderConflictError(sort_order) from e
