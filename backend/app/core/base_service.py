"""Base service with common CRUD operations.

Provides reusable patterns for the service layer to reduce code duplication.
"""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from app.core.base_model import Base
from app.core.exceptions import EntityInUseError, NotFoundError
from app.core.logging import get_logger
from app.core.usage import UsageReport, check_usage

logger = get_logger(__name__)

# Type variable for models
ModelT = TypeVar("ModelT", bound=Base)


class BaseService(Generic[ModelT]):
    """Base service class with common CRUD operations.

    Provides standard patterns for:
    - get_by_id with tenant isolation
    - usage-guarded soft delete
    - pagination

    Usage:
        class CategoryService(BaseService[Category]):
            model = Category
            usage_entity_type = "Category"

            async def get_by_id(self, category_id: UUID, tenant_id: UUID) -> Category:
                return await self._get_by_id(category_id, tenant_id)
    """

    # Override in subclass
    model: type[ModelT]
    # Key into USAGE_RULES; None means deletes are not usage-checked
    usage_entity_type: str | None = None

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def _get_default_options(self) -> list[Any]:
        """Override in subclass to provide default eager loading options."""
        return []

    def _build_base_query(
        self,
        tenant_id: UUID,
        *,
        filters: list[Any] | None = None,
        include_deleted: bool = False,
    ) -> Select:
        """Build base query with tenant and soft-delete filters."""
        stmt = select(self.model)

        if hasattr(self.model, "tenant_id"):
            stmt = stmt.where(self.model.tenant_id == tenant_id)

        if hasattr(self.model, "deleted_at") and not include_deleted:
            stmt = stmt.where(self.model.deleted_at.is_(None))

        for condition in filters or []:
            stmt = stmt.where(condition)

        return stmt

    async def _get_by_id(
        self,
        entity_id: UUID,
        tenant_id: UUID,
        *,
        options: list[Any] | None = None,
        include_deleted: bool = False,
    ) -> ModelT:
        """Get entity by ID with tenant isolation.

        Raises:
            NotFoundError: If entity not found
        """
        load_options = options if options is not None else self._get_default_options()

        stmt = self._build_base_query(tenant_id, include_deleted=include_deleted)
        stmt = stmt.where(self.model.id == entity_id)
        if load_options:
            stmt = stmt.options(*load_options)

        result = await self.db.execute(stmt)
        entity = result.scalar_one_or_none()

        if not entity:
            raise NotFoundError(self.model.__name__, entity_id)

        return entity

    async def _paginate(
        self,
        base_query: Select,
        page: int,
        page_size: int,
        *,
        options: list[Any] | None = None,
        order_by: list[Any] | None = None,
    ) -> tuple[list[ModelT], int]:
        """Execute paginated query.

        Returns:
            Tuple of (items, total_count)
        """
        load_options = options if options is not None else self._get_default_options()

        count_stmt = select(func.count()).select_from(base_query.subquery())
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = base_query
        if load_options:
            stmt = stmt.options(*load_options)
        if order_by:
            stmt = stmt.order_by(*order_by)

        stmt = stmt.offset((page - 1) * page_size).limit(page_size)

        result = await self.db.execute(stmt)
        items = list(result.scalars().all())

        return items, total

    async def get_usage(self, entity_id: UUID, tenant_id: UUID) -> UsageReport:
        """Usage report for an existing entity ("are you sure" gate)."""
        await self._get_by_id(entity_id, tenant_id, options=[])
        if self.usage_entity_type is None:
            return UsageReport()
        return await check_usage(self.db, self.usage_entity_type, entity_id)

    async def _ensure_not_in_use(self, entity: ModelT) -> UsageReport:
        """Raise EntityInUseError if active records still reference the entity."""
        if self.usage_entity_type is None:
            return UsageReport()

        report = await check_usage(self.db, self.usage_entity_type, entity.id)
        if report.is_used:
            raise EntityInUseError(
                self.usage_entity_type,
                report.message,
                report.dependencies,
            )
        if report.degraded:
            logger.warning(
                "delete_with_degraded_usage_check",
                entity_type=self.usage_entity_type,
                entity_id=str(entity.id),
                degraded=report.degraded,
            )
        return report

    async def _soft_delete(self, entity_id: UUID, tenant_id: UUID) -> ModelT:
        """Soft delete an entity after the usage check passes.

        Raises:
            NotFoundError: If entity not found
            EntityInUseError: If other records still reference it
        """
        entity = await self._get_by_id(entity_id, tenant_id, options=[])
        await self._ensure_not_in_use(entity)

        entity.soft_delete()
        await self.db.flush()

        logger.info(
            "entity_deleted",
            entity_type=self.model.__name__,
            entity_id=str(entity_id),
        )
        return entity
