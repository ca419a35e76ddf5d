"""Catalog service - categories, subcategories and the public menu."""

from uuid import UUID

from sqlalchemy import or_, select

from app.core.base_service import BaseService
from app.core.database import transactional
from app.core.exceptions import AlreadyExistsError, NotFoundError, ValidationError
from app.core.logging import get_logger
from app.core.slugs import slugify
from app.core.sort_order import assign_sort_order, sort_order_guard
from app.modules.catalog.models import Category, CategoryGroup, Subcategory
from app.modules.catalog.schemas import (
    CategoryCreate,
    CategoryUpdate,
    SubcategoryCreate,
    SubcategoryUpdate,
)
from app.modules.content.models import StaticPage

logger = get_logger(__name__)


def _resolve_slug(slug: str | None, name: str) -> str:
    candidate = slug or slugify(name)
    if not candidate:
        raise ValidationError(
            "Could not derive a slug from the name, provide one explicitly",
            errors=[{"field": "slug", "value": slug}],
        )
    return candidate


class CategoryService(BaseService[Category]):
    """Service for managing categories."""

    model = Category
    usage_entity_type = "Category"

    async def get_by_id(self, category_id: UUID, tenant_id: UUID) -> Category:
        return await self._get_by_id(category_id, tenant_id)

    async def get_by_slug(self, slug: str, tenant_id: UUID) -> Category:
        """Get an active category by slug (public view)."""
        stmt = self._build_base_query(
            tenant_id,
            filters=[Category.slug == slug, Category.is_active.is_(True)],
        )
        result = await self.db.execute(stmt)
        category = result.scalar_one_or_none()

        if not category:
            raise NotFoundError("Category", slug)

        return category

    async def list_categories(
        self,
        tenant_id: UUID,
        page: int = 1,
        page_size: int = 20,
        group: CategoryGroup | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> tuple[list[Category], int]:
        filters = []
        if group is not None:
            filters.append(Category.group == group.value)
        if is_active is not None:
            filters.append(Category.is_active == is_active)
        if search:
            pattern = f"%{search}%"
            filters.append(or_(Category.name.ilike(pattern), Category.slug.ilike(pattern)))

        base_query = self._build_base_query(tenant_id, filters=filters)
        return await self._paginate(
            base_query,
            page,
            page_size,
            order_by=[Category.sort_order, Category.name],
        )

    async def list_active(self, tenant_id: UUID) -> list[Category]:
        stmt = self._build_base_query(
            tenant_id, filters=[Category.is_active.is_(True)]
        ).order_by(Category.sort_order)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _ensure_slug_free(
        self,
        tenant_id: UUID,
        slug: str,
        exclude_id: UUID | None = None,
    ) -> None:
        stmt = self._build_base_query(tenant_id, filters=[Category.slug == slug])
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)
        existing = (await self.db.execute(stmt.limit(1))).scalar_one_or_none()
        if existing is not None:
            raise AlreadyExistsError("Category", "slug", slug)

    @transactional
    async def create(
        self,
        tenant_id: UUID,
        data: CategoryCreate,
        user_id: UUID | None = None,
    ) -> Category:
        """Create a category.

        Raises:
            AlreadyExistsError: If the slug is taken
            SortOrderConflictError: If the requested position is taken
        """
        slug = _resolve_slug(data.slug, data.name)
        await self._ensure_slug_free(tenant_id, slug)

        sort_order = await assign_sort_order(
            self.db,
            Category,
            data.sort_order,
            scope=[Category.tenant_id == tenant_id],
        )

        category = Category(
            tenant_id=tenant_id,
            slug=slug,
            sort_order=sort_order,
            created_by_id=user_id,
            updated_by_id=user_id,
            **data.model_dump(exclude={"slug", "sort_order", "group"}),
            group=data.group.value,
        )
        self.db.add(category)

        async with sort_order_guard(sort_order):
            await self.db.flush()
        await self.db.refresh(category)

        logger.info(
            "category_created",
            category_id=str(category.id),
            slug=category.slug,
            sort_order=sort_order,
        )
        return category

    @transactional
    async def update(
        self,
        category_id: UUID,
        tenant_id: UUID,
        data: CategoryUpdate,
        user_id: UUID | None = None,
    ) -> Category:
        """Update a category with optimistic locking.

        The position is only re-checked when a different one is requested.
        """
        category = await self.get_by_id(category_id, tenant_id)
        category.check_version(data.version)

        update_data = data.model_dump(exclude_unset=True, exclude={"version"})

        slug = update_data.pop("slug", None)
        if slug and slug != category.slug:
            await self._ensure_slug_free(tenant_id, slug, exclude_id=category_id)
            category.slug = slug

        requested = update_data.pop("sort_order", None)
        if requested is not None and requested != category.sort_order:
            category.sort_order = await assign_sort_order(
                self.db,
                Category,
                requested,
                scope=[Category.tenant_id == tenant_id],
                exclude_id=category_id,
            )

        group = update_data.pop("group", None)
        if group is not None:
            category.group = CategoryGroup(group).value

        for field, value in update_data.items():
            setattr(category, field, value)
        category.updated_by_id = user_id

        async with sort_order_guard(category.sort_order):
            await self.db.flush()
        await self.db.refresh(category)

        logger.info("category_updated", category_id=str(category.id))
        return category

    @transactional
    async def soft_delete(self, category_id: UUID, tenant_id: UUID) -> None:
        """Soft delete a category nothing active references.

        Raises:
            EntityInUseError: If subcategories, reviews or news use it
        """
        await self._soft_delete(category_id, tenant_id)

    async def get_menu(
        self,
        tenant_id: UUID,
    ) -> tuple[dict[CategoryGroup, list[tuple[Category, list[Subcategory]]]], list[StaticPage]]:
        """Navigation data for the public site.

        Returns active categories grouped by ``CategoryGroup`` (groups in
        enum order, categories and subcategories by sort order) and the
        published static pages flagged for the menu.
        """
        categories = await self.list_active(tenant_id)

        subcategories_by_parent: dict[UUID, list[Subcategory]] = {c.id: [] for c in categories}
        if categories:
            stmt = (
                select(Subcategory)
                .where(Subcategory.tenant_id == tenant_id)
                .where(Subcategory.category_id.in_(list(subcategories_by_parent)))
                .where(Subcategory.is_active.is_(True))
                .where(Subcategory.deleted_at.is_(None))
                .order_by(Subcategory.sort_order)
            )
            for sub in (await self.db.execute(stmt)).scalars().all():
                subcategories_by_parent[sub.category_id].append(sub)

        groups: dict[CategoryGroup, list[tuple[Category, list[Subcategory]]]] = {}
        for group in CategoryGroup:
            members = [
                (c, subcategories_by_parent[c.id]) for c in categories if c.group == group.value
            ]
            if members:
                groups[group] = members

        pages_stmt = (
            select(StaticPage)
            .where(StaticPage.tenant_id == tenant_id)
            .where(StaticPage.deleted_at.is_(None))
            .where(StaticPage.status == "published")
            .where(StaticPage.show_in_menu.is_(True))
            .order_by(StaticPage.sort_order, StaticPage.title)
        )
        pages = list((await self.db.execute(pages_stmt)).scalars().all())

        return groups, pages


class SubcategoryService(BaseService[Subcategory]):
    """Service for managing subcategories. Positions are scoped per category."""

    model = Subcategory
    usage_entity_type = "Subcategory"

    async def get_by_id(self, subcategory_id: UUID, tenant_id: UUID) -> Subcategory:
        return await self._get_by_id(subcategory_id, tenant_id)

    async def list_subcategories(
        self,
        tenant_id: UUID,
        page: int = 1,
        page_size: int = 20,
        category_id: UUID | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> tuple[list[Subcategory], int]:
        filters = []
        if category_id is not None:
            filters.append(Subcategory.category_id == category_id)
        if is_active is not None:
            filters.append(Subcategory.is_active == is_active)
        if search:
            pattern = f"%{search}%"
            filters.append(or_(Subcategory.name.ilike(pattern), Subcategory.slug.ilike(pattern)))

        base_query = self._build_base_query(tenant_id, filters=filters)
        return await self._paginate(
            base_query,
            page,
            page_size,
            order_by=[Subcategory.category_id, Subcategory.sort_order],
        )

    async def list_for_category(
        self,
        category_id: UUID,
        tenant_id: UUID,
        *,
        active_only: bool = False,
    ) -> list[Subcategory]:
        filters = [Subcategory.category_id == category_id]
        if active_only:
            filters.append(Subcategory.is_active.is_(True))
        stmt = self._build_base_query(tenant_id, filters=filters).order_by(Subcategory.sort_order)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    def _scope(self, tenant_id: UUID, category_id: UUID) -> list:
        return [Subcategory.tenant_id == tenant_id, Subcategory.category_id == category_id]

    async def _ensure_slug_free(
        self,
        tenant_id: UUID,
        category_id: UUID,
        slug: str,
        exclude_id: UUID | None = None,
    ) -> None:
        stmt = self._build_base_query(
            tenant_id,
            filters=[Subcategory.category_id == category_id, Subcategory.slug == slug],
        )
        if exclude_id is not None:
            stmt = stmt.where(Subcategory.id != exclude_id)
        existing = (await self.db.execute(stmt.limit(1))).scalar_one_or_none()
        if existing is not None:
            raise AlreadyExistsError("Subcategory", "slug", slug)

    @transactional
    async def create(
        self,
        tenant_id: UUID,
        data: SubcategoryCreate,
        user_id: UUID | None = None,
    ) -> Subcategory:
        """Create a subcategory under an existing category.

        Raises:
            NotFoundError: If the parent category does not exist
            AlreadyExistsError: If the slug is taken within the category
            SortOrderConflictError: If the requested position is taken
        """
        await CategoryService(self.db).get_by_id(data.category_id, tenant_id)

        slug = _resolve_slug(data.slug, data.name)
        await self._ensure_slug_free(tenant_id, data.category_id, slug)

        sort_order = await assign_sort_order(
            self.db,
            Subcategory,
            data.sort_order,
            scope=self._scope(tenant_id, data.category_id),
        )

        subcategory = Subcategory(
            tenant_id=tenant_id,
            slug=slug,
            sort_order=sort_order,
            created_by_id=user_id,
            updated_by_id=user_id,
            **data.model_dump(exclude={"slug", "sort_order"}),
        )
        self.db.add(subcategory)

        async with sort_order_guard(sort_order):
            await self.db.flush()
        await self.db.refresh(subcategory)
        await self.db.refresh(subcategory, ["category"])

        logger.info(
            "subcategory_created",
            subcategory_id=str(subcategory.id),
            category_id=str(data.category_id),
            sort_order=sort_order,
        )
        return subcategory

    @transactional
    async def update(
        self,
        subcategory_id: UUID,
        tenant_id: UUID,
        data: SubcategoryUpdate,
        user_id: UUID | None = None,
    ) -> Subcategory:
        """Update a subcategory with optimistic locking.

        Moving it to another category without a position puts it after the
        last subcategory of the new parent.
        """
        subcategory = await self.get_by_id(subcategory_id, tenant_id)
        subcategory.check_version(data.version)

        update_data = data.model_dump(exclude_unset=True, exclude={"version"})

        new_parent = update_data.pop("category_id", None)
        moved = new_parent is not None and new_parent != subcategory.category_id
        if moved:
            await CategoryService(self.db).get_by_id(new_parent, tenant_id)
        parent_id = new_parent if moved else subcategory.category_id

        slug = update_data.pop("slug", None)
        if (slug and slug != subcategory.slug) or moved:
            await self._ensure_slug_free(
                tenant_id, parent_id, slug or subcategory.slug, exclude_id=subcategory_id
            )
            if slug:
                subcategory.slug = slug

        requested = update_data.pop("sort_order", None)
        if moved or (requested is not None and requested != subcategory.sort_order):
            subcategory.sort_order = await assign_sort_order(
                self.db,
                Subcategory,
                requested,
                scope=self._scope(tenant_id, parent_id),
                exclude_id=subcategory_id,
            )
        subcategory.category_id = parent_id

        for field, value in update_data.items():
            setattr(subcategory, field, value)
        subcategory.updated_by_id = user_id

        async with sort_order_guard(subcategory.sort_order):
            await self.db.flush()
        await self.db.refresh(subcategory)
        await self.db.refresh(subcategory, ["category"])

        logger.info(
            "subcategory_updated",
            subcategory_id=str(subcategory.id),
            moved=moved,
        )
        return subcategory

    @transactional
    async def soft_delete(self, subcategory_id: UUID, tenant_id: UUID) -> None:
        """Soft delete a subcategory no review or news item references."""
        await self._soft_delete(subcategory_id, tenant_id)
