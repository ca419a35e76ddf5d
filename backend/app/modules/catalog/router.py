"""API routes for catalog module: categories, subcategories and menu."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import Pagination, PublicTenantId
from app.core.permissions import Action, Resource
from app.core.security import PermissionChecker, get_current_tenant_id
from app.core.usage import UsageReport
from app.modules.auth.models import User
from app.modules.catalog.models import CategoryGroup
from app.modules.catalog.schemas import (
    CategoryCreate,
    CategoryListResponse,
    CategoryResponse,
    CategoryUpdate,
    MenuCategory,
    MenuGroup,
    MenuResponse,
    MenuStaticPage,
    MenuSubcategory,
    PublicCategoryResponse,
    SubcategoryCreate,
    SubcategoryListResponse,
    SubcategoryResponse,
    SubcategoryUpdate,
)
from app.modules.catalog.service import CategoryService, SubcategoryService

router = APIRouter()


# ============================================================================
# Public Routes
# ============================================================================


@router.get(
    "/public/categories",
    response_model=list[CategoryResponse],
    summary="List active categories",
    tags=["Public - Catalog"],
)
async def list_categories_public(
    tenant_id: PublicTenantId,
    db: AsyncSession = Depends(get_db),
) -> list[CategoryResponse]:
    service = CategoryService(db)
    categories = await service.list_active(tenant_id)
    return [CategoryResponse.model_validate(c) for c in categories]


@router.get(
    "/public/categories/{slug}",
    response_model=PublicCategoryResponse,
    summary="Get category by slug",
    tags=["Public - Catalog"],
)
async def get_category_public(
    slug: str,
    tenant_id: PublicTenantId,
    db: AsyncSession = Depends(get_db),
) -> PublicCategoryResponse:
    """Get an active category with its active subcategories."""
    category = await CategoryService(db).get_by_slug(slug, tenant_id)
    subcategories = await SubcategoryService(db).list_for_category(
        category.id, tenant_id, active_only=True
    )

    response = PublicCategoryResponse.model_validate(category)
    response.subcategories = [MenuSubcategory.model_validate(s) for s in subcategories]
    return response


@router.get(
    "/public/menu",
    response_model=MenuResponse,
    summary="Navigation menu",
    description="Active categories grouped by navigation group, plus menu pages.",
    tags=["Public - Catalog"],
)
async def get_menu_public(
    tenant_id: PublicTenantId,
    db: AsyncSession = Depends(get_db),
) -> MenuResponse:
    service = CategoryService(db)
    groups, pages = await service.get_menu(tenant_id)

    menu_groups = []
    for group, members in groups.items():
        categories = []
        for category, subcategories in members:
            item = MenuCategory.model_validate(category)
            item.subcategories = [MenuSubcategory.model_validate(s) for s in subcategories]
            categories.append(item)
        menu_groups.append(MenuGroup(group=group, categories=categories))

    return MenuResponse(
        groups=menu_groups,
        static_pages=[MenuStaticPage.model_validate(p) for p in pages],
    )


# ============================================================================
# Admin Routes - Categories
# ============================================================================


@router.get(
    "/admin/categories",
    response_model=CategoryListResponse,
    summary="List categories",
    tags=["Admin - Catalog"],
    dependencies=[Depends(PermissionChecker(Resource.CATEGORIES, Action.READ))],
)
async def list_categories_admin(
    pagination: Pagination,
    group: CategoryGroup | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    search: str | None = Query(default=None, description="Search in name and slug"),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> CategoryListResponse:
    service = CategoryService(db)
    categories, total = await service.list_categories(
        tenant_id=tenant_id,
        page=pagination.page,
        page_size=pagination.page_size,
        group=group,
        is_active=is_active,
        search=search,
    )

    return CategoryListResponse(
        items=[CategoryResponse.model_validate(c) for c in categories],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.post(
    "/admin/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
    description="Without sort_order the category is placed after the last one.",
    tags=["Admin - Catalog"],
)
async def create_category(
    data: CategoryCreate,
    user: User = Depends(PermissionChecker(Resource.CATEGORIES, Action.CREATE)),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> CategoryResponse:
    service = CategoryService(db)
    category = await service.create(tenant_id, data, user_id=user.id)
    return CategoryResponse.model_validate(category)


@router.get(
    "/admin/categories/{category_id}",
    response_model=CategoryResponse,
    summary="Get category",
    tags=["Admin - Catalog"],
    dependencies=[Depends(PermissionChecker(Resource.CATEGORIES, Action.READ))],
)
async def get_category_admin(
    category_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> CategoryResponse:
    service = CategoryService(db)
    category = await service.get_by_id(category_id, tenant_id)
    return CategoryResponse.model_validate(category)


@router.get(
    "/admin/categories/{category_id}/usage",
    response_model=UsageReport,
    summary="Category usage",
    description="Active subcategories, reviews and news referencing the category.",
    tags=["Admin - Catalog"],
    dependencies=[Depends(PermissionChecker(Resource.CATEGORIES, Action.READ))],
)
async def get_category_usage(
    category_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> UsageReport:
    service = CategoryService(db)
    return await service.get_usage(category_id, tenant_id)


@router.patch(
    "/admin/categories/{category_id}",
    response_model=CategoryResponse,
    summary="Update category",
    tags=["Admin - Catalog"],
)
async def update_category(
    category_id: UUID,
    data: CategoryUpdate,
    user: User = Depends(PermissionChecker(Resource.CATEGORIES, Action.UPDATE)),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> CategoryResponse:
    service = CategoryService(db)
    category = await service.update(category_id, tenant_id, data, user_id=user.id)
    return CategoryResponse.model_validate(category)


@router.delete(
    "/admin/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete category",
    description="Fails with 409 while subcategories, reviews or news use the category.",
    tags=["Admin - Catalog"],
    dependencies=[Depends(PermissionChecker(Resource.CATEGORIES, Action.DELETE))],
)
async def delete_category(
    category_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> None:
    service = CategoryService(db)
    await service.soft_delete(category_id, tenant_id)


# ============================================================================
# Admin Routes - Subcategories
# ============================================================================


@router.get(
    "/admin/subcategories",
    response_model=SubcategoryListResponse,
    summary="List subcategories",
    tags=["Admin - Catalog"],
    dependencies=[Depends(PermissionChecker(Resource.SUBCATEGORIES, Action.READ))],
)
async def list_subcategories_admin(
    pagination: Pagination,
    category_id: UUID | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    search: str | None = Query(default=None),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> SubcategoryListResponse:
    service = SubcategoryService(db)
    subcategories, total = await service.list_subcategories(
        tenant_id=tenant_id,
        page=pagination.page,
        page_size=pagination.page_size,
        category_id=category_id,
        is_active=is_active,
        search=search,
    )

    return SubcategoryListResponse(
        items=[SubcategoryResponse.model_validate(s) for s in subcategories],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.post(
    "/admin/subcategories",
    response_model=SubcategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create subcategory",
    description="Without sort_order the subcategory is placed last within its category.",
    tags=["Admin - Catalog"],
)
async def create_subcategory(
    data: SubcategoryCreate,
    user: User = Depends(PermissionChecker(Resource.SUBCATEGORIES, Action.CREATE)),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> SubcategoryResponse:
    service = SubcategoryService(db)
    subcategory = await service.create(tenant_id, data, user_id=user.id)
    return SubcategoryResponse.model_validate(subcategory)


@router.get(
    "/admin/subcategories/{subcategory_id}",
    response_model=SubcategoryResponse,
    summary="Get subcategory",
    tags=["Admin - Catalog"],
    dependencies=[Depends(PermissionChecker(Resource.SUBCATEGORIES, Action.READ))],
)
async def get_subcategory_admin(
    subcategory_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> SubcategoryResponse:
    service = SubcategoryService(db)
    subcategory = await service.get_by_id(subcategory_id, tenant_id)
    return SubcategoryResponse.model_validate(subcategory)


@router.get(
    "/admin/subcategories/{subcategory_id}/usage",
    response_model=UsageReport,
    summary="Subcategory usage",
    tags=["Admin - Catalog"],
    dependencies=[Depends(PermissionChecker(Resource.SUBCATEGORIES, Action.READ))],
)
async def get_subcategory_usage(
    subcategory_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> UsageReport:
    service = SubcategoryService(db)
    return await service.get_usage(subcategory_id, tenant_id)


@router.patch(
    "/admin/subcategories/{subcategory_id}",
    response_model=SubcategoryResponse,
    summary="Update subcategory",
    tags=["Admin - Catalog"],
)
async def update_subcategory(
    subcategory_id: UUID,
    data: SubcategoryUpdate,
    user: User = Depends(PermissionChecker(Resource.SUBCATEGORIES, Action.UPDATE)),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> SubcategoryResponse:
    service = SubcategoryService(db)
    subcategory = await service.update(subcategory_id, tenant_id, data, user_id=user.id)
    return SubcategoryResponse.model_validate(subcategory)


@router.delete(
    "/admin/subcategories/{subcategory_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete subcategory",
    description="Fails with 409 while reviews or news use the subcategory.",
    tags=["Admin - Catalog"],
    dependencies=[Depends(PermissionChecker(Resource.SUBCATEGORIES, Action.DELETE))],
)
async def delete_subcategory(
    subcategory_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> None:
    service = SubcategoryService(db)
    await service.soft_delete(subcategory_id, tenant_id)
