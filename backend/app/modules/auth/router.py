"""API routes for authentication, users and roles."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import Pagination, get_tenant_from_header
from app.core.logging import get_logger
from app.core.permissions import Action, Resource, permission_codes
from app.core.redis import get_token_blacklist
from app.core.security import (
    PermissionChecker,
    TokenPayload,
    get_current_active_user,
    get_current_tenant_id,
    get_current_token,
)
from app.core.usage import UsageReport
from app.modules.auth.models import User
from app.modules.auth.schemas import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    PasswordChange,
    RegisterRequest,
    RoleBrief,
    RoleCreate,
    RoleListResponse,
    RoleResponse,
    RoleSeedResponse,
    RoleUpdate,
    TokenPair,
    TokenRefresh,
    UserCreate,
    UserListResponse,
    UserResponse,
    UserStats,
    UserUpdate,
)
from app.modules.auth.service import AuthService, RoleService, UserService

logger = get_logger(__name__)

router = APIRouter()


# ============================================================================
# Authentication Routes
# ============================================================================


@router.post(
    "/register",
    response_model=LoginResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create a reader account with the USER role and log it in.",
)
async def register(
    data: RegisterRequest,
    tenant_id: UUID = Depends(get_tenant_from_header),
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    service = AuthService(db)
    user, tokens = await service.register(data, tenant_id)
    return LoginResponse(tokens=tokens, user=UserResponse.model_validate(user))


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login",
    description="Authenticate user and receive JWT tokens.",
)
async def login(
    data: LoginRequest,
    request: Request,
    tenant_id: UUID = Depends(get_tenant_from_header),
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    service = AuthService(db)
    ip_address = request.client.host if request.client else None

    user, tokens = await service.authenticate(data, tenant_id, ip_address)

    return LoginResponse(tokens=tokens, user=UserResponse.model_validate(user))


@router.post(
    "/refresh",
    response_model=TokenPair,
    summary="Refresh tokens",
    description="Get new access token using refresh token.",
)
async def refresh_tokens(
    data: TokenRefresh,
    db: AsyncSession = Depends(get_db),
) -> TokenPair:
    service = AuthService(db)
    return await service.refresh_tokens(data.refresh_token)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout",
    description="Revoke the current access token.",
)
async def logout(
    token: TokenPayload = Depends(get_current_token),
) -> None:
    """Add the access token to the Redis blacklist until it expires."""
    if not token.jti:
        return

    blacklist = await get_token_blacklist()
    if blacklist:
        await blacklist.add(token.jti, token.expires_in_seconds)
        logger.info("token_revoked", jti=token.jti[:8], user_id=str(token.user_id))
    else:
        logger.warning("logout_blacklist_unavailable", user_id=str(token.user_id))


# ============================================================================
# Current User Routes
# ============================================================================


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get current user",
)
async def get_me(
    user: User = Depends(get_current_active_user),
) -> MeResponse:
    return MeResponse(
        id=user.id,
        tenant_id=user.tenant_id,
        email=user.email,
        username=user.username,
        first_name=user.first_name,
        last_name=user.last_name,
        full_name=user.full_name,
        avatar_url=user.avatar_url,
        role=RoleBrief.model_validate(user.role) if user.role else None,
        permissions=permission_codes(user.role),
    )


@router.post(
    "/me/password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change password",
)
async def change_my_password(
    data: PasswordChange,
    user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    service = UserService(db)
    await service.change_password(user.id, user.tenant_id, data)


# ============================================================================
# User Management Routes (Admin)
# ============================================================================


@router.get(
    "/users",
    response_model=UserListResponse,
    summary="List users",
    dependencies=[Depends(PermissionChecker(Resource.USERS, Action.READ))],
)
async def list_users(
    pagination: Pagination,
    is_active: bool | None = Query(default=None),
    role_id: UUID | None = Query(default=None),
    search: str | None = Query(default=None, description="Search in email, username and name"),
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> UserListResponse:
    service = UserService(db)
    users, total = await service.list_users(
        tenant_id=tenant_id,
        page=pagination.page,
        page_size=pagination.page_size,
        is_active=is_active,
        role_id=role_id,
        search=search,
    )

    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    dependencies=[Depends(PermissionChecker(Resource.USERS, Action.CREATE))],
)
async def create_user(
    data: UserCreate,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    service = UserService(db)
    user = await service.create(tenant_id, data)
    return UserResponse.model_validate(user)


@router.get(
    "/users/stats",
    response_model=UserStats,
    summary="User statistics",
    dependencies=[Depends(PermissionChecker(Resource.USERS, Action.READ))],
)
async def get_user_stats(
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> UserStats:
    service = UserService(db)
    return await service.get_stats(tenant_id)


@router.get(
    "/users/{user_id}",
    response_model=UserResponse,
    summary="Get user",
    dependencies=[Depends(PermissionChecker(Resource.USERS, Action.READ))],
)
async def get_user(
    user_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    service = UserService(db)
    user = await service.get_by_id(user_id, tenant_id)
    return UserResponse.model_validate(user)


@router.patch(
    "/users/{user_id}",
    response_model=UserResponse,
    summary="Update user",
    dependencies=[Depends(PermissionChecker(Resource.USERS, Action.UPDATE))],
)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    service = UserService(db)
    user = await service.update(user_id, tenant_id, data)
    return UserResponse.model_validate(user)


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete user",
    dependencies=[Depends(PermissionChecker(Resource.USERS, Action.DELETE))],
)
async def delete_user(
    user_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> None:
    service = UserService(db)
    await service.soft_delete(user_id, tenant_id)


# ============================================================================
# Role Routes
# ============================================================================
# Reading roles is part of user administration; changing them needs a
# grant on the "all" resource (SUPER_ADMIN by default).


@router.get(
    "/roles",
    response_model=RoleListResponse,
    summary="List roles",
    dependencies=[Depends(PermissionChecker(Resource.USERS, Action.READ))],
)
async def list_roles(
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> RoleListResponse:
    service = RoleService(db)
    roles = await service.list_roles(tenant_id)

    return RoleListResponse(
        items=[RoleResponse.model_validate(r) for r in roles],
        total=len(roles),
    )


@router.post(
    "/roles/seed",
    response_model=RoleSeedResponse,
    summary="Seed default roles",
    description="Create missing default roles. Existing roles are not modified.",
    dependencies=[Depends(PermissionChecker(Resource.ALL, Action.CREATE))],
)
async def seed_roles(
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> RoleSeedResponse:
    service = RoleService(db)
    created = await service.seed_default_roles(tenant_id)
    return RoleSeedResponse(created=len(created), roles=created)


@router.get(
    "/roles/{role_id}",
    response_model=RoleResponse,
    summary="Get role",
    dependencies=[Depends(PermissionChecker(Resource.USERS, Action.READ))],
)
async def get_role(
    role_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> RoleResponse:
    service = RoleService(db)
    role = await service.get_by_id(role_id, tenant_id)
    return RoleResponse.model_validate(role)


@router.get(
    "/roles/{role_id}/usage",
    response_model=UsageReport,
    summary="Role usage",
    description="How many users are assigned to the role.",
    dependencies=[Depends(PermissionChecker(Resource.ALL, Action.READ))],
)
async def get_role_usage(
    role_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> UsageReport:
    service = RoleService(db)
    return await service.get_usage(role_id, tenant_id)


@router.post(
    "/roles",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create role",
    dependencies=[Depends(PermissionChecker(Resource.ALL, Action.CREATE))],
)
async def create_role(
    data: RoleCreate,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> RoleResponse:
    service = RoleService(db)
    role = await service.create_role(tenant_id, data)
    return RoleResponse.model_validate(role)


@router.patch(
    "/roles/{role_id}",
    response_model=RoleResponse,
    summary="Update role",
    description="System roles cannot be modified.",
    dependencies=[Depends(PermissionChecker(Resource.ALL, Action.UPDATE))],
)
async def update_role(
    role_id: UUID,
    data: RoleUpdate,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> RoleResponse:
    service = RoleService(db)
    role = await service.update_role(role_id, tenant_id, data)
    return RoleResponse.model_validate(role)


@router.delete(
    "/roles/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete role",
    description="System roles and roles assigned to users cannot be deleted.",
    dependencies=[Depends(PermissionChecker(Resource.ALL, Action.DELETE))],
)
async def delete_role(
    role_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    db: AsyncSession = Depends(get_db),
) -> None:
    service = RoleService(db)
    await service.delete_role(role_id, tenant_id)
