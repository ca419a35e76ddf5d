"""Pydantic schemas for authentication module."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.permissions import Action, Grant, Resource
from app.core.schemas import PartialUpdate

USERNAME_PATTERN = r"^[a-zA-Z0-9_]{3,30}$"


# ============================================================================
# Token Schemas
# ============================================================================


class TokenPair(BaseModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token expiration in seconds")


class TokenRefresh(BaseModel):
    """Request schema for refreshing tokens."""

    refresh_token: str


# ============================================================================
# Login / Registration Schemas
# ============================================================================


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    """Self-service reader registration."""

    username: str = Field(..., pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)


class LoginResponse(BaseModel):
    """Login response with tokens and user info."""

    tokens: TokenPair
    user: "UserResponse"


# ============================================================================
# Role Schemas
# ============================================================================


class GrantSchema(BaseModel):
    """One (resource, actions) entry of a role."""

    resource: Resource
    actions: list[Action] = Field(..., min_length=1)

    @field_validator("actions")
    @classmethod
    def dedupe_actions(cls, v: list[Action]) -> list[Action]:
        return [a for a in Action if a in v]

    def to_storage(self) -> dict[str, Any]:
        return Grant(self.resource.value, frozenset(a.value for a in self.actions)).to_dict()


class RoleBase(BaseModel):
    """Base role schema."""

    name: str = Field(..., min_length=2, max_length=50)
    description: str | None = None


class RoleCreate(RoleBase):
    """Schema for creating a role."""

    permissions: list[GrantSchema] = Field(default_factory=list)


class RoleUpdate(BaseModel):
    """Schema for updating a role. ``permissions`` replaces the whole list."""

    name: str | None = Field(default=None, min_length=2, max_length=50)
    description: str | None = None
    is_active: bool | None = None
    permissions: list[GrantSchema] | None = None


class RoleResponse(RoleBase):
    """Schema for role response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    is_system: bool
    is_active: bool
    permissions: list[GrantSchema] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class RoleListResponse(BaseModel):
    """Schema for role list response."""

    items: list[RoleResponse]
    total: int


class RoleSeedResponse(BaseModel):
    """Result of seeding default roles."""

    created: int
    roles: list[str]


# ============================================================================
# User Schemas
# ============================================================================


class UserBase(BaseModel):
    """Base user schema."""

    email: EmailStr
    username: str = Field(..., pattern=USERNAME_PATTERN)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)


class UserCreate(UserBase):
    """Schema for creating a user from the admin panel."""

    password: str = Field(..., min_length=6, max_length=100)
    role_id: UUID | None = None
    is_active: bool = True


class UserUpdate(PartialUpdate):
    """Schema for updating a user."""

    non_nullable = frozenset({"first_name", "last_name", "is_active"})

    first_name: str | None = Field(default=None, min_length=1, max_length=50)
    last_name: str | None = Field(default=None, min_length=1, max_length=50)
    avatar_url: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None
    role_id: UUID | None = None
    version: int = Field(..., description="Current version for optimistic locking")


class PasswordChange(BaseModel):
    """Schema for changing password."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=100)


class RoleBrief(BaseModel):
    """Role as embedded in user responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str


class UserResponse(UserBase):
    """Schema for user response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    is_active: bool
    avatar_url: str | None = None
    last_login_at: datetime | None = None
    role: RoleBrief | None = None
    version: int
    created_at: datetime
    updated_at: datetime


class UserListResponse(BaseModel):
    """Schema for user list response."""

    items: list[UserResponse]
    total: int
    page: int
    page_size: int


class RoleCount(BaseModel):
    role: str
    count: int


class UserStats(BaseModel):
    """Dashboard counters for users in one tenant."""

    total: int
    active: int
    inactive: int
    registered_last_30_days: int
    by_role: list[RoleCount]


# ============================================================================
# Current User Schemas
# ============================================================================


class MeResponse(BaseModel):
    """Schema for current user info response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    email: str
    username: str
    first_name: str
    last_name: str
    full_name: str
    avatar_url: str | None = None
    role: RoleBrief | None = None
    permissions: list[str] = Field(default_factory=list)


# Fix forward references
LoginResponse.model_rebuild()
