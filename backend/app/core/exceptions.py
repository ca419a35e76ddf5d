"""Application exception hierarchy following RFC 7807 Problem Details."""

from typing import Any
from uuid import UUID

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception following RFC 7807.

    All custom exceptions should inherit from this class.
    Provides consistent error response format.
    """

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        detail: dict[str, Any] | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.error_detail = detail or {}

        super().__init__(
            status_code=status_code,
            detail={
                "type": f"https://api.techreview.local/errors/{error_code}",
                "title": error_code.replace("_", " ").title(),
                "status": status_code,
                "detail": message,
                "instance": None,  # Will be set by exception handler
                **self.error_detail,
            },
        )


# ============================================================================
# Authentication & Authorization Exceptions (401, 403)
# ============================================================================


class AuthenticationError(AppException):
    """User is not authenticated."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="authentication_required",
            message=message,
        )


class InvalidCredentialsError(AppException):
    """Invalid login credentials."""

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="invalid_credentials",
            message=message,
        )


class TokenExpiredError(AppException):
    """JWT token has expired."""

    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="token_expired",
            message=message,
        )


class InvalidTokenError(AppException):
    """JWT token is invalid."""

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="invalid_token",
            message=message,
        )


class PermissionDeniedError(AppException):
    """Role lacks the grant for a (resource, action) pair."""

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        action: str | None = None,
    ) -> None:
        detail: dict[str, Any] = {}
        if resource and action:
            detail["required_permission"] = f"{resource}:{action}"
            message = message or f"Access denied. Missing permission: {action} on {resource}"

        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="permission_denied",
            message=message or "Permission denied",
            detail=detail,
        )


class SystemRoleModificationError(AppException):
    """Cannot modify or delete system roles."""

    def __init__(self, action: str = "modify") -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="system_role_protected",
            message=f"Cannot {action} system roles",
            detail={"action": action},
        )


# ============================================================================
# Resource Exceptions (404, 409)
# ============================================================================


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(
        self,
        resource: str,
        identifier: str | UUID | None = None,
    ) -> None:
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id '{identifier}' not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="not_found",
            message=message,
            detail={"resource": resource},
        )


class AlreadyExistsError(AppException):
    """Resource already exists (conflict)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str,
    ) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="already_exists",
            message=f"{resource} with {field}='{value}' already exists",
            detail={"resource": resource, "field": field, "value": value},
        )


class DuplicateRoleError(AppException):
    """Role with this name already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="duplicate_role",
            message=f"Role with name '{name}' already exists",
            detail={"role_name": name},
        )


class EntityInUseError(AppException):
    """Deletion refused because other records still reference the entity.

    Carries the usage report so the client can show what blocks the delete.
    """

    def __init__(
        self,
        resource: str,
        usage_message: str,
        dependencies: dict[str, int],
    ) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="entity_in_use",
            message=f"Cannot delete {resource.lower()}. It is currently: {usage_message}",
            detail={"resource": resource, "dependencies": dependencies},
        )


class VersionConflictError(AppException):
    """Optimistic locking conflict - resource was modified."""

    def __init__(
        self,
        resource: str,
        current_version: int,
        provided_version: int,
    ) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="version_conflict",
            message=f"{resource} was modified by another user. Please refresh and try again.",
            detail={
                "resource": resource,
                "current_version": current_version,
                "provided_version": provided_version,
            },
        )


# ============================================================================
# Tenant Exceptions
# ============================================================================


class TenantRequiredError(AppException):
    """Tenant ID is required in multi-tenant mode."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="tenant_required",
            message="tenant_id parameter is required in multi-tenant mode",
        )


class TenantHeaderRequiredError(AppException):
    """X-Tenant-ID header is required in multi-tenant mode."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="tenant_header_required",
            message="X-Tenant-ID header is required (single_tenant_mode=false)",
        )


class InvalidTenantIdError(AppException):
    """Invalid tenant ID format."""

    def __init__(self, value: str) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="invalid_tenant_id",
            message="Invalid X-Tenant-ID format",
            detail={"value": value},
        )


class TenantNotFoundError(AppException):
    """Tenant not found or inactive."""

    def __init__(self, tenant_id: UUID | str) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="tenant_not_found",
            message="Tenant not found or inactive",
            detail={"tenant_id": str(tenant_id)},
        )


class DefaultTenantConfigError(AppException):
    """Default tenant configuration error in single-tenant mode."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="default_tenant_config_error",
            message=reason,
        )


# ============================================================================
# Validation Exceptions (400)
# ============================================================================


class ValidationError(AppException):
    """Request validation error."""

    def __init__(
        self,
        message: str,
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="validation_error",
            message=message,
            detail={"errors": errors or []},
        )


class SortOrderConflictError(AppException):
    """Requested sort order is already taken by another record."""

    def __init__(
        self,
        sort_order: int,
        conflicting_id: UUID | None = None,
        conflicting_name: str | None = None,
    ) -> None:
        if conflicting_name:
            message = (
                f'Sort order {sort_order} already exists for "{conflicting_name}". '
                "Please choose a different one."
            )
        else:
            message = f"Sort order {sort_order} already exists. Please choose a different one."

        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="sort_order_conflict",
            message=message,
            detail={
                "sort_order": sort_order,
                "conflicting_id": str(conflicting_id) if conflicting_id else None,
                "conflicting_name": conflicting_name,
            },
        )


# ============================================================================
# Infrastructure Exceptions (503)
# ============================================================================


class DatabaseError(AppException):
    """Database connection or query error."""

    def __init__(self, message: str = "Database error occurred") -> None:
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code="database_error",
            message=message,
        )
