"""Core module - database, errors, logging and the authorization primitives."""

from app.core.database import get_db
from app.core.exceptions import AppException, PermissionDeniedError
from app.core.logging import get_logger
from app.core.permissions import Action, Resource, RoleName, has_permission

__all__ = [
    "get_db",
    "AppException",
    "PermissionDeniedError",
    "get_logger",
    "Action",
    "Resource",
    "RoleName",
    "has_permission",
]
