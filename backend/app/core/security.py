"""Security utilities - JWT, password hashing, permission checks."""

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.database import get_db
from app.core.exceptions import (
    AuthenticationError,
    InvalidTokenError,
    PermissionDeniedError,
    TokenExpiredError,
)
from app.core.logging import bind_principal, get_logger
from app.core.permissions import Action, Resource, has_permission

if TYPE_CHECKING:
    from app.modules.auth.models import User

logger = get_logger(__name__)

# HTTP Bearer token scheme
bearer_scheme = HTTPBearer(auto_error=False)

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


# ============================================================================
# Password Utilities
# ============================================================================


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        return False


# ============================================================================
# JWT Utilities
# ============================================================================


def _encode_token(data: dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
    now = datetime.now(UTC)
    to_encode = data.copy()
    to_encode.update({
        "exp": now + expires_delta,
        "iat": now,
        "type": token_type,
        "jti": str(uuid4()),  # Unique token ID for blacklist
    })
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token."""
    return _encode_token(
        data,
        "access",
        expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes),
    )


def create_refresh_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT refresh token."""
    return _encode_token(
        data,
        "refresh",
        expires_delta or timedelta(days=settings.jwt_refresh_token_expire_days),
    )


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate a JWT token."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise InvalidTokenError()


class TokenPayload:
    """Parsed JWT token payload.

    ``role`` and ``permissions`` are informational for clients only;
    authorization always re-reads the role from the database.
    """

    def __init__(self, payload: dict[str, Any]) -> None:
        try:
            self.user_id: UUID = UUID(payload["sub"])
            self.tenant_id: UUID = UUID(payload["tenant_id"])
        except (KeyError, ValueError):
            raise InvalidTokenError("Malformed token payload")
        self.email: str | None = payload.get("email")
        self.role: str | None = payload.get("role")
        self.permissions: list[str] = payload.get("permissions", [])
        self.token_type: str = payload.get("type", "access")
        self.exp: datetime = datetime.fromtimestamp(payload["exp"], tz=UTC)
        self.jti: str | None = payload.get("jti")

    @property
    def expires_in_seconds(self) -> int:
        """Get remaining TTL in seconds."""
        remaining = self.exp - datetime.now(UTC)
        return max(0, int(remaining.total_seconds()))


# ============================================================================
# FastAPI Dependencies
# ============================================================================


async def get_current_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> TokenPayload:
    """Dependency to get current access token payload.

    Rejects refresh tokens and tokens revoked on logout.
    """
    if credentials is None:
        raise AuthenticationError("Authorization header required")

    payload = decode_token(credentials.credentials)

    if payload.get("type") != "access":
        raise InvalidTokenError("Invalid token type")

    jti = payload.get("jti")
    if jti:
        from app.core.redis import get_token_blacklist

        blacklist = await get_token_blacklist()
        if blacklist and await blacklist.is_blacklisted(jti):
            logger.warning("blacklisted_token_used", jti=jti[:8])
            raise InvalidTokenError("Token has been revoked")

    return TokenPayload(payload)


async def get_current_user(
    token: TokenPayload = Depends(get_current_token),
    db: AsyncSession = Depends(get_db),
) -> "User":
    """Dependency to load the authenticated user together with its role."""
    from app.modules.auth.models import User

    stmt = (
        select(User)
        .where(User.id == token.user_id)
        .where(User.tenant_id == token.tenant_id)
        .where(User.deleted_at.is_(None))
    )
    result = await db.execute(stmt)
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")

    bind_principal(user)
    return user


async def get_current_active_user(
    user: "User" = Depends(get_current_user),
) -> "User":
    """Dependency to ensure user is active."""
    if not user.is_active:
        raise AuthenticationError("User account is disabled")
    return user


def get_current_tenant_id(
    token: TokenPayload = Depends(get_current_token),
) -> UUID:
    """Dependency to get current tenant ID from token."""
    return token.tenant_id


# ============================================================================
# Permission Checker Dependency
# ============================================================================


class PermissionChecker:
    """Dependency class gating a route on a (resource, action) grant.

    Usage:
        @router.post("/categories")
        async def create_category(
            user: User = Depends(PermissionChecker(Resource.CATEGORIES, Action.CREATE)),
        ):
            ...
    """

    def __init__(self, resource: Resource | str, action: Action | str) -> None:
        self.resource = Resource(resource)
        self.action = Action(action)

    async def __call__(
        self,
        user: "User" = Depends(get_current_active_user),
    ) -> "User":
        if has_permission(user.role, self.resource, self.action):
            return user

        logger.warning(
            "permission_denied",
            user_id=str(user.id),
            role=user.role.name if user.role else None,
            resource=self.resource.value,
            action=self.action.value,
        )
        raise PermissionDeniedError(
            resource=self.resource.value,
            action=self.action.value,
        )


def user_can(user: "User", resource: Resource | str, action: Action | str) -> bool:
    """In-handler check for decisions that depend on the loaded record."""
    return has_permission(user.role, resource, action)
