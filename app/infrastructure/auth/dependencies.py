"""
Authentication dependencies for FastAPI.
Provides authentication and authorization dependencies.
"""

from datetime import timedelta
from typing import Optional, Annotated
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.config import get_settings
from app.domain.models.user import User, UserRole
from app.domain.repositories.unit_of_work import UnitOfWork
from app.domain.services.auth_service import PasswordHasher, TokenService, IdentityProvider
from app.application.dto.auth_dto import RequestContextDTO
from app.infrastructure.auth.jwt_handler import JWTHandler
from app.infrastructure.auth.password_hasher import BcryptPasswordHasher
from app.infrastructure.auth.session_manager import SessionManager
from app.infrastructure.auth.supabase_auth import build_identity_provider
from app.infrastructure.repositories.provider import get_unit_of_work


# Security scheme; session tokens are accepted as an alternative to bearer tokens
security = HTTPBearer(auto_error=False)

# Global instances
jwt_handler = JWTHandler()
password_hasher = BcryptPasswordHasher(rounds=get_settings().bcrypt_rounds)
_identity_provider: Optional[IdentityProvider] = None


def get_token_service() -> TokenService:
    """Dependency to get JWT handler."""
    return jwt_handler


def get_password_hasher() -> PasswordHasher:
    return password_hasher


def get_identity_provider() -> IdentityProvider:
    """Dependency to get the external identity provider."""
    global _identity_provider
    if _identity_provider is None:
        _identity_provider = build_identity_provider()
    return _identity_provider


def get_session_lifetime() -> timedelta:
    return timedelta(hours=get_settings().session_expire_hours)


def get_request_context(request: Request) -> RequestContextDTO:
    """Client address and user agent for sessions and audit entries."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else ""
    return RequestContextDTO(
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent", "")
    )


def get_session_token(request: Request) -> Optional[str]:
    """Session token from the session header, falling back to the cookie."""
    settings = get_settings()
    return (
        request.headers.get(settings.session_header_name)
        or request.cookies.get(settings.session_cookie_name)
    )


def get_session_manager(
    token_service: Annotated[TokenService, Depends(get_token_service)]
) -> SessionManager:
    return SessionManager(get_unit_of_work, token_service)


async def get_optional_user(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    session_manager: Annotated[SessionManager, Depends(get_session_manager)]
) -> Optional[User]:
    """
    Resolve the current user, or None when the request is anonymous.
    Bearer JWTs are checked first, then the session token.
    """
    if credentials is not None and credentials.credentials:
        user = await session_manager.user_from_access_token(credentials.credentials)
        if user is not None:
            return user

    session_token = get_session_token(request)
    if session_token:
        return await session_manager.user_from_session_token(session_token)

    return None


async def get_current_user(
    user: Annotated[Optional[User], Depends(get_optional_user)]
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    Raises:
        HTTPException: If authentication fails
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "UNAUTHORIZED", "message": "Authentication required"},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


class RoleChecker:
    """Dependency class requiring one of a set of roles."""

    def __init__(self, roles: list[UserRole]):
        self.roles = tuple(roles)

    async def __call__(
        self,
        user: Annotated[User, Depends(get_current_user)]
    ) -> User:
        if not user.has_role(*self.roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "FORBIDDEN", "message": "Insufficient permissions"}
            )
        return user


class PermissionChecker:
    """Dependency class requiring a named permission; admins always pass."""

    def __init__(self, permission: str):
        self.permission = permission

    async def __call__(
        self,
        user: Annotated[User, Depends(get_current_user)]
    ) -> User:
        if not user.has_permission(self.permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "FORBIDDEN", "message": f"Permission '{self.permission}' required"}
            )
        return user


def require_roles(*roles: UserRole) -> RoleChecker:
    """
    Dependency factory for role checking.

    Usage:
        user: Annotated[User, Depends(require_roles(UserRole.ADMIN))]
    """
    return RoleChecker(list(roles))


def require_permission(permission: str) -> PermissionChecker:
    return PermissionChecker(permission)


require_balance_admin = require_roles(UserRole.ADMIN, UserRole.ACCOUNTS)
