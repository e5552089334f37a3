"""
Authentication infrastructure module.
Handles password hashing, JWT and session validation, and authorization.
"""

from .jwt_handler import JWTHandler
from .password_hasher import BcryptPasswordHasher
from .session_manager import SessionManager
from .supabase_auth import SupabaseIdentityProvider, DisabledIdentityProvider, build_identity_provider
from .dependencies import (
    get_current_user,
    get_optional_user,
    get_request_context,
    get_session_token,
    get_token_service,
    get_password_hasher,
    get_identity_provider,
    get_session_lifetime,
    require_roles,
    require_permission,
    require_balance_admin
)

__all__ = [
    "JWTHandler",
    "BcryptPasswordHasher",
    "SessionManager",
    "SupabaseIdentityProvider",
    "DisabledIdentityProvider",
    "build_identity_provider",
    "get_current_user",
    "get_optional_user",
    "get_request_context",
    "get_session_token",
    "get_token_service",
    "get_password_hasher",
    "get_identity_provider",
    "get_session_lifetime",
    "require_roles",
    "require_permission",
    "require_balance_admin",
]
