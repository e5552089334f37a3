"""
Supabase identity provider.
Used as the external half of hybrid authentication.
"""

import logging
from typing import Optional, Dict, Any

from starlette.concurrency import run_in_threadpool
from supabase import create_client, Client

from app.config import get_settings
from app.domain.services.auth_service import IdentityProvider, ExternalIdentity

logger = logging.getLogger(__name__)


class SupabaseIdentityProvider(IdentityProvider):
    """Identity provider backed by Supabase Auth."""

    def __init__(self, client: Optional[Client] = None):
        self.settings = get_settings()
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._client is not None or self.settings.identity_provider_enabled

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = create_client(
                self.settings.supabase_url,
                self.settings.supabase_anon_key
            )
        return self._client

    @staticmethod
    def _to_identity(user: Any) -> ExternalIdentity:
        metadata = dict(getattr(user, "user_metadata", None) or {})
        return ExternalIdentity(
            external_id=str(user.id),
            email=user.email,
            full_name=metadata.get("full_name") or metadata.get("name") or "",
            username=metadata.get("username"),
            role=metadata.get("role"),
            metadata=metadata
        )

    async def sign_in(self, email: str, password: str) -> Optional[ExternalIdentity]:
        """
        Sign in with email and password.

        Returns:
            The provider identity, or None if the credentials are rejected
        """
        if not self.enabled:
            return None

        try:
            response = await run_in_threadpool(
                self.client.auth.sign_in_with_password,
                {"email": email, "password": password}
            )
        except Exception as e:
            # The client raises on rejected credentials as well as network errors
            logger.warning(f"Supabase sign in failed for {email}: {str(e)}")
            return None

        if response.user is None:
            return None

        return self._to_identity(response.user)

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[ExternalIdentity]:
        """
        Register the account with Supabase.

        Returns:
            The created identity, or None when the provider refuses it
        """
        if not self.enabled:
            return None

        try:
            response = await run_in_threadpool(
                self.client.auth.sign_up,
                {"email": email, "password": password, "options": {"data": metadata or {}}}
            )
        except Exception as e:
            logger.warning(f"Supabase sign up failed for {email}: {str(e)}")
            return None

        if response.user is None:
            return None

        return self._to_identity(response.user)


class DisabledIdentityProvider(IdentityProvider):
    """Placeholder used when no external provider is configured."""

    @property
    def enabled(self) -> bool:
        return False

    async def sign_in(self, email: str, password: str) -> Optional[ExternalIdentity]:
        return None

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[ExternalIdentity]:
        return None


def build_identity_provider() -> IdentityProvider:
    """Supabase when configured, otherwise a disabled provider."""
    if get_settings().identity_provider_enabled:
        return SupabaseIdentityProvider()
    logger.info("External identity provider not configured; local authentication only")
    return DisabledIdentityProvider()
