"""
Authentication service ports.
Password hashing, token issuing and the external identity provider are
defined here and implemented in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

from app.domain.models.user import User

# bcrypt only reads the first 72 bytes of a password
PASSWORD_MAX_BYTES = 72


class PasswordHasher(ABC):
    """Password hashing interface."""

    @abstractmethod
    def hash_password(self, password: str) -> str:
        pass

    @abstractmethod
    def verify_password(self, password: str, hashed_password: str) -> bool:
        pass

    @abstractmethod
    def needs_rehash(self, hashed_password: str) -> bool:
        """True when the stored hash uses an outdated scheme."""
        pass


class TokenService(ABC):
    """Signed access token interface."""

    @abstractmethod
    def create_access_token(self, user: User) -> str:
        pass

    @abstractmethod
    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Verify a token and return its claims if valid.
        """
        pass


@dataclass
class ExternalIdentity:
    """User identity as reported by an external provider."""

    external_id: str
    email: str
    full_name: str = ""
    username: Optional[str] = None
    role: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class IdentityProvider(ABC):
    """
    External identity provider.
    Implementations return None when the provider rejects the credentials.
    """

    @property
    @abstractmethod
    def enabled(self) -> bool:
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Optional[ExternalIdentity]:
        pass

    @abstractmethod
    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[ExternalIdentity]:
        pass
