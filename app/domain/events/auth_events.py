"""
Domain events related to user accounts and authentication.
"""

from typing import Dict, Any
from dataclasses import dataclass

from .base import DomainEvent


@dataclass
class UserRegistered(DomainEvent):
    """Event fired when a new account is created."""

    user_id: int
    email: str
    role: str
    auth_provider: str = "local"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "role": self.role,
            "auth_provider": self.auth_provider,
        }


@dataclass
class UserLoggedIn(DomainEvent):
    """Event fired after a successful hybrid login."""

    user_id: int
    auth_provider: str
    ip_address: str = ""

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "auth_provider": self.auth_provider,
            "ip_address": self.ip_address,
        }
