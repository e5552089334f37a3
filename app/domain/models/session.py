"""
User session domain model for the local half of hybrid authentication.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
import secrets

from app.domain.models.base import BaseEntity, ValidationError


@dataclass
class UserSession(BaseEntity):
    """Opaque server-side session identified by a random token."""

    user_id: Optional[int] = None
    token: str = ""
    expires_at: Optional[datetime] = None
    last_activity: Optional[datetime] = None
    user_agent: str = ""
    ip_address: str = ""

    def __post_init__(self):
        super().__post_init__()
        self.validate()

    def validate(self) -> None:
        if self.user_id is None:
            raise ValidationError("Session must belong to a user", "user_id")
        if not self.token:
            raise ValidationError("Session token is required", "token")
        if self.expires_at is None:
            raise ValidationError("Session expiry is required", "expires_at")

    @classmethod
    def start(
        cls,
        user_id: int,
        lifetime: timedelta,
        user_agent: str = "",
        ip_address: str = ""
    ) -> "UserSession":
        now = datetime.utcnow()
        return cls(
            user_id=user_id,
            token=secrets.token_hex(32),
            expires_at=now + lifetime,
            last_activity=now,
            user_agent=user_agent or "",
            ip_address=ip_address or ""
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.utcnow()) > self.expires_at

    def touch(self) -> None:
        self.last_activity = datetime.utcnow()
