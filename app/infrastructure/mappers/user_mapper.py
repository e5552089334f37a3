"""
User mapper for converting between domain entities and database models.
"""

from datetime import datetime, timezone
from typing import Optional

from app.domain.models.user import User, UserRole
from app.domain.models.base import Email
from app.infrastructure.db.models import UserModel


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Domain timestamps are naive UTC; some drivers return aware values."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class UserMapper:
    """Maps between User domain entity and UserModel database model."""

    def domain_to_model(self, user: User) -> UserModel:
        """Convert User domain entity to UserModel."""
        model = UserModel(id=user.id)
        self.update_model(model, user)
        model.created_at = user.created_at
        return model

    def update_model(self, model: UserModel, user: User) -> None:
        """Copy mutable fields onto an existing row."""
        model.email = str(user.email)
        model.username = user.username
        model.password_hash = user.password_hash
        model.full_name = user.full_name
        model.role = user.role
        model.active = user.active
        model.permissions = list(user.permissions)
        model.bio = user.bio
        model.avatar = user.avatar
        model.skills = list(user.skills)
        model.hourly_rate = user.hourly_rate
        model.location = user.location
        model.wallet_balance = user.wallet_balance
        model.external_id = user.external_id
        model.last_login = user.last_login
        model.version = user.version
        model.updated_at = user.updated_at

    def model_to_domain(self, model: UserModel) -> User:
        """Convert UserModel to User domain entity."""
        return User(
            id=model.id,
            email=Email(model.email),
            username=model.username,
            password_hash=model.password_hash,
            full_name=model.full_name or "",
            role=UserRole(model.role) if model.role else UserRole.FREELANCER,
            active=bool(model.active),
            permissions=list(model.permissions or []),
            bio=model.bio,
            avatar=model.avatar,
            skills=list(model.skills or []),
            hourly_rate=model.hourly_rate,
            location=model.location,
            wallet_balance=model.wallet_balance or 0,
            external_id=model.external_id,
            last_login=to_naive_utc(model.last_login),
            version=model.version or 1,
            created_at=to_naive_utc(model.created_at),
            updated_at=to_naive_utc(model.updated_at or model.created_at)
        )
