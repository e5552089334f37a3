"""
Authentication DTOs for the application layer.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime
from pydantic import Field, EmailStr, AliasChoices, validator

from app.domain.models.user import UserRole, SELF_SERVICE_ROLES
from app.domain.services.auth_service import PASSWORD_MAX_BYTES
from .base_dto import BaseDTO, RequestDTO, ResponseDTO


class RegisterRequestDTO(RequestDTO):
    """DTO for self-service registration."""

    email: EmailStr = Field(description="User email address")
    username: str = Field(min_length=3, max_length=50, pattern=r'^[A-Za-z0-9_.\-]+$')
    password: str = Field(min_length=8, max_length=128, description="Password")
    full_name: str = Field(min_length=1, max_length=255, alias="fullName")
    role: UserRole = Field(default=UserRole.FREELANCER)

    @validator('role')
    def validate_role(cls, v):
        """Staff roles cannot be self-assigned."""
        if UserRole(v) not in SELF_SERVICE_ROLES:
            raise ValueError('Role must be client or freelancer')
        return v

    @validator('password')
    def validate_password_bytes(cls, v):
        if len(v.encode('utf-8')) > PASSWORD_MAX_BYTES:
            raise ValueError(f'Password must be at most {PASSWORD_MAX_BYTES} bytes')
        return v


class LoginRequestDTO(RequestDTO):
    """Login with email or username."""

    identifier: str = Field(
        min_length=1, max_length=255,
        validation_alias=AliasChoices("identifier", "email", "username"),
        description="Email address or username"
    )
    password: str = Field(min_length=1, max_length=128)


class RequestContextDTO(BaseDTO):
    """Client details recorded with sessions and audit entries."""

    ip_address: str = ""
    user_agent: str = ""


class UserResponseDTO(ResponseDTO):
    """Public profile; never carries the password hash."""

    email: str
    username: str
    full_name: str = ""
    role: UserRole
    active: bool = True
    permissions: List[str] = Field(default_factory=list)
    wallet_balance: int = 0
    bio: Optional[str] = None
    avatar: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    hourly_rate: Optional[int] = None
    location: Optional[str] = None
    last_login: Optional[datetime] = None

    @classmethod
    def from_entity(cls, user) -> "UserResponseDTO":
        return cls(
            id=user.id,
            email=str(user.email),
            username=user.username,
            full_name=user.full_name,
            role=user.role,
            active=user.active,
            permissions=list(user.permissions),
            wallet_balance=user.wallet_balance,
            bio=user.bio,
            avatar=user.avatar,
            skills=list(user.skills),
            hourly_rate=user.hourly_rate,
            location=user.location,
            last_login=user.last_login,
            created_at=user.created_at,
            updated_at=user.updated_at
        )


class AuthResponseDTO(BaseDTO):
    """Successful authentication."""

    user: UserResponseDTO
    auth_provider: str = Field(description="local or external")
    session_token: Optional[str] = None
    access_token: Optional[str] = None
    token_type: str = "bearer"
    expires_at: Optional[datetime] = None


class ActivityResponseDTO(ResponseDTO):
    """Activity feed entry."""

    user_id: int
    type: str
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_entity(cls, activity) -> "ActivityResponseDTO":
        return cls(
            id=activity.id,
            user_id=activity.user_id,
            type=activity.type.value,
            metadata=dict(activity.metadata),
            created_at=activity.created_at,
            updated_at=activity.updated_at
        )
