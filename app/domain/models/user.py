"""
User domain model.
Represents a marketplace account with authentication data and a wallet.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List
from enum import Enum
import re

from app.domain.models.base import (
    AggregateRoot,
    Email,
    ValidationError,
    BusinessRuleViolation,
    InsufficientFundsError,
    require_positive_amount
)


class UserRole(str, Enum):
    """System-wide user roles."""
    CLIENT = "client"
    FREELANCER = "freelancer"
    ADMIN = "admin"
    SUPPORT = "support"
    QA = "qa"
    DISPUTE_RESOLUTION = "dispute_resolution"
    ACCOUNTS = "accounts"


# Roles that act on behalf of the platform rather than as a contract party
STAFF_ROLES = frozenset({
    UserRole.ADMIN,
    UserRole.SUPPORT,
    UserRole.QA,
    UserRole.DISPUTE_RESOLUTION,
    UserRole.ACCOUNTS,
})

# Roles a user may pick for themself on registration
SELF_SERVICE_ROLES = frozenset({UserRole.CLIENT, UserRole.FREELANCER})

USERNAME_PATTERN = re.compile(r'^[A-Za-z0-9_.\-]{3,50}$')


@dataclass
class User(AggregateRoot):
    """
    User aggregate root.
    Owns the wallet balance, kept in minor currency units.
    """

    email: Optional[Email] = None
    username: Optional[str] = None
    password_hash: str = ""
    full_name: str = ""

    role: UserRole = UserRole.FREELANCER
    active: bool = True
    permissions: List[str] = field(default_factory=list)

    # Profile fields
    bio: Optional[str] = None
    avatar: Optional[str] = None
    skills: List[str] = field(default_factory=list)
    hourly_rate: Optional[int] = None
    location: Optional[str] = None

    wallet_balance: int = 0

    # Identity provider subject when the account was provisioned externally
    external_id: Optional[str] = None
    last_login: Optional[datetime] = None

    def __post_init__(self):
        """Initialize user after creation."""
        super().__post_init__()

        if isinstance(self.email, str):
            self.email = Email(self.email.strip().lower())

        if isinstance(self.role, str) and not isinstance(self.role, UserRole):
            self.role = UserRole(self.role)

        self.validate()

    def validate(self) -> None:
        """Validate user state."""
        if self.email is None:
            raise ValidationError("Email is required", "email")

        if not self.username or not USERNAME_PATTERN.match(self.username):
            raise ValidationError(
                "Username must be 3-50 characters of letters, digits, '.', '_' or '-'",
                "username"
            )

        if self.full_name and len(self.full_name) > 255:
            raise ValidationError("Full name too long (max 255 characters)", "full_name")

        if self.hourly_rate is not None and self.hourly_rate < 0:
            raise ValidationError("Hourly rate cannot be negative", "hourly_rate")

        if self.wallet_balance < 0:
            raise ValidationError("Wallet balance cannot be negative", "wallet_balance")

    @property
    def display_name(self) -> str:
        """Get display name (full name or username)."""
        return self.full_name or self.username

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def has_role(self, *roles: UserRole) -> bool:
        """Check whether the user holds any of the given roles."""
        return self.role in roles

    def has_permission(self, permission: str) -> bool:
        """Admins implicitly hold every permission."""
        return self.is_admin or permission in self.permissions

    def credit(self, amount: int) -> int:
        """Add funds to the wallet and return the new balance."""
        require_positive_amount(amount)
        self.wallet_balance += amount
        self.mark_as_updated()
        return self.wallet_balance

    def debit(self, amount: int) -> int:
        """Remove funds from the wallet and return the new balance."""
        require_positive_amount(amount)
        if amount > self.wallet_balance:
            raise InsufficientFundsError(self.id, amount, self.wallet_balance)
        self.wallet_balance -= amount
        self.mark_as_updated()
        return self.wallet_balance

    def record_login(self) -> None:
        """Record a successful sign in."""
        if not self.active:
            raise BusinessRuleViolation("Account is deactivated")
        self.last_login = datetime.utcnow()
        self.mark_as_updated()

    def change_password_hash(self, password_hash: str) -> None:
        self.password_hash = password_hash
        self.increment_version()

    def deactivate(self) -> None:
        """Deactivate user account."""
        if not self.active:
            raise BusinessRuleViolation("User is already inactive")
        self.active = False
        self.increment_version()

    def reactivate(self) -> None:
        """Reactivate user account."""
        if self.active:
            raise BusinessRuleViolation("User is already active")
        self.active = True
        self.increment_version()

    def to_dict(self) -> dict:
        """Public representation; never includes the password hash."""
        data = super().to_dict()
        data.pop("password_hash", None)
        return data
