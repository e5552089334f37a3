"""
Foundational building blocks of the domain layer: entities, aggregates,
value objects and the domain exception hierarchy.

Money is always an integer number of minor currency units.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Any, Dict
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields


@dataclass
class BaseEntity(ABC):
    """
    Identity-bearing domain object. Two entities are equal when they are
    of the same type and share a persisted id.
    """

    id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        # Mappers pass None for rows that predate the timestamp columns
        now = datetime.utcnow()
        self.created_at = self.created_at or now
        self.updated_at = self.updated_at or now

    def __eq__(self, other: Any) -> bool:
        if type(other) is not type(self) or self.id is None:
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        if self.id is None:
            return hash(id(self))
        return hash((type(self).__name__, self.id))

    def mark_as_updated(self) -> None:
        self.updated_at = datetime.utcnow()

    @property
    def is_new(self) -> bool:
        """True until a repository has assigned an id."""
        return self.id is None

    def validate(self) -> None:
        """Raise ValidationError when the entity state is invalid."""
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Flat, JSON-friendly representation of the public fields."""
        return {
            f.name: _plain(getattr(self, f.name))
            for f in fields(self)
            if not f.name.startswith("_")
        }


def _plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseEntity):
        return value.to_dict()
    if isinstance(value, ValueObject):
        return str(value)
    if isinstance(value, dict):
        return dict(value)
    return value


@dataclass
class AggregateRoot(BaseEntity):
    """
    Entity that guards its own invariants. Every state transition bumps
    the version, which the SQL mappers persist alongside the row.
    """

    version: int = field(default=1)

    def increment_version(self) -> None:
        self.version += 1
        self.mark_as_updated()


class DomainException(Exception):
    """Base exception for domain errors. `code` is the stable error code."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


class ValidationError(DomainException):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, "VALIDATION_ERROR")
        self.field = field


class BusinessRuleViolation(DomainException):
    def __init__(self, message: str):
        super().__init__(message, "BUSINESS_RULE_VIOLATION")


class InsufficientFundsError(BusinessRuleViolation):
    """Raised when a wallet cannot cover a debit."""

    def __init__(self, user_id: Any, requested: int, available: int):
        super().__init__(
            f"Insufficient funds in wallet: requested {requested}, available {available}"
        )
        self.code = "INSUFFICIENT_FUNDS"
        self.user_id = user_id
        self.requested = requested
        self.available = available


class AuthorizationError(DomainException):
    def __init__(self, message: str = "Not authorized to perform this action"):
        super().__init__(message, "FORBIDDEN")


class AuthenticationError(DomainException):
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message, "UNAUTHORIZED")


class EntityNotFoundError(DomainException):
    def __init__(self, entity_type: str, entity_id: Any):
        super().__init__(f"{entity_type} with id {entity_id} not found", "ENTITY_NOT_FOUND")
        self.entity_type = entity_type
        self.entity_id = entity_id


class DuplicateEntityError(DomainException):
    def __init__(self, entity_type: str, field: str, value: Any):
        super().__init__(f"{entity_type} with {field}='{value}' already exists", "DUPLICATE_ENTITY")
        self.entity_type = entity_type
        self.field = field
        self.value = value


@dataclass(frozen=True)
class ValueObject(ABC):
    """Immutable, compared by value, validated on construction."""

    def __post_init__(self):
        self.validate()

    @abstractmethod
    def validate(self) -> None:
        pass


@dataclass(frozen=True)
class Email(ValueObject):
    value: str

    def validate(self) -> None:
        if not self.value:
            raise ValidationError("Email cannot be empty", "email")
        local, sep, domain = self.value.partition("@")
        if not local or not sep or "." not in domain:
            raise ValidationError(f"Invalid email format: {self.value}", "email")
        if len(self.value) > 255:
            raise ValidationError("Email too long (max 255 characters)", "email")

    def __str__(self) -> str:
        return self.value


def require_positive_amount(amount: Any, field_name: str = "amount") -> int:
    """Validate a money amount in minor units and return it."""
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise ValidationError(f"{field_name} must be an integer number of minor units", field_name)
    if amount <= 0:
        raise ValidationError(f"{field_name} must be positive", field_name)
    return amount
