"""
Domain models for the marketplace wallet and escrow system.
This module exports all domain entities and value objects.
"""

# Base classes
from .base import (
    BaseEntity,
    AggregateRoot,
    DomainException,
    ValidationError,
    BusinessRuleViolation,
    InsufficientFundsError,
    AuthorizationError,
    AuthenticationError,
    EntityNotFoundError,
    DuplicateEntityError,
    ValueObject,
    Email
)

# Domain entities
from .user import User, UserRole, STAFF_ROLES, SELF_SERVICE_ROLES
from .wallet import WalletTransaction, TransactionType, TransactionStatus
from .escrow import Contract, ContractStatus, EscrowAccount, EscrowStatus
from .session import UserSession
from .activity import Activity, ActivityType, AuditLogEntry

__all__ = [
    "BaseEntity",
    "AggregateRoot",
    "DomainException",
    "ValidationError",
    "BusinessRuleViolation",
    "InsufficientFundsError",
    "AuthorizationError",
    "AuthenticationError",
    "EntityNotFoundError",
    "DuplicateEntityError",
    "ValueObject",
    "Email",
    "User",
    "UserRole",
    "STAFF_ROLES",
    "SELF_SERVICE_ROLES",
    "WalletTransaction",
    "TransactionType",
    "TransactionStatus",
    "Contract",
    "ContractStatus",
    "EscrowAccount",
    "EscrowStatus",
    "UserSession",
    "Activity",
    "ActivityType",
    "AuditLogEntry"
]
