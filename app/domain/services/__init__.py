"""
Domain services for the wallet and escrow system.
This module exports all domain services for complex business logic.
"""

from .ledger_service import LedgerService
from .escrow_policy import EscrowPolicy
from .auth_service import PasswordHasher, TokenService, IdentityProvider, ExternalIdentity

__all__ = [
    "LedgerService",
    "EscrowPolicy",
    "PasswordHasher",
    "TokenService",
    "IdentityProvider",
    "ExternalIdentity",
]
