"""
Repository interfaces for the domain layer.
This module exports all repository interfaces (ports) for dependency injection.
"""

from .user_repository import UserRepository
from .wallet_transaction_repository import WalletTransactionRepository
from .escrow_repository import EscrowRepository, ContractRepository
from .session_repository import SessionRepository, ActivityRepository, AuditLogRepository
from .unit_of_work import UnitOfWork

__all__ = [
    "UserRepository",
    "WalletTransactionRepository",
    "EscrowRepository",
    "ContractRepository",
    "SessionRepository",
    "ActivityRepository",
    "AuditLogRepository",
    "UnitOfWork",
]
