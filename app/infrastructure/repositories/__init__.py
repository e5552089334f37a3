"""
Infrastructure repositories module.
Contains SQLAlchemy and in-memory implementations of domain repositories.
"""

from .user_repository import SQLAlchemyUserRepository
from .wallet_transaction_repository import SQLAlchemyWalletTransactionRepository
from .escrow_repository import SQLAlchemyEscrowRepository, SQLAlchemyContractRepository
from .session_repository import (
    SQLAlchemySessionRepository,
    SQLAlchemyActivityRepository,
    SQLAlchemyAuditLogRepository
)
from .unit_of_work import SQLAlchemyUnitOfWork
from .in_memory import InMemoryStore, InMemoryUnitOfWork
from .provider import get_unit_of_work, get_memory_store, reset_memory_store

__all__ = [
    "SQLAlchemyUserRepository",
    "SQLAlchemyWalletTransactionRepository",
    "SQLAlchemyEscrowRepository",
    "SQLAlchemyContractRepository",
    "SQLAlchemySessionRepository",
    "SQLAlchemyActivityRepository",
    "SQLAlchemyAuditLogRepository",
    "SQLAlchemyUnitOfWork",
    "InMemoryStore",
    "InMemoryUnitOfWork",
    "get_unit_of_work",
    "get_memory_store",
    "reset_memory_store",
]
