"""
Infrastructure mappers module.
Contains mappers for converting between domain entities and database models.
"""

from .user_mapper import UserMapper
from .wallet_mapper import WalletTransactionMapper
from .escrow_mapper import EscrowMapper, ContractMapper
from .session_mapper import SessionMapper, ActivityMapper, AuditLogMapper

__all__ = [
    "UserMapper",
    "WalletTransactionMapper",
    "EscrowMapper",
    "ContractMapper",
    "SessionMapper",
    "ActivityMapper",
    "AuditLogMapper",
]
