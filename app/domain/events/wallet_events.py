"""
Domain events related to wallets.
Raised when balance-affecting ledger rows are completed.
"""

from typing import Dict, Any, Optional
from dataclasses import dataclass

from .base import DomainEvent


@dataclass
class FundsDeposited(DomainEvent):
    """Event fired when a deposit is credited to a wallet."""

    user_id: int
    transaction_id: int
    amount: int
    new_balance: int
    reference: Optional[str] = None
    source: str = "manual_deposit"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "transaction_id": self.transaction_id,
            "amount": self.amount,
            "new_balance": self.new_balance,
            "reference": self.reference,
            "source": self.source,
        }


@dataclass
class FundsWithdrawn(DomainEvent):
    """Event fired when funds leave a wallet."""

    user_id: int
    transaction_id: int
    amount: int
    new_balance: int

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "transaction_id": self.transaction_id,
            "amount": self.amount,
            "new_balance": self.new_balance,
        }


@dataclass
class WalletAdjusted(DomainEvent):
    """Event fired when staff apply a system adjustment."""

    user_id: int
    transaction_id: int
    amount: int
    new_balance: int
    adjusted_by: int
    reason: Optional[str] = None

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "transaction_id": self.transaction_id,
            "amount": self.amount,
            "new_balance": self.new_balance,
            "adjusted_by": self.adjusted_by,
            "reason": self.reason,
        }
