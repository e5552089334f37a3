"""
Wallet transaction repository interface.
The ledger is append-only: rows are added and their status advanced,
never deleted.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from app.domain.models.wallet import WalletTransaction, TransactionType, TransactionStatus


class WalletTransactionRepository(ABC):
    """Repository interface for ledger rows."""

    @abstractmethod
    async def add(self, transaction: WalletTransaction) -> WalletTransaction:
        """Append a new ledger row and assign its ID."""
        pass

    @abstractmethod
    async def update_status(self, transaction: WalletTransaction) -> WalletTransaction:
        """Persist a status change (and completed_at/metadata) of an existing row."""
        pass

    @abstractmethod
    async def find_by_id(self, transaction_id: int) -> Optional[WalletTransaction]:
        pass

    @abstractmethod
    async def find_by_reference(self, reference: str, for_update: bool = False) -> Optional[WalletTransaction]:
        pass

    @abstractmethod
    async def find_by_user(
        self,
        user_id: int,
        limit: int = 10,
        offset: int = 0,
        type: Optional[TransactionType] = None,
        status: Optional[TransactionStatus] = None
    ) -> List[WalletTransaction]:
        """Rows for a user, newest first."""
        pass

    @abstractmethod
    async def count_by_user(
        self,
        user_id: int,
        type: Optional[TransactionType] = None,
        status: Optional[TransactionStatus] = None
    ) -> int:
        pass

    @abstractmethod
    async def all_for_user(self, user_id: int) -> List[WalletTransaction]:
        """Every row for a user, oldest first. Used by reconciliation."""
        pass

    @abstractmethod
    async def all_for_contract(self, contract_id: int) -> List[WalletTransaction]:
        """Every row tagged with a contract, oldest first."""
        pass
