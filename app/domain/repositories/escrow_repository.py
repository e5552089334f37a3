"""
Escrow and contract repository interfaces.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from app.domain.models.escrow import EscrowAccount, Contract


class EscrowRepository(ABC):
    """Repository interface for EscrowAccount aggregates."""

    @abstractmethod
    async def save(self, escrow: EscrowAccount) -> EscrowAccount:
        """Insert or update an escrow account. One account per contract."""
        pass

    @abstractmethod
    async def find_by_id(self, escrow_id: int) -> Optional[EscrowAccount]:
        pass

    @abstractmethod
    async def find_by_contract(self, contract_id: int, for_update: bool = False) -> Optional[EscrowAccount]:
        pass

    @abstractmethod
    async def find_by_contracts(self, contract_ids: List[int]) -> List[EscrowAccount]:
        pass


class ContractRepository(ABC):
    """Read-mostly access to contracts."""

    @abstractmethod
    async def save(self, contract: Contract) -> Contract:
        pass

    @abstractmethod
    async def find_by_id(self, contract_id: int) -> Optional[Contract]:
        pass

    @abstractmethod
    async def find_by_party(self, user_id: int) -> List[Contract]:
        """Contracts where the user is the client or the freelancer."""
        pass
