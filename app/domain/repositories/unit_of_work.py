"""
Unit of work port.

Wallet and escrow operations touch several aggregates (user balances,
escrow accounts, ledger rows). They run inside one unit of work so the
changes are committed together or not at all.
"""

from abc import ABC, abstractmethod
from typing import List

from app.domain.events.base import DomainEvent
from app.domain.repositories.user_repository import UserRepository
from app.domain.repositories.wallet_transaction_repository import WalletTransactionRepository
from app.domain.repositories.escrow_repository import EscrowRepository, ContractRepository
from app.domain.repositories.session_repository import (
    SessionRepository,
    ActivityRepository,
    AuditLogRepository
)


class UnitOfWork(ABC):
    """
    Transactional boundary around the repositories.

    Usage:
        async with uow:
            user = await uow.users.find_by_id(1, for_update=True)
            ...
            await uow.commit()

    Leaving the block without commit() rolls everything back.

    Row locks (for_update=True) are always taken in the same order so
    concurrent units of work cannot deadlock:

        1. the escrow account or the pending ledger row being settled
        2. user rows, in ascending id order

    Remote calls and password hashing do not belong inside the block;
    CommandUseCase._prepare runs before it.
    """

    users: UserRepository
    transactions: WalletTransactionRepository
    escrows: EscrowRepository
    contracts: ContractRepository
    sessions: SessionRepository
    activities: ActivityRepository
    audit_logs: AuditLogRepository

    def __init__(self):
        self._pending_events: List[DomainEvent] = []
        self.committed_events: List[DomainEvent] = []

    async def __aenter__(self) -> "UnitOfWork":
        self._pending_events = []
        self.committed_events = []
        await self._begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        # Anything not explicitly committed is discarded
        await self.rollback()
        await self._end()

    def collect(self, *events: DomainEvent) -> None:
        """Queue domain events to be published after a successful commit."""
        self._pending_events.extend(events)

    async def commit(self) -> None:
        await self._commit()
        self.committed_events.extend(self._pending_events)
        self._pending_events = []

    async def rollback(self) -> None:
        self._pending_events = []
        await self._rollback()

    @abstractmethod
    async def _begin(self) -> None:
        pass

    @abstractmethod
    async def _commit(self) -> None:
        pass

    @abstractmethod
    async def _rollback(self) -> None:
        pass

    async def _end(self) -> None:
        """Release resources held for the unit of work."""
        pass
