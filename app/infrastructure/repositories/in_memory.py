"""
In-memory storage backend.

Used for development and tests. Units of work are serialized with one
process-wide asyncio lock and every change is rolled back from a snapshot
unless the unit of work commits. Anything awaited inside a unit of work
blocks every other request, so use cases hash passwords and call remote
services before entering one.
"""

import asyncio
import copy
from typing import Any, Dict, List, Optional

from app.domain.models.user import User
from app.domain.models.wallet import WalletTransaction, TransactionType, TransactionStatus
from app.domain.models.escrow import EscrowAccount, Contract
from app.domain.models.session import UserSession
from app.domain.models.activity import Activity, AuditLogEntry
from app.domain.models.base import EntityNotFoundError, DuplicateEntityError
from app.domain.repositories.unit_of_work import UnitOfWork
from app.domain.repositories.user_repository import UserRepository
from app.domain.repositories.wallet_transaction_repository import WalletTransactionRepository
from app.domain.repositories.escrow_repository import EscrowRepository, ContractRepository
from app.domain.repositories.session_repository import (
    SessionRepository,
    ActivityRepository,
    AuditLogRepository
)


TABLES = ("users", "transactions", "escrows", "contracts", "sessions", "activities", "audit_logs")


class InMemoryStore:
    """Process-local tables keyed by id (sessions are keyed by token)."""

    def __init__(self):
        self.tables: Dict[str, Dict[Any, Any]] = {name: {} for name in TABLES}
        self.sequences: Dict[str, int] = {name: 0 for name in TABLES}
        self.lock = asyncio.Lock()

    def next_id(self, table: str) -> int:
        self.sequences[table] += 1
        return self.sequences[table]

    def snapshot(self) -> Dict[str, Any]:
        return {
            "tables": copy.deepcopy(self.tables),
            "sequences": dict(self.sequences),
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self.tables = snapshot["tables"]
        self.sequences = snapshot["sequences"]

    def clear(self) -> None:
        self.tables = {name: {} for name in TABLES}
        self.sequences = {name: 0 for name in TABLES}


class _Table:
    """Copy-in/copy-out access so callers never alias stored entities."""

    table_name = ""

    def __init__(self, store: InMemoryStore):
        self.store = store

    @property
    def rows(self) -> Dict[Any, Any]:
        return self.store.tables[self.table_name]

    def _insert(self, entity) -> None:
        entity.id = self.store.next_id(self.table_name)
        self.rows[entity.id] = copy.deepcopy(entity)

    def _get(self, key) -> Optional[Any]:
        row = self.rows.get(key)
        return copy.deepcopy(row) if row is not None else None

    def _all(self) -> List[Any]:
        return [copy.deepcopy(row) for row in self.rows.values()]


class InMemoryUserRepository(_Table, UserRepository):
    table_name = "users"

    async def save(self, user: User) -> User:
        for other in self.rows.values():
            if other.id == user.id:
                continue
            if str(other.email) == str(user.email):
                raise DuplicateEntityError("User", "email", str(user.email))
            if other.username == user.username:
                raise DuplicateEntityError("User", "username", user.username)

        if user.is_new:
            self._insert(user)
        else:
            if user.id not in self.rows:
                raise EntityNotFoundError("User", user.id)
            self.rows[user.id] = copy.deepcopy(user)
        return user

    async def find_by_id(self, user_id: int, for_update: bool = False) -> Optional[User]:
        return self._get(user_id)

    async def find_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        for user in self.rows.values():
            if str(user.email) == email:
                return copy.deepcopy(user)
        return None

    async def find_by_username(self, username: str) -> Optional[User]:
        for user in self.rows.values():
            if user.username == username:
                return copy.deepcopy(user)
        return None

    async def find_all(self, limit: int = 10, offset: int = 0) -> List[User]:
        users = sorted(self._all(), key=lambda u: u.id)
        return users[offset:offset + limit]

    async def count(self) -> int:
        return len(self.rows)


class InMemoryWalletTransactionRepository(_Table, WalletTransactionRepository):
    table_name = "transactions"

    def _for_user(self, user_id: int, type=None, status=None) -> List[WalletTransaction]:
        result = []
        for transaction in self.rows.values():
            if transaction.user_id != user_id:
                continue
            if type is not None and transaction.type != TransactionType(type):
                continue
            if status is not None and transaction.status != TransactionStatus(status):
                continue
            result.append(transaction)
        return result

    async def add(self, transaction: WalletTransaction) -> WalletTransaction:
        if transaction.reference and any(
            t.reference == transaction.reference for t in self.rows.values()
        ):
            raise DuplicateEntityError("WalletTransaction", "reference", transaction.reference)
        self._insert(transaction)
        return transaction

    async def update_status(self, transaction: WalletTransaction) -> WalletTransaction:
        stored = self.rows.get(transaction.id)
        if stored is None:
            raise EntityNotFoundError("WalletTransaction", transaction.id)
        stored.status = transaction.status
        stored.completed_at = transaction.completed_at
        stored.updated_at = transaction.updated_at
        stored.metadata = dict(transaction.metadata)
        return transaction

    async def find_by_id(self, transaction_id: int) -> Optional[WalletTransaction]:
        return self._get(transaction_id)

    async def find_by_reference(self, reference: str, for_update: bool = False) -> Optional[WalletTransaction]:
        for transaction in self.rows.values():
            if transaction.reference == reference:
                return copy.deepcopy(transaction)
        return None

    async def find_by_user(
        self,
        user_id: int,
        limit: int = 10,
        offset: int = 0,
        type: Optional[TransactionType] = None,
        status: Optional[TransactionStatus] = None
    ) -> List[WalletTransaction]:
        rows = sorted(
            self._for_user(user_id, type, status),
            key=lambda t: (t.created_at, t.id),
            reverse=True
        )
        return [copy.deepcopy(t) for t in rows[offset:offset + limit]]

    async def count_by_user(
        self,
        user_id: int,
        type: Optional[TransactionType] = None,
        status: Optional[TransactionStatus] = None
    ) -> int:
        return len(self._for_user(user_id, type, status))

    async def all_for_user(self, user_id: int) -> List[WalletTransaction]:
        rows = sorted(self._for_user(user_id), key=lambda t: t.id)
        return [copy.deepcopy(t) for t in rows]

    async def all_for_contract(self, contract_id: int) -> List[WalletTransaction]:
        rows = sorted(
            (t for t in self.rows.values() if t.contract_id == contract_id),
            key=lambda t: t.id
        )
        return [copy.deepcopy(t) for t in rows]


class InMemoryEscrowRepository(_Table, EscrowRepository):
    table_name = "escrows"

    async def save(self, escrow: EscrowAccount) -> EscrowAccount:
        if escrow.is_new:
            if any(e.contract_id == escrow.contract_id for e in self.rows.values()):
                raise DuplicateEntityError("EscrowAccount", "contract_id", escrow.contract_id)
            self._insert(escrow)
        else:
            if escrow.id not in self.rows:
                raise EntityNotFoundError("EscrowAccount", escrow.id)
            self.rows[escrow.id] = copy.deepcopy(escrow)
        return escrow

    async def find_by_id(self, escrow_id: int) -> Optional[EscrowAccount]:
        return self._get(escrow_id)

    async def find_by_contract(self, contract_id: int, for_update: bool = False) -> Optional[EscrowAccount]:
        for escrow in self.rows.values():
            if escrow.contract_id == contract_id:
                return copy.deepcopy(escrow)
        return None

    async def find_by_contracts(self, contract_ids: List[int]) -> List[EscrowAccount]:
        wanted = set(contract_ids)
        rows = sorted(
            (e for e in self.rows.values() if e.contract_id in wanted),
            key=lambda e: e.id
        )
        return [copy.deepcopy(e) for e in rows]


class InMemoryContractRepository(_Table, ContractRepository):
    table_name = "contracts"

    async def save(self, contract: Contract) -> Contract:
        if contract.is_new:
            self._insert(contract)
        else:
            if contract.id not in self.rows:
                raise EntityNotFoundError("Contract", contract.id)
            self.rows[contract.id] = copy.deepcopy(contract)
        return contract

    async def find_by_id(self, contract_id: int) -> Optional[Contract]:
        return self._get(contract_id)

    async def find_by_party(self, user_id: int) -> List[Contract]:
        rows = sorted(
            (c for c in self.rows.values() if c.is_party(user_id)),
            key=lambda c: c.id
        )
        return [copy.deepcopy(c) for c in rows]


class InMemorySessionRepository(_Table, SessionRepository):
    table_name = "sessions"

    async def add(self, session: UserSession) -> UserSession:
        session.id = self.store.next_id(self.table_name)
        self.rows[session.token] = copy.deepcopy(session)
        return session

    async def find_by_token(self, token: str) -> Optional[UserSession]:
        return self._get(token)

    async def touch(self, session: UserSession) -> None:
        stored = self.rows.get(session.token)
        if stored is not None:
            stored.last_activity = session.last_activity

    async def delete(self, token: str) -> bool:
        return self.rows.pop(token, None) is not None

    async def delete_for_user(self, user_id: int) -> int:
        tokens = [token for token, s in self.rows.items() if s.user_id == user_id]
        for token in tokens:
            del self.rows[token]
        return len(tokens)


class InMemoryActivityRepository(_Table, ActivityRepository):
    table_name = "activities"

    async def add(self, activity: Activity) -> Activity:
        self._insert(activity)
        return activity

    async def find_by_user(self, user_id: int, limit: int = 10) -> List[Activity]:
        rows = sorted(
            (a for a in self.rows.values() if a.user_id == user_id),
            key=lambda a: (a.created_at, a.id),
            reverse=True
        )
        return [copy.deepcopy(a) for a in rows[:limit]]


class InMemoryAuditLogRepository(_Table, AuditLogRepository):
    table_name = "audit_logs"

    async def add(self, entry: AuditLogEntry) -> AuditLogEntry:
        self._insert(entry)
        return entry

    async def find_by_user(self, user_id: int, limit: int = 50) -> List[AuditLogEntry]:
        rows = sorted(
            (e for e in self.rows.values() if e.user_id == user_id),
            key=lambda e: e.id,
            reverse=True
        )
        return [copy.deepcopy(e) for e in rows[:limit]]


class InMemoryUnitOfWork(UnitOfWork):
    """Unit of work over an InMemoryStore."""

    def __init__(self, store: InMemoryStore):
        super().__init__()
        self.store = store
        self._snapshot: Optional[Dict[str, Any]] = None
        self.users = InMemoryUserRepository(store)
        self.transactions = InMemoryWalletTransactionRepository(store)
        self.escrows = InMemoryEscrowRepository(store)
        self.contracts = InMemoryContractRepository(store)
        self.sessions = InMemorySessionRepository(store)
        self.activities = InMemoryActivityRepository(store)
        self.audit_logs = InMemoryAuditLogRepository(store)

    async def _begin(self) -> None:
        await self.store.lock.acquire()
        self._snapshot = self.store.snapshot()

    async def _commit(self) -> None:
        self._snapshot = self.store.snapshot()

    async def _rollback(self) -> None:
        if self._snapshot is not None:
            self.store.restore(self._snapshot)
            # Keep a private copy so a second rollback cannot alias live tables
            self._snapshot = self.store.snapshot()

    async def _end(self) -> None:
        self._snapshot = None
        self.store.lock.release()
