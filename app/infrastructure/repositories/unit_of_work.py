"""
SQLAlchemy unit of work.
One database transaction per unit of work; repositories share its session.
"""

import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.domain.repositories.unit_of_work import UnitOfWork
from app.infrastructure.repositories.user_repository import SQLAlchemyUserRepository
from app.infrastructure.repositories.wallet_transaction_repository import SQLAlchemyWalletTransactionRepository
from app.infrastructure.repositories.escrow_repository import (
    SQLAlchemyEscrowRepository,
    SQLAlchemyContractRepository
)
from app.infrastructure.repositories.session_repository import (
    SQLAlchemySessionRepository,
    SQLAlchemyActivityRepository,
    SQLAlchemyAuditLogRepository
)

logger = logging.getLogger(__name__)


class SQLAlchemyUnitOfWork(UnitOfWork):
    """Unit of work backed by a SQLAlchemy session."""

    def __init__(self, session_factory: Callable[[], Session]):
        super().__init__()
        self.session_factory = session_factory
        self.session: Optional[Session] = None

    async def _begin(self) -> None:
        self.session = self.session_factory()
        self.users = SQLAlchemyUserRepository(self.session)
        self.transactions = SQLAlchemyWalletTransactionRepository(self.session)
        self.escrows = SQLAlchemyEscrowRepository(self.session)
        self.contracts = SQLAlchemyContractRepository(self.session)
        self.sessions = SQLAlchemySessionRepository(self.session)
        self.activities = SQLAlchemyActivityRepository(self.session)
        self.audit_logs = SQLAlchemyAuditLogRepository(self.session)

    async def _commit(self) -> None:
        try:
            self.session.commit()
        except Exception:
            logger.exception("Database commit failed, rolling back")
            self.session.rollback()
            raise

    async def _rollback(self) -> None:
        if self.session is not None:
            self.session.rollback()

    async def _end(self) -> None:
        if self.session is not None:
            self.session.close()
            self.session = None
