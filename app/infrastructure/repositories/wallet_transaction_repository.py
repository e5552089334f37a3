"""
Wallet transaction repository implementation using SQLAlchemy.
"""

from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import func

from app.domain.models.wallet import WalletTransaction, TransactionType, TransactionStatus
from app.domain.repositories.wallet_transaction_repository import WalletTransactionRepository
from app.domain.models.base import EntityNotFoundError, DuplicateEntityError
from app.infrastructure.db.models import WalletTransactionModel
from app.infrastructure.mappers.wallet_mapper import WalletTransactionMapper


class SQLAlchemyWalletTransactionRepository(WalletTransactionRepository):
    """SQLAlchemy implementation of the ledger."""

    def __init__(self, session: Session):
        self.session = session
        self.mapper = WalletTransactionMapper()

    def _filtered(self, user_id: int, type=None, status=None):
        query = self.session.query(WalletTransactionModel).filter_by(user_id=user_id)
        if type is not None:
            query = query.filter(WalletTransactionModel.type == TransactionType(type))
        if status is not None:
            query = query.filter(WalletTransactionModel.status == TransactionStatus(status))
        return query

    async def add(self, transaction: WalletTransaction) -> WalletTransaction:
        if transaction.reference and self.session.query(WalletTransactionModel).filter_by(
            reference=transaction.reference
        ).first():
            raise DuplicateEntityError("WalletTransaction", "reference", transaction.reference)

        model = self.mapper.domain_to_model(transaction)
        self.session.add(model)
        self.session.flush()
        transaction.id = model.id
        return transaction

    async def update_status(self, transaction: WalletTransaction) -> WalletTransaction:
        model = self.session.query(WalletTransactionModel).filter_by(id=transaction.id).first()
        if not model:
            raise EntityNotFoundError("WalletTransaction", transaction.id)

        model.status = transaction.status
        model.completed_at = transaction.completed_at
        model.updated_at = transaction.updated_at
        model.extra = dict(transaction.metadata)
        self.session.flush()
        return transaction

    async def find_by_id(self, transaction_id: int) -> Optional[WalletTransaction]:
        model = self.session.query(WalletTransactionModel).filter_by(id=transaction_id).first()
        return self.mapper.model_to_domain(model) if model else None

    async def find_by_reference(self, reference: str, for_update: bool = False) -> Optional[WalletTransaction]:
        query = self.session.query(WalletTransactionModel).filter_by(reference=reference)
        if for_update:
            query = query.with_for_update()
        model = query.first()
        return self.mapper.model_to_domain(model) if model else None

    async def find_by_user(
        self,
        user_id: int,
        limit: int = 10,
        offset: int = 0,
        type: Optional[TransactionType] = None,
        status: Optional[TransactionStatus] = None
    ) -> List[WalletTransaction]:
        models = (
            self._filtered(user_id, type, status)
            .order_by(WalletTransactionModel.created_at.desc(), WalletTransactionModel.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [self.mapper.model_to_domain(model) for model in models]

    async def count_by_user(
        self,
        user_id: int,
        type: Optional[TransactionType] = None,
        status: Optional[TransactionStatus] = None
    ) -> int:
        return self._filtered(user_id, type, status).with_entities(
            func.count(WalletTransactionModel.id)
        ).scalar()

    async def all_for_user(self, user_id: int) -> List[WalletTransaction]:
        models = (
            self.session.query(WalletTransactionModel)
            .filter_by(user_id=user_id)
            .order_by(WalletTransactionModel.id)
            .all()
        )
        return [self.mapper.model_to_domain(model) for model in models]

    async def all_for_contract(self, contract_id: int) -> List[WalletTransaction]:
        models = (
            self.session.query(WalletTransactionModel)
            .filter_by(contract_id=contract_id)
            .order_by(WalletTransactionModel.id)
            .all()
        )
        return [self.mapper.model_to_domain(model) for model in models]
