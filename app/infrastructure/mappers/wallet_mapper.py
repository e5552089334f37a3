"""
Wallet transaction mapper.
"""

from app.domain.models.wallet import WalletTransaction
from app.infrastructure.db.models import WalletTransactionModel
from app.infrastructure.mappers.user_mapper import to_naive_utc


class WalletTransactionMapper:
    """Maps ledger rows to and from WalletTransactionModel."""

    def domain_to_model(self, transaction: WalletTransaction) -> WalletTransactionModel:
        return WalletTransactionModel(
            id=transaction.id,
            user_id=transaction.user_id,
            amount=transaction.amount,
            type=transaction.type,
            status=transaction.status,
            description=transaction.description,
            reference=transaction.reference,
            extra=dict(transaction.metadata),
            # Denormalized for indexed lookups by contract
            contract_id=transaction.contract_id,
            created_at=transaction.created_at,
            updated_at=transaction.updated_at,
            completed_at=transaction.completed_at
        )

    def model_to_domain(self, model: WalletTransactionModel) -> WalletTransaction:
        return WalletTransaction(
            id=model.id,
            user_id=model.user_id,
            amount=model.amount,
            type=model.type,
            status=model.status,
            description=model.description,
            reference=model.reference,
            metadata=dict(model.extra or {}),
            created_at=to_naive_utc(model.created_at),
            updated_at=to_naive_utc(model.updated_at or model.created_at),
            completed_at=to_naive_utc(model.completed_at)
        )
