"""
Wallet transaction domain model.
Append-only ledger rows recording every balance-affecting event.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any
from enum import Enum

from app.domain.models.base import (
    BaseEntity,
    ValidationError,
    BusinessRuleViolation
)


class TransactionType(str, Enum):
    """Kinds of ledger rows."""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    ESCROW_HOLD = "escrow_hold"
    ESCROW_RELEASE = "escrow_release"
    REFUND = "refund"
    SYSTEM_ADJUSTMENT = "system_adjustment"


class TransactionStatus(str, Enum):
    """Ledger row lifecycle."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({TransactionStatus.COMPLETED, TransactionStatus.FAILED})

# Required sign of the amount per type; None means either sign is allowed
_AMOUNT_SIGNS = {
    TransactionType.DEPOSIT: 1,
    TransactionType.WITHDRAWAL: -1,
    TransactionType.ESCROW_HOLD: -1,
    TransactionType.ESCROW_RELEASE: 1,
    TransactionType.REFUND: 1,
    TransactionType.SYSTEM_ADJUSTMENT: None,
}


@dataclass
class WalletTransaction(BaseEntity):
    """
    A single signed ledger entry for one user.

    Rows are never edited after reaching a terminal status; only
    pending/processing rows move forward.
    """

    user_id: Optional[int] = None
    amount: int = 0
    type: TransactionType = TransactionType.DEPOSIT
    status: TransactionStatus = TransactionStatus.PENDING
    description: Optional[str] = None
    reference: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    completed_at: Optional[datetime] = None

    def __post_init__(self):
        super().__post_init__()
        if not isinstance(self.type, TransactionType):
            self.type = TransactionType(self.type)
        if not isinstance(self.status, TransactionStatus):
            self.status = TransactionStatus(self.status)
        self.validate()

    def validate(self) -> None:
        if self.user_id is None:
            raise ValidationError("Transaction must belong to a user", "user_id")

        if not isinstance(self.amount, int) or isinstance(self.amount, bool):
            raise ValidationError("Amount must be an integer number of minor units", "amount")

        sign = _AMOUNT_SIGNS[self.type]
        if self.amount == 0:
            # Zero rows only document the payer side of an escrow release
            if self.type != TransactionType.ESCROW_RELEASE:
                raise ValidationError("Amount cannot be zero", "amount")
        elif sign is not None and (self.amount > 0) != (sign > 0):
            expected = "positive" if sign > 0 else "negative"
            raise ValidationError(
                f"{self.type.value} transactions must have a {expected} amount", "amount"
            )

        if self.reference is not None and len(self.reference) > 255:
            raise ValidationError("Reference too long (max 255 characters)", "reference")

    @classmethod
    def create(
        cls,
        user_id: int,
        amount: int,
        type: TransactionType,
        description: Optional[str] = None,
        reference: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        completed: bool = False
    ) -> "WalletTransaction":
        """Factory for new ledger rows, optionally already completed."""
        transaction = cls(
            user_id=user_id,
            amount=amount,
            type=type,
            description=description,
            reference=reference,
            metadata=dict(metadata or {})
        )
        if completed:
            transaction.complete()
        return transaction

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_completed(self) -> bool:
        return self.status == TransactionStatus.COMPLETED

    @property
    def contract_id(self) -> Optional[int]:
        value = self.metadata.get("contract_id")
        return int(value) if value is not None else None

    def mark_processing(self) -> None:
        if self.status != TransactionStatus.PENDING:
            raise BusinessRuleViolation(
                f"Only pending transactions can start processing (status: {self.status.value})"
            )
        self.status = TransactionStatus.PROCESSING
        self.mark_as_updated()

    def complete(self, completed_at: Optional[datetime] = None) -> None:
        if self.is_terminal:
            raise BusinessRuleViolation(
                f"Transaction is already {self.status.value}"
            )
        self.status = TransactionStatus.COMPLETED
        self.completed_at = completed_at or datetime.utcnow()
        self.mark_as_updated()

    def fail(self, reason: Optional[str] = None) -> None:
        if self.is_terminal:
            raise BusinessRuleViolation(
                f"Transaction is already {self.status.value}"
            )
        self.status = TransactionStatus.FAILED
        self.completed_at = datetime.utcnow()
        if reason:
            self.metadata["failure_reason"] = reason
        self.mark_as_updated()
