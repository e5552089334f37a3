"""
Wallet DTOs for the application layer.
Amounts are integers in minor currency units.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime
from pydantic import Field, ConfigDict, validator

from app.domain.models.wallet import TransactionType, TransactionStatus
from .base_dto import BaseDTO, RequestDTO, ResponseDTO


# Request DTOs
class ListTransactionsRequestDTO(RequestDTO):
    """Pagination and filters for the transaction history."""

    limit: int = Field(default=10, ge=1, le=100, description="Maximum rows to return")
    offset: int = Field(default=0, ge=0, description="Rows to skip")
    type: Optional[TransactionType] = Field(default=None, description="Filter by transaction type")
    status: Optional[TransactionStatus] = Field(default=None, description="Filter by status")


class DepositRequestDTO(RequestDTO):
    """DTO for manual deposits."""

    amount: int = Field(gt=0, description="Amount in minor units")
    payment_reference: Optional[str] = Field(
        default=None, max_length=255, alias="paymentReference",
        description="External payment reference"
    )
    description: Optional[str] = Field(default=None, max_length=500)

    @validator('payment_reference')
    def strip_reference(cls, v):
        if v is not None:
            v = v.strip()
            return v or None
        return v


class WithdrawRequestDTO(RequestDTO):
    """DTO for withdrawals."""

    amount: int = Field(gt=0, description="Amount in minor units")
    description: Optional[str] = Field(default=None, max_length=500)


class InitiateExternalDepositRequestDTO(RequestDTO):
    """DTO for starting a deposit through the payment provider."""

    amount: int = Field(gt=0, description="Amount in minor units")
    description: Optional[str] = Field(default=None, max_length=500)


class ExternalDepositCallbackRequestDTO(RequestDTO):
    """Payment provider notification."""

    # Providers add fields over time
    model_config = ConfigDict(extra="ignore")

    merchant_reference: str = Field(
        min_length=1, max_length=255, alias="pesapalMerchantReference",
        description="Reference issued when the deposit was initiated"
    )
    tracking_id: Optional[str] = Field(default=None, max_length=255, alias="pesapalTrackingId")
    notification: Optional[str] = Field(default=None, max_length=50, alias="pesapalNotification")

    @property
    def is_completed(self) -> bool:
        return (self.notification or "").upper() == "COMPLETED"


class SystemAdjustmentRequestDTO(RequestDTO):
    """DTO for staff balance adjustments."""

    user_id: int = Field(gt=0, description="Target user")
    amount: int = Field(description="Signed amount in minor units")
    reason: str = Field(min_length=3, max_length=500, description="Why the balance is adjusted")

    @validator('amount')
    def amount_not_zero(cls, v):
        if v == 0:
            raise ValueError('Adjustment amount cannot be zero')
        return v


class ReconcileRequestDTO(RequestDTO):
    user_id: int = Field(gt=0)


# Response DTOs
class WalletBalanceResponseDTO(BaseDTO):
    user_id: int
    balance: int = Field(description="Balance in minor units")
    currency: str = "USD"


class WalletTransactionResponseDTO(ResponseDTO):
    """DTO for ledger rows."""

    user_id: int
    amount: int
    type: TransactionType
    status: TransactionStatus
    description: Optional[str] = None
    reference: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    completed_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, transaction) -> "WalletTransactionResponseDTO":
        return cls(
            id=transaction.id,
            user_id=transaction.user_id,
            amount=transaction.amount,
            type=transaction.type,
            status=transaction.status,
            description=transaction.description,
            reference=transaction.reference,
            metadata=dict(transaction.metadata),
            created_at=transaction.created_at,
            updated_at=transaction.updated_at,
            completed_at=transaction.completed_at
        )


class TransactionListResponseDTO(BaseDTO):
    items: List[WalletTransactionResponseDTO]
    total: int
    limit: int
    offset: int
    has_more: bool


class WalletOperationResponseDTO(BaseDTO):
    """Result of a balance-changing operation."""

    transaction: WalletTransactionResponseDTO
    balance: int


class ExternalDepositResponseDTO(BaseDTO):
    transaction_id: int
    payment_reference: str
    payment_url: str
    amount: int
    status: TransactionStatus
    message: str = "Navigate to the payment provider to complete your payment"


class ExternalDepositCallbackResponseDTO(BaseDTO):
    status: str = Field(description="success, failed or already_processed")
    transaction_status: TransactionStatus
    reference: str


class DepositStatusResponseDTO(BaseDTO):
    transaction_id: int
    status: TransactionStatus
    reference: str
    amount: int
    completed_at: Optional[datetime] = None


class ReconciliationResponseDTO(BaseDTO):
    """Drift report for a wallet and the escrows of its contracts."""

    consistent: bool
    wallet: Dict[str, Any]
    escrows: List[Dict[str, Any]] = Field(default_factory=list)
