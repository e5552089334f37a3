"""
Escrow DTOs for the application layer.
"""

from typing import Optional
from pydantic import Field

from app.domain.models.escrow import EscrowStatus
from .base_dto import BaseDTO, RequestDTO, ResponseDTO
from .wallet_dto import WalletTransactionResponseDTO


class HoldFundsRequestDTO(RequestDTO):
    """DTO for funding a contract's escrow."""

    contract_id: int = Field(gt=0, alias="contractId")
    amount: int = Field(gt=0, description="Amount in minor units")
    supervisor_id: Optional[int] = Field(default=None, gt=0, alias="supervisorId")


class EscrowAmountRequestDTO(RequestDTO):
    """Release or refund request."""

    contract_id: int = Field(gt=0, alias="contractId")
    amount: int = Field(gt=0, description="Amount in minor units")
    note: Optional[str] = Field(default=None, max_length=500)


class ReleaseFundsRequestDTO(EscrowAmountRequestDTO):
    pass


class RefundFundsRequestDTO(EscrowAmountRequestDTO):
    pass


class DisputeRequestDTO(RequestDTO):
    contract_id: int = Field(gt=0, alias="contractId")
    reason: Optional[str] = Field(default=None, max_length=1000)


class ResolveDisputeRequestDTO(RequestDTO):
    contract_id: int = Field(gt=0, alias="contractId")


class GetEscrowRequestDTO(RequestDTO):
    contract_id: int = Field(gt=0)


class EscrowResponseDTO(ResponseDTO):
    contract_id: int
    amount: int
    status: EscrowStatus
    supervisor_id: Optional[int] = None

    @classmethod
    def from_entity(cls, escrow) -> "EscrowResponseDTO":
        return cls(
            id=escrow.id,
            contract_id=escrow.contract_id,
            amount=escrow.amount,
            status=escrow.status,
            supervisor_id=escrow.supervisor_id,
            created_at=escrow.created_at,
            updated_at=escrow.updated_at
        )


class EscrowOperationResponseDTO(BaseDTO):
    """Escrow state after an operation plus the ledger row it produced."""

    escrow: EscrowResponseDTO
    transaction: Optional[WalletTransactionResponseDTO] = None
    message: str
