"""
Escrow and contract domain models.
An escrow account holds client funds reserved for one contract.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from enum import Enum

from app.domain.models.base import (
    AggregateRoot,
    BaseEntity,
    ValidationError,
    BusinessRuleViolation,
    require_positive_amount
)


class ContractStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELED = "canceled"


class EscrowStatus(str, Enum):
    ACTIVE = "active"
    RELEASED = "released"
    REFUNDED = "refunded"
    DISPUTED = "disputed"


@dataclass
class Contract(BaseEntity):
    """
    Agreement between a client and a freelancer.
    Only the fields escrow needs are modelled here.
    """

    job_id: Optional[int] = None
    proposal_id: Optional[int] = None
    client_id: Optional[int] = None
    freelancer_id: Optional[int] = None
    terms: str = ""
    amount: int = 0
    status: ContractStatus = ContractStatus.ACTIVE
    start_date: datetime = None
    end_date: Optional[datetime] = None

    def __post_init__(self):
        super().__post_init__()
        if not isinstance(self.status, ContractStatus):
            self.status = ContractStatus(self.status)
        if self.start_date is None:
            self.start_date = self.created_at
        self.validate()

    def validate(self) -> None:
        if self.client_id is None or self.freelancer_id is None:
            raise ValidationError("Contract requires both a client and a freelancer")
        if self.client_id == self.freelancer_id:
            raise ValidationError("Client and freelancer must be different users")
        if self.amount < 0:
            raise ValidationError("Contract amount cannot be negative", "amount")

    def is_party(self, user_id: int) -> bool:
        return user_id in (self.client_id, self.freelancer_id)

    @property
    def is_active(self) -> bool:
        return self.status == ContractStatus.ACTIVE


@dataclass
class EscrowAccount(AggregateRoot):
    """
    Per-contract holding balance.

    The held amount only moves through fund/release/refund so the
    account can always be reconciled against the ledger.
    """

    contract_id: Optional[int] = None
    amount: int = 0
    status: EscrowStatus = EscrowStatus.ACTIVE
    supervisor_id: Optional[int] = None

    def __post_init__(self):
        super().__post_init__()
        if not isinstance(self.status, EscrowStatus):
            self.status = EscrowStatus(self.status)
        self.validate()

    def validate(self) -> None:
        if self.contract_id is None:
            raise ValidationError("Escrow account requires a contract", "contract_id")
        if self.amount < 0:
            raise ValidationError("Escrow amount cannot be negative", "amount")

    @classmethod
    def open(cls, contract_id: int, supervisor_id: Optional[int] = None) -> "EscrowAccount":
        return cls(contract_id=contract_id, supervisor_id=supervisor_id)

    @property
    def is_active(self) -> bool:
        return self.status == EscrowStatus.ACTIVE

    def fund(self, amount: int) -> int:
        """Add held funds. A fully paid-out account becomes active again."""
        require_positive_amount(amount)
        if self.status in (EscrowStatus.DISPUTED, EscrowStatus.REFUNDED):
            raise BusinessRuleViolation(
                f"Cannot add funds to a {self.status.value} escrow"
            )
        self.amount += amount
        self.status = EscrowStatus.ACTIVE
        self.increment_version()
        return self.amount

    def _take(self, amount: int, action: str) -> None:
        require_positive_amount(amount)
        if not self.is_active:
            raise BusinessRuleViolation(
                f"Cannot {action} funds from a {self.status.value} escrow"
            )
        if amount > self.amount:
            raise BusinessRuleViolation(
                f"{action.capitalize()} amount exceeds escrow balance"
            )
        self.amount -= amount

    def release(self, amount: int) -> int:
        """Pay out part or all of the held funds."""
        self._take(amount, "release")
        if self.amount == 0:
            self.status = EscrowStatus.RELEASED
        self.increment_version()
        return self.amount

    def refund(self, amount: int) -> int:
        """Return part or all of the held funds to the client."""
        self._take(amount, "refund")
        if self.amount == 0:
            self.status = EscrowStatus.REFUNDED
        self.increment_version()
        return self.amount

    def dispute(self) -> None:
        if not self.is_active:
            raise BusinessRuleViolation(
                f"Only active escrows can be disputed (status: {self.status.value})"
            )
        self.status = EscrowStatus.DISPUTED
        self.increment_version()

    def resolve_dispute(self) -> None:
        if self.status != EscrowStatus.DISPUTED:
            raise BusinessRuleViolation("Escrow is not under dispute")
        self.status = EscrowStatus.ACTIVE
        self.increment_version()
