"""
Domain events related to escrow accounts.
"""

from typing import Dict, Any, Optional
from dataclasses import dataclass

from .base import DomainEvent


@dataclass
class EscrowFunded(DomainEvent):
    """Event fired when client funds are placed in escrow."""

    escrow_id: int
    contract_id: int
    client_id: int
    amount: int
    escrow_balance: int

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "escrow_id": self.escrow_id,
            "contract_id": self.contract_id,
            "client_id": self.client_id,
            "amount": self.amount,
            "escrow_balance": self.escrow_balance,
        }


@dataclass
class EscrowReleased(DomainEvent):
    """Event fired when escrowed funds are paid out to the freelancer."""

    escrow_id: int
    contract_id: int
    freelancer_id: int
    released_by: int
    amount: int
    escrow_balance: int

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "escrow_id": self.escrow_id,
            "contract_id": self.contract_id,
            "freelancer_id": self.freelancer_id,
            "released_by": self.released_by,
            "amount": self.amount,
            "escrow_balance": self.escrow_balance,
        }


@dataclass
class EscrowRefunded(DomainEvent):
    """Event fired when escrowed funds go back to the client."""

    escrow_id: int
    contract_id: int
    client_id: int
    refunded_by: int
    amount: int
    escrow_balance: int

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "escrow_id": self.escrow_id,
            "contract_id": self.contract_id,
            "client_id": self.client_id,
            "refunded_by": self.refunded_by,
            "amount": self.amount,
            "escrow_balance": self.escrow_balance,
        }


@dataclass
class EscrowDisputed(DomainEvent):
    """Event fired when an escrow is frozen by a dispute."""

    escrow_id: int
    contract_id: int
    raised_by: int
    reason: Optional[str] = None

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "escrow_id": self.escrow_id,
            "contract_id": self.contract_id,
            "raised_by": self.raised_by,
            "reason": self.reason,
        }


@dataclass
class EscrowDisputeResolved(DomainEvent):
    """Event fired when a disputed escrow becomes active again."""

    escrow_id: int
    contract_id: int
    resolved_by: int

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "escrow_id": self.escrow_id,
            "contract_id": self.contract_id,
            "resolved_by": self.resolved_by,
        }
