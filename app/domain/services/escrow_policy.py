"""Authorization rules for escrow operations."""

from typing import Optional

from app.domain.models.user import User, UserRole
from app.domain.models.escrow import Contract, EscrowAccount


RELEASE_ROLES = frozenset({UserRole.ADMIN, UserRole.QA})
REFUND_ROLES = frozenset({UserRole.ADMIN, UserRole.QA, UserRole.DISPUTE_RESOLUTION})
RESOLVE_ROLES = frozenset({UserRole.ADMIN, UserRole.DISPUTE_RESOLUTION})


class EscrowPolicy:
    """
    Decides which actors may act on a contract's escrow.
    Role checks and party checks both live here so routers and use cases
    never duplicate them.
    """

    @staticmethod
    def _is_supervisor(actor: User, escrow: Optional[EscrowAccount]) -> bool:
        return (
            escrow is not None
            and escrow.supervisor_id is not None
            and escrow.supervisor_id == actor.id
        )

    def can_hold(self, actor: User, contract: Contract) -> bool:
        return actor.id == contract.client_id

    def can_release(self, actor: User, contract: Contract, escrow: Optional[EscrowAccount]) -> bool:
        return (
            actor.id == contract.client_id
            or actor.role in RELEASE_ROLES
            or self._is_supervisor(actor, escrow)
        )

    def can_refund(self, actor: User, contract: Contract, escrow: Optional[EscrowAccount]) -> bool:
        return actor.role in REFUND_ROLES or self._is_supervisor(actor, escrow)

    def can_dispute(self, actor: User, contract: Contract) -> bool:
        return contract.is_party(actor.id) or actor.role == UserRole.ADMIN

    def can_resolve(self, actor: User) -> bool:
        return actor.role in RESOLVE_ROLES

    def can_view(self, actor: User, contract: Contract, escrow: Optional[EscrowAccount]) -> bool:
        return (
            contract.is_party(actor.id)
            or actor.is_staff
            or self._is_supervisor(actor, escrow)
        )
