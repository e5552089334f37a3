"""
Escrow use cases.
Every operation runs in a single unit of work: balance changes, escrow
changes and ledger rows are committed together or not at all.
"""

import logging
import uuid
from typing import Optional, Tuple

from app.domain.events import (
    EscrowFunded,
    EscrowReleased,
    EscrowRefunded,
    EscrowDisputed,
    EscrowDisputeResolved
)
from app.domain.models.base import EntityNotFoundError, AuthorizationError, BusinessRuleViolation
from app.domain.models.escrow import Contract, EscrowAccount
from app.domain.models.wallet import WalletTransaction, TransactionType
from app.domain.repositories.unit_of_work import UnitOfWork
from app.domain.services.escrow_policy import EscrowPolicy
from app.application.dto.escrow_dto import (
    HoldFundsRequestDTO,
    ReleaseFundsRequestDTO,
    RefundFundsRequestDTO,
    DisputeRequestDTO,
    ResolveDisputeRequestDTO,
    GetEscrowRequestDTO,
    EscrowResponseDTO,
    EscrowOperationResponseDTO
)
from app.application.dto.wallet_dto import WalletTransactionResponseDTO
from .base_use_case import QueryUseCase, AuthorizedCommandUseCase
from .wallet_use_cases import load_user

logger = logging.getLogger(__name__)


class EscrowUseCaseMixin:
    """Shared lookups for escrow use cases."""

    uow: UnitOfWork
    policy: EscrowPolicy

    async def _load_contract(self, contract_id: int) -> Contract:
        contract = await self.uow.contracts.find_by_id(contract_id)
        if contract is None:
            raise EntityNotFoundError("Contract", contract_id)
        return contract

    async def _load_escrow(self, contract_id: int, for_update: bool = True) -> EscrowAccount:
        escrow = await self.uow.escrows.find_by_contract(contract_id, for_update=for_update)
        if escrow is None:
            raise EntityNotFoundError("EscrowAccount", f"contract {contract_id}")
        return escrow

    async def _load_contract_and_escrow(self, contract_id: int) -> Tuple[Contract, EscrowAccount]:
        contract = await self._load_contract(contract_id)
        escrow = await self._load_escrow(contract_id)
        return contract, escrow

    @staticmethod
    def _ledger_row(
        user_id: int,
        amount: int,
        type: TransactionType,
        description: str,
        escrow: EscrowAccount,
        **metadata
    ) -> WalletTransaction:
        return WalletTransaction.create(
            user_id=user_id,
            amount=amount,
            type=type,
            description=description,
            reference=f"{type.value.replace('_', '-')}-{uuid.uuid4().hex}",
            metadata={"contract_id": escrow.contract_id, "escrow_id": escrow.id, **metadata},
            completed=True
        )


class HoldFundsUseCase(EscrowUseCaseMixin, AuthorizedCommandUseCase[HoldFundsRequestDTO, EscrowOperationResponseDTO]):
    """Move funds from the client's wallet into the contract's escrow."""

    def __init__(self, uow: UnitOfWork, policy: Optional[EscrowPolicy] = None):
        super().__init__(uow)
        self.policy = policy or EscrowPolicy()

    async def _execute_command_logic(self, request: HoldFundsRequestDTO) -> EscrowOperationResponseDTO:
        contract = await self._load_contract(request.contract_id)
        if not self.policy.can_hold(self.current_user, contract):
            raise AuthorizationError("Only the contract's client can fund its escrow")
        if not contract.is_active:
            raise BusinessRuleViolation(f"Cannot fund escrow of a {contract.status.value} contract")

        # Escrow row before user rows, the order every unit of work locks in
        escrow = await self.uow.escrows.find_by_contract(contract.id, for_update=True)
        client = await load_user(self.uow, contract.client_id, for_update=True)
        created = escrow is None
        if created:
            if request.supervisor_id is not None:
                await load_user(self.uow, request.supervisor_id)
            escrow = EscrowAccount.open(contract.id, supervisor_id=request.supervisor_id)

        # Raises InsufficientFundsError before anything is written
        client.debit(request.amount)
        escrow_balance = escrow.fund(request.amount)

        await self.uow.escrows.save(escrow)
        transaction = self._ledger_row(
            client.id, -request.amount, TransactionType.ESCROW_HOLD,
            f"Funds held in escrow for contract #{contract.id}", escrow
        )
        await self.uow.transactions.add(transaction)
        await self.uow.users.save(client)

        self.uow.collect(EscrowFunded(
            escrow_id=escrow.id,
            contract_id=contract.id,
            client_id=client.id,
            amount=request.amount,
            escrow_balance=escrow_balance
        ))
        logger.info(
            f"Held {request.amount} in escrow {escrow.id} for contract {contract.id} "
            f"(escrow balance {escrow_balance})"
        )

        return EscrowOperationResponseDTO(
            escrow=EscrowResponseDTO.from_entity(escrow),
            transaction=WalletTransactionResponseDTO.from_entity(transaction),
            message="Escrow account created" if created else "Escrow account funded"
        )


class ReleaseFundsUseCase(EscrowUseCaseMixin, AuthorizedCommandUseCase[ReleaseFundsRequestDTO, EscrowOperationResponseDTO]):
    """
    Pay held funds out to the freelancer.

    Writes two escrow_release rows: a zero-amount row on the client that
    documents the release, and the credit on the freelancer.
    """

    def __init__(self, uow: UnitOfWork, policy: Optional[EscrowPolicy] = None):
        super().__init__(uow)
        self.policy = policy or EscrowPolicy()

    async def _execute_command_logic(self, request: ReleaseFundsRequestDTO) -> EscrowOperationResponseDTO:
        contract, escrow = await self._load_contract_and_escrow(request.contract_id)
        if not self.policy.can_release(self.current_user, contract, escrow):
            raise AuthorizationError("Not authorized to release these funds")

        escrow_balance = escrow.release(request.amount)
        freelancer = await load_user(self.uow, contract.freelancer_id, for_update=True)
        freelancer.credit(request.amount)

        client_row = self._ledger_row(
            contract.client_id, 0, TransactionType.ESCROW_RELEASE,
            f"Escrow release to freelancer for contract #{contract.id}", escrow,
            released_amount=request.amount,
            released_by=self.current_user.id
        )
        freelancer_row = self._ledger_row(
            freelancer.id, request.amount, TransactionType.ESCROW_RELEASE,
            f"Payment released from escrow for contract #{contract.id}", escrow,
            released_by=self.current_user.id,
            note=request.note
        )

        await self.uow.escrows.save(escrow)
        await self.uow.transactions.add(client_row)
        await self.uow.transactions.add(freelancer_row)
        await self.uow.users.save(freelancer)

        self.uow.collect(EscrowReleased(
            escrow_id=escrow.id,
            contract_id=contract.id,
            freelancer_id=freelancer.id,
            released_by=self.current_user.id,
            amount=request.amount,
            escrow_balance=escrow_balance
        ))
        logger.info(
            f"User {self.current_user.id} released {request.amount} from escrow {escrow.id} "
            f"to freelancer {freelancer.id} (escrow balance {escrow_balance})"
        )

        return EscrowOperationResponseDTO(
            escrow=EscrowResponseDTO.from_entity(escrow),
            transaction=WalletTransactionResponseDTO.from_entity(freelancer_row),
            message="Funds released successfully"
        )


class RefundFundsUseCase(EscrowUseCaseMixin, AuthorizedCommandUseCase[RefundFundsRequestDTO, EscrowOperationResponseDTO]):
    """Return held funds to the client's wallet."""

    def __init__(self, uow: UnitOfWork, policy: Optional[EscrowPolicy] = None):
        super().__init__(uow)
        self.policy = policy or EscrowPolicy()

    async def _execute_command_logic(self, request: RefundFundsRequestDTO) -> EscrowOperationResponseDTO:
        contract, escrow = await self._load_contract_and_escrow(request.contract_id)
        if not self.policy.can_refund(self.current_user, contract, escrow):
            raise AuthorizationError("Not authorized to refund these funds")

        escrow_balance = escrow.refund(request.amount)
        client = await load_user(self.uow, contract.client_id, for_update=True)
        client.credit(request.amount)

        transaction = self._ledger_row(
            client.id, request.amount, TransactionType.REFUND,
            f"Escrow refund for contract #{contract.id}", escrow,
            refunded_by=self.current_user.id,
            note=request.note
        )

        await self.uow.escrows.save(escrow)
        await self.uow.transactions.add(transaction)
        await self.uow.users.save(client)

        self.uow.collect(EscrowRefunded(
            escrow_id=escrow.id,
            contract_id=contract.id,
            client_id=client.id,
            refunded_by=self.current_user.id,
            amount=request.amount,
            escrow_balance=escrow_balance
        ))
        logger.info(
            f"User {self.current_user.id} refunded {request.amount} from escrow {escrow.id} "
            f"to client {client.id} (escrow balance {escrow_balance})"
        )

        return EscrowOperationResponseDTO(
            escrow=EscrowResponseDTO.from_entity(escrow),
            transaction=WalletTransactionResponseDTO.from_entity(transaction),
            message="Funds refunded successfully"
        )


class DisputeEscrowUseCase(EscrowUseCaseMixin, AuthorizedCommandUseCase[DisputeRequestDTO, EscrowOperationResponseDTO]):
    """Freeze an active escrow until the dispute is resolved."""

    def __init__(self, uow: UnitOfWork, policy: Optional[EscrowPolicy] = None):
        super().__init__(uow)
        self.policy = policy or EscrowPolicy()

    async def _execute_command_logic(self, request: DisputeRequestDTO) -> EscrowOperationResponseDTO:
        contract, escrow = await self._load_contract_and_escrow(request.contract_id)
        if not self.policy.can_dispute(self.current_user, contract):
            raise AuthorizationError("Only contract parties can dispute an escrow")

        escrow.dispute()
        await self.uow.escrows.save(escrow)

        self.uow.collect(EscrowDisputed(
            escrow_id=escrow.id,
            contract_id=contract.id,
            raised_by=self.current_user.id,
            reason=request.reason
        ))
        logger.warning(f"Escrow {escrow.id} disputed by user {self.current_user.id}")

        return EscrowOperationResponseDTO(
            escrow=EscrowResponseDTO.from_entity(escrow),
            message="Escrow is now under dispute"
        )


class ResolveDisputeUseCase(EscrowUseCaseMixin, AuthorizedCommandUseCase[ResolveDisputeRequestDTO, EscrowOperationResponseDTO]):
    """Return a disputed escrow to active so funds can be released or refunded."""

    def __init__(self, uow: UnitOfWork, policy: Optional[EscrowPolicy] = None):
        super().__init__(uow)
        self.policy = policy or EscrowPolicy()

    async def _check_authorization(self, request: ResolveDisputeRequestDTO) -> None:
        if not self.policy.can_resolve(self.current_user):
            raise AuthorizationError("Only dispute resolution staff can resolve disputes")

    async def _execute_command_logic(self, request: ResolveDisputeRequestDTO) -> EscrowOperationResponseDTO:
        contract, escrow = await self._load_contract_and_escrow(request.contract_id)

        escrow.resolve_dispute()
        await self.uow.escrows.save(escrow)

        self.uow.collect(EscrowDisputeResolved(
            escrow_id=escrow.id,
            contract_id=contract.id,
            resolved_by=self.current_user.id
        ))
        logger.info(f"Escrow {escrow.id} dispute resolved by user {self.current_user.id}")

        return EscrowOperationResponseDTO(
            escrow=EscrowResponseDTO.from_entity(escrow),
            message="Dispute resolved"
        )


class GetEscrowUseCase(EscrowUseCaseMixin, QueryUseCase[GetEscrowRequestDTO, EscrowResponseDTO]):

    def __init__(self, uow: UnitOfWork, policy: Optional[EscrowPolicy] = None):
        super().__init__(uow)
        self.policy = policy or EscrowPolicy()

    async def _execute_query_logic(self, request: GetEscrowRequestDTO) -> EscrowResponseDTO:
        contract = await self._load_contract(request.contract_id)
        escrow = await self._load_escrow(contract.id, for_update=False)
        if not self.policy.can_view(self.current_user, contract, escrow):
            raise AuthorizationError("Not authorized to view this escrow")
        return EscrowResponseDTO.from_entity(escrow)
