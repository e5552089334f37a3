"""
Wallet use cases.
Deposits, withdrawals, staff adjustments and ledger reconciliation.
"""

import logging
import time
import uuid
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from app.config import get_settings
from app.domain.events import FundsDeposited, FundsWithdrawn, WalletAdjusted
from app.domain.models.base import EntityNotFoundError, ValidationError
from app.domain.models.user import User, UserRole
from app.domain.models.wallet import WalletTransaction, TransactionType, TransactionStatus
from app.domain.repositories.unit_of_work import UnitOfWork
from app.domain.services.ledger_service import LedgerService
from app.application.dto.wallet_dto import (
    ListTransactionsRequestDTO,
    DepositRequestDTO,
    WithdrawRequestDTO,
    InitiateExternalDepositRequestDTO,
    ExternalDepositCallbackRequestDTO,
    SystemAdjustmentRequestDTO,
    ReconcileRequestDTO,
    WalletBalanceResponseDTO,
    WalletTransactionResponseDTO,
    TransactionListResponseDTO,
    WalletOperationResponseDTO,
    ExternalDepositResponseDTO,
    ExternalDepositCallbackResponseDTO,
    DepositStatusResponseDTO,
    ReconciliationResponseDTO
)
from .base_use_case import (
    QueryUseCase,
    PaginatedQueryUseCase,
    CommandUseCase,
    AuthorizedCommandUseCase
)

logger = logging.getLogger(__name__)

BALANCE_ADMIN_ROLES = (UserRole.ADMIN, UserRole.ACCOUNTS)


async def load_user(uow: UnitOfWork, user_id: int, for_update: bool = False) -> User:
    """Fetch a user inside a unit of work or raise EntityNotFoundError."""
    user = await uow.users.find_by_id(user_id, for_update=for_update)
    if user is None:
        raise EntityNotFoundError("User", user_id)
    return user


class GetWalletBalanceUseCase(QueryUseCase[None, WalletBalanceResponseDTO]):
    """Current user's wallet balance."""

    async def _execute_query_logic(self, request: None) -> WalletBalanceResponseDTO:
        user = await load_user(self.uow, self.current_user.id)
        return WalletBalanceResponseDTO(
            user_id=user.id,
            balance=user.wallet_balance,
            currency=get_settings().default_currency
        )


class ListTransactionsUseCase(PaginatedQueryUseCase[ListTransactionsRequestDTO, TransactionListResponseDTO]):
    """Current user's ledger, newest first."""

    async def _execute_query_logic(self, request: ListTransactionsRequestDTO) -> TransactionListResponseDTO:
        user_id = self.current_user.id
        transactions = await self.uow.transactions.find_by_user(
            user_id,
            limit=request.limit,
            offset=request.offset,
            type=request.type,
            status=request.status
        )
        total = await self.uow.transactions.count_by_user(
            user_id, type=request.type, status=request.status
        )

        return TransactionListResponseDTO(
            items=[WalletTransactionResponseDTO.from_entity(t) for t in transactions],
            total=total,
            limit=request.limit,
            offset=request.offset,
            has_more=request.offset + len(transactions) < total
        )


class DepositFundsUseCase(AuthorizedCommandUseCase[DepositRequestDTO, WalletOperationResponseDTO]):
    """Manual deposit: completed ledger row plus balance credit."""

    async def _execute_command_logic(self, request: DepositRequestDTO) -> WalletOperationResponseDTO:
        user = await load_user(self.uow, self.current_user.id, for_update=True)
        reference = request.payment_reference or (
            f"manual-deposit-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"
        )

        transaction = WalletTransaction.create(
            user_id=user.id,
            amount=request.amount,
            type=TransactionType.DEPOSIT,
            description=request.description or "Funds added to wallet",
            reference=reference,
            metadata={"source": "manual_deposit"},
            completed=True
        )
        new_balance = user.credit(request.amount)

        await self.uow.transactions.add(transaction)
        await self.uow.users.save(user)

        self.uow.collect(FundsDeposited(
            user_id=user.id,
            transaction_id=transaction.id,
            amount=request.amount,
            new_balance=new_balance,
            reference=reference,
            source="manual_deposit"
        ))
        logger.info(f"Deposited {request.amount} to user {user.id} (balance {new_balance})")

        return WalletOperationResponseDTO(
            transaction=WalletTransactionResponseDTO.from_entity(transaction),
            balance=new_balance
        )


class WithdrawFundsUseCase(AuthorizedCommandUseCase[WithdrawRequestDTO, WalletOperationResponseDTO]):
    """Withdrawal: negative completed ledger row plus balance debit."""

    async def _execute_command_logic(self, request: WithdrawRequestDTO) -> WalletOperationResponseDTO:
        user = await load_user(self.uow, self.current_user.id, for_update=True)

        # Raises InsufficientFundsError before anything is written
        new_balance = user.debit(request.amount)

        transaction = WalletTransaction.create(
            user_id=user.id,
            amount=-request.amount,
            type=TransactionType.WITHDRAWAL,
            description=request.description or "Funds withdrawn from wallet",
            reference=f"withdrawal-{uuid.uuid4().hex}",
            metadata={"source": "withdrawal"},
            completed=True
        )

        await self.uow.transactions.add(transaction)
        await self.uow.users.save(user)

        self.uow.collect(FundsWithdrawn(
            user_id=user.id,
            transaction_id=transaction.id,
            amount=request.amount,
            new_balance=new_balance
        ))
        logger.info(f"Withdrew {request.amount} from user {user.id} (balance {new_balance})")

        return WalletOperationResponseDTO(
            transaction=WalletTransactionResponseDTO.from_entity(transaction),
            balance=new_balance
        )


class InitiateExternalDepositUseCase(
    AuthorizedCommandUseCase[InitiateExternalDepositRequestDTO, ExternalDepositResponseDTO]
):
    """Record a pending deposit and hand back the provider payment URL."""

    async def _execute_command_logic(
        self,
        request: InitiateExternalDepositRequestDTO
    ) -> ExternalDepositResponseDTO:
        settings = get_settings()
        reference = f"pesapal-{uuid.uuid4()}"

        transaction = WalletTransaction.create(
            user_id=self.current_user.id,
            amount=request.amount,
            type=TransactionType.DEPOSIT,
            description=request.description or "PesaPal deposit initiated",
            reference=reference,
            metadata={"source": "pesapal", "status": "initiated"}
        )
        await self.uow.transactions.add(transaction)

        query = urlencode({
            "pesapal_merchant_reference": reference,
            "amount": request.amount,
            "currency": settings.default_currency,
            "callback_url": settings.payment_callback_url,
        })
        logger.info(f"Initiated external deposit {reference} of {request.amount} for user {self.current_user.id}")

        return ExternalDepositResponseDTO(
            transaction_id=transaction.id,
            payment_reference=reference,
            payment_url=f"{settings.payment_provider_base_url}?{query}",
            amount=request.amount,
            status=transaction.status
        )


class ProcessExternalDepositCallbackUseCase(
    CommandUseCase[ExternalDepositCallbackRequestDTO, ExternalDepositCallbackResponseDTO]
):
    """
    Apply a payment provider notification.

    Completed notifications credit the wallet once; anything else fails
    the pending row. Repeated notifications for a terminal row are
    acknowledged without side effects.
    """

    async def _execute_command_logic(
        self,
        request: ExternalDepositCallbackRequestDTO
    ) -> ExternalDepositCallbackResponseDTO:
        reference = request.merchant_reference
        transaction = await self.uow.transactions.find_by_reference(reference, for_update=True)
        if transaction is None or transaction.type != TransactionType.DEPOSIT:
            raise EntityNotFoundError("WalletTransaction", reference)

        if transaction.is_terminal:
            logger.info(f"Ignoring repeated notification for {reference} ({transaction.status.value})")
            return ExternalDepositCallbackResponseDTO(
                status="already_processed",
                transaction_status=transaction.status,
                reference=reference
            )

        if request.tracking_id:
            transaction.metadata["tracking_id"] = request.tracking_id
        transaction.metadata["notification"] = request.notification

        if not request.is_completed:
            transaction.fail(f"Provider reported {request.notification or 'no status'}")
            await self.uow.transactions.update_status(transaction)
            logger.warning(f"External deposit {reference} failed: {request.notification}")
            return ExternalDepositCallbackResponseDTO(
                status="failed",
                transaction_status=transaction.status,
                reference=reference
            )

        user = await load_user(self.uow, transaction.user_id, for_update=True)
        new_balance = user.credit(transaction.amount)
        transaction.metadata["status"] = "completed"
        transaction.complete()

        await self.uow.transactions.update_status(transaction)
        await self.uow.users.save(user)

        self.uow.collect(FundsDeposited(
            user_id=user.id,
            transaction_id=transaction.id,
            amount=transaction.amount,
            new_balance=new_balance,
            reference=reference,
            source="pesapal"
        ))
        logger.info(f"External deposit {reference} credited {transaction.amount} to user {user.id}")

        return ExternalDepositCallbackResponseDTO(
            status="success",
            transaction_status=transaction.status,
            reference=reference
        )


class GetDepositStatusUseCase(QueryUseCase[str, DepositStatusResponseDTO]):
    """Status of one of the current user's deposits, by reference."""

    async def _execute_query_logic(self, reference: str) -> DepositStatusResponseDTO:
        transaction = await self.uow.transactions.find_by_reference(reference)
        # Other users' references and non-deposit rows are reported as missing
        if (transaction is None
                or transaction.type != TransactionType.DEPOSIT
                or transaction.user_id != self.current_user.id):
            raise EntityNotFoundError("WalletTransaction", reference)

        return DepositStatusResponseDTO(
            transaction_id=transaction.id,
            status=transaction.status,
            reference=transaction.reference,
            amount=transaction.amount,
            completed_at=transaction.completed_at
        )


class SystemAdjustmentUseCase(AuthorizedCommandUseCase[SystemAdjustmentRequestDTO, WalletOperationResponseDTO]):
    """Signed balance correction applied by admin or accounts staff."""

    async def _check_authorization(self, request: SystemAdjustmentRequestDTO) -> None:
        self._require_role(*BALANCE_ADMIN_ROLES)

    async def _execute_command_logic(self, request: SystemAdjustmentRequestDTO) -> WalletOperationResponseDTO:
        if request.amount == 0:
            raise ValidationError("Adjustment amount cannot be zero", "amount")

        user = await load_user(self.uow, request.user_id, for_update=True)
        if request.amount > 0:
            new_balance = user.credit(request.amount)
        else:
            new_balance = user.debit(-request.amount)

        transaction = WalletTransaction.create(
            user_id=user.id,
            amount=request.amount,
            type=TransactionType.SYSTEM_ADJUSTMENT,
            description=request.reason,
            reference=f"adjustment-{uuid.uuid4().hex}",
            metadata={"adjusted_by": self.current_user.id, "reason": request.reason},
            completed=True
        )

        await self.uow.transactions.add(transaction)
        await self.uow.users.save(user)

        self.uow.collect(WalletAdjusted(
            user_id=user.id,
            transaction_id=transaction.id,
            amount=request.amount,
            new_balance=new_balance,
            adjusted_by=self.current_user.id,
            reason=request.reason
        ))
        logger.info(
            f"User {self.current_user.id} adjusted wallet of user {user.id} by {request.amount}"
        )

        return WalletOperationResponseDTO(
            transaction=WalletTransactionResponseDTO.from_entity(transaction),
            balance=new_balance
        )


class ReconcileWalletUseCase(QueryUseCase[ReconcileRequestDTO, ReconciliationResponseDTO]):
    """Check a wallet and the escrows of the user's contracts against the ledger."""

    def __init__(self, uow: UnitOfWork, ledger_service: Optional[LedgerService] = None):
        super().__init__(uow)
        self.ledger_service = ledger_service or LedgerService()

    async def _check_authorization(self, request: ReconcileRequestDTO) -> None:
        self._require_self_or_role(request.user_id, *BALANCE_ADMIN_ROLES)

    async def _execute_query_logic(self, request: ReconcileRequestDTO) -> ReconciliationResponseDTO:
        report = await build_reconciliation_report(self.uow, request.user_id, self.ledger_service)
        return ReconciliationResponseDTO(**report)


async def build_reconciliation_report(
    uow: UnitOfWork,
    user_id: int,
    ledger_service: Optional[LedgerService] = None
) -> Dict[str, Any]:
    """Drift report for a user's wallet and every escrow of their contracts."""
    ledger_service = ledger_service or LedgerService()
    user = await load_user(uow, user_id)
    transactions = await uow.transactions.all_for_user(user.id)
    wallet_report = ledger_service.reconcile_wallet(user, transactions)

    contracts = await uow.contracts.find_by_party(user.id)
    escrows = await uow.escrows.find_by_contracts([c.id for c in contracts])
    escrow_reports = []
    for escrow in escrows:
        contract_rows = await uow.transactions.all_for_contract(escrow.contract_id)
        escrow_reports.append(ledger_service.reconcile_escrow(escrow, contract_rows))

    report = ledger_service.build_report(wallet_report, escrow_reports)
    if not report["consistent"]:
        logger.error(f"Ledger drift detected for user {user.id}: {report}")
    return report
