"""
Wallet router.
Balance, ledger history, deposits, withdrawals and staff operations.
"""

from typing import Annotated, Optional
from fastapi import APIRouter, Depends, Path, Query, status

from app.domain.models.user import User
from app.domain.models.wallet import TransactionType, TransactionStatus
from app.domain.repositories.unit_of_work import UnitOfWork
from app.infrastructure.auth import get_current_user, require_balance_admin
from app.infrastructure.rate_limiting import payment_rate_limit, webhook_rate_limit
from app.infrastructure.repositories.provider import get_unit_of_work
from app.application.use_cases.wallet_use_cases import (
    GetWalletBalanceUseCase,
    ListTransactionsUseCase,
    DepositFundsUseCase,
    WithdrawFundsUseCase,
    InitiateExternalDepositUseCase,
    ProcessExternalDepositCallbackUseCase,
    GetDepositStatusUseCase,
    SystemAdjustmentUseCase,
    ReconcileWalletUseCase
)
from app.application.dto.wallet_dto import (
    ListTransactionsRequestDTO,
    DepositRequestDTO,
    WithdrawRequestDTO,
    InitiateExternalDepositRequestDTO,
    ExternalDepositCallbackRequestDTO,
    SystemAdjustmentRequestDTO,
    ReconcileRequestDTO,
    WalletBalanceResponseDTO,
    TransactionListResponseDTO,
    WalletOperationResponseDTO,
    ExternalDepositResponseDTO,
    ExternalDepositCallbackResponseDTO,
    DepositStatusResponseDTO,
    ReconciliationResponseDTO
)
from .responses import unwrap


router = APIRouter()


@router.get("/balance", response_model=WalletBalanceResponseDTO)
async def get_balance(
    current_user: Annotated[User, Depends(get_current_user)],
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)]
):
    """Current wallet balance of the authenticated user."""
    use_case = GetWalletBalanceUseCase(uow).set_current_user(current_user)
    return unwrap(await use_case.execute(None))


@router.get("/transactions", response_model=TransactionListResponseDTO)
async def list_transactions(
    current_user: Annotated[User, Depends(get_current_user)],
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    limit: int = Query(10, ge=1, le=100, description="Maximum rows to return"),
    offset: int = Query(0, ge=0, description="Rows to skip"),
    type: Optional[TransactionType] = Query(None, description="Filter by transaction type"),
    tx_status: Optional[TransactionStatus] = Query(None, alias="status", description="Filter by status")
):
    """
    Ledger history of the authenticated user, newest first.

    - **limit**: Number of rows (1-100, default 10)
    - **offset**: Rows to skip
    - **type**: Optional transaction type filter
    - **status**: Optional status filter
    """
    request = ListTransactionsRequestDTO(limit=limit, offset=offset, type=type, status=tx_status)
    use_case = ListTransactionsUseCase(uow).set_current_user(current_user)
    return unwrap(await use_case.execute(request))


@router.post("/deposit", status_code=status.HTTP_201_CREATED, response_model=WalletOperationResponseDTO)
async def deposit(
    request: DepositRequestDTO,
    current_user: Annotated[User, Depends(get_current_user)],
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    _: None = Depends(payment_rate_limit)
):
    """
    Credit the wallet with a completed manual deposit.

    - **amount**: Positive amount in minor units
    - **paymentReference**: Optional external reference
    """
    use_case = DepositFundsUseCase(uow).set_current_user(current_user)
    return unwrap(await use_case.execute(request))


@router.post("/withdraw", status_code=status.HTTP_201_CREATED, response_model=WalletOperationResponseDTO)
async def withdraw(
    request: WithdrawRequestDTO,
    current_user: Annotated[User, Depends(get_current_user)],
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    _: None = Depends(payment_rate_limit)
):
    """Debit the wallet. Fails when the balance does not cover the amount."""
    use_case = WithdrawFundsUseCase(uow).set_current_user(current_user)
    return unwrap(await use_case.execute(request))


@router.post("/pesapal/initiate", status_code=status.HTTP_201_CREATED, response_model=ExternalDepositResponseDTO)
async def initiate_external_deposit(
    request: InitiateExternalDepositRequestDTO,
    current_user: Annotated[User, Depends(get_current_user)],
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    _: None = Depends(payment_rate_limit)
):
    """Record a pending deposit and return the payment provider URL."""
    use_case = InitiateExternalDepositUseCase(uow).set_current_user(current_user)
    return unwrap(await use_case.execute(request))


@router.post("/pesapal/callback", response_model=ExternalDepositCallbackResponseDTO)
async def external_deposit_callback(
    request: ExternalDepositCallbackRequestDTO,
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    _: None = Depends(webhook_rate_limit)
):
    """
    Payment provider notification. Not authenticated.

    - **pesapalMerchantReference**: Reference returned by the initiate call
    - **pesapalTrackingId**: Provider tracking id
    - **pesapalNotification**: COMPLETED credits the wallet, anything else fails the deposit
    """
    use_case = ProcessExternalDepositCallbackUseCase(uow)
    return unwrap(await use_case.execute(request))


@router.get("/pesapal/status/{reference}", response_model=DepositStatusResponseDTO)
async def deposit_status(
    reference: str,
    current_user: Annotated[User, Depends(get_current_user)],
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)]
):
    """Status of one of the caller's deposits."""
    use_case = GetDepositStatusUseCase(uow).set_current_user(current_user)
    return unwrap(await use_case.execute(reference))


@router.post("/adjust", status_code=status.HTTP_201_CREATED, response_model=WalletOperationResponseDTO)
async def system_adjustment(
    request: SystemAdjustmentRequestDTO,
    current_user: Annotated[User, Depends(require_balance_admin)],
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    _: None = Depends(payment_rate_limit)
):
    """
    Apply a signed balance correction to any wallet.
    Restricted to admin and accounts staff.
    """
    use_case = SystemAdjustmentUseCase(uow).set_current_user(current_user)
    return unwrap(await use_case.execute(request))


@router.get("/reconcile/{user_id}", response_model=ReconciliationResponseDTO)
async def reconcile(
    user_id: Annotated[int, Path(gt=0)],
    current_user: Annotated[User, Depends(get_current_user)],
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)]
):
    """
    Compare the stored balance and escrow amounts with the ledger.
    Users may reconcile themselves; staff may reconcile anyone.
    """
    use_case = ReconcileWalletUseCase(uow).set_current_user(current_user)
    return unwrap(await use_case.execute(ReconcileRequestDTO(user_id=user_id)))
