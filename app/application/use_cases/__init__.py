"""
Application layer use cases.
Business logic for the wallet, escrow and authentication flows.
"""

from .base_use_case import (
    UseCaseResult,
    BaseUseCase,
    AuthorizedUseCase,
    QueryUseCase,
    CommandUseCase,
    AuthorizedCommandUseCase,
    PaginatedQueryUseCase
)
from .wallet_use_cases import (
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
from .escrow_use_cases import (
    HoldFundsUseCase,
    ReleaseFundsUseCase,
    RefundFundsUseCase,
    DisputeEscrowUseCase,
    ResolveDisputeUseCase,
    GetEscrowUseCase
)
from .auth_use_cases import (
    RegisterUserUseCase,
    LoginUseCase,
    LogoutUseCase,
    ListActivitiesUseCase
)

__all__ = [
    # Base Use Cases
    "UseCaseResult",
    "BaseUseCase",
    "AuthorizedUseCase",
    "QueryUseCase",
    "CommandUseCase",
    "AuthorizedCommandUseCase",
    "PaginatedQueryUseCase",

    # Wallet Use Cases
    "GetWalletBalanceUseCase",
    "ListTransactionsUseCase",
    "DepositFundsUseCase",
    "WithdrawFundsUseCase",
    "InitiateExternalDepositUseCase",
    "ProcessExternalDepositCallbackUseCase",
    "GetDepositStatusUseCase",
    "SystemAdjustmentUseCase",
    "ReconcileWalletUseCase",

    # Escrow Use Cases
    "HoldFundsUseCase",
    "ReleaseFundsUseCase",
    "RefundFundsUseCase",
    "DisputeEscrowUseCase",
    "ResolveDisputeUseCase",
    "GetEscrowUseCase",

    # Auth Use Cases
    "RegisterUserUseCase",
    "LoginUseCase",
    "LogoutUseCase",
    "ListActivitiesUseCase",
]
