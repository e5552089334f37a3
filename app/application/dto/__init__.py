"""
Application layer DTOs.
Data Transfer Objects for API requests and responses.
"""

from .base_dto import *
from .wallet_dto import *
from .escrow_dto import *
from .auth_dto import *

__all__ = [
    # Base DTOs
    "BaseDTO",
    "RequestDTO",
    "ResponseDTO",
    "MessageResponseDTO",
    "ErrorDetailDTO",
    "ErrorResponseDTO",
    "HealthCheckResponseDTO",

    # Wallet DTOs
    "ListTransactionsRequestDTO",
    "DepositRequestDTO",
    "WithdrawRequestDTO",
    "InitiateExternalDepositRequestDTO",
    "ExternalDepositCallbackRequestDTO",
    "SystemAdjustmentRequestDTO",
    "ReconcileRequestDTO",
    "WalletBalanceResponseDTO",
    "WalletTransactionResponseDTO",
    "TransactionListResponseDTO",
    "WalletOperationResponseDTO",
    "ExternalDepositResponseDTO",
    "ExternalDepositCallbackResponseDTO",
    "DepositStatusResponseDTO",
    "ReconciliationResponseDTO",

    # Escrow DTOs
    "HoldFundsRequestDTO",
    "ReleaseFundsRequestDTO",
    "RefundFundsRequestDTO",
    "DisputeRequestDTO",
    "ResolveDisputeRequestDTO",
    "GetEscrowRequestDTO",
    "EscrowResponseDTO",
    "EscrowOperationResponseDTO",

    # Auth DTOs
    "RegisterRequestDTO",
    "LoginRequestDTO",
    "RequestContextDTO",
    "UserResponseDTO",
    "AuthResponseDTO",
    "ActivityResponseDTO",
]
