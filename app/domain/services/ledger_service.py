"""Ledger service for balance computation and reconciliation.
Checks wallet balances and escrow accounts against the transaction ledger.
"""

from typing import List, Dict, Any, Optional

from app.domain.models.user import User
from app.domain.models.wallet import WalletTransaction, TransactionType
from app.domain.models.escrow import EscrowAccount


class LedgerService:
    """
    Domain service for ledger arithmetic.

    The ledger is the source of truth: a wallet balance must equal the
    sum of the user's completed rows, and an escrow account may never hold
    more than its contract's completed holds minus payouts.
    """

    def compute_balance(self, transactions: List[WalletTransaction]) -> int:
        """Sum of completed, signed amounts."""
        return sum(t.amount for t in transactions if t.is_completed)

    def compute_escrow_total(self, transactions: List[WalletTransaction]) -> Dict[str, int]:
        """
        Aggregate a contract's completed rows into held, released and
        refunded totals (all as magnitudes).
        """
        held = 0
        released = 0
        refunded = 0

        for transaction in transactions:
            if not transaction.is_completed:
                continue
            if transaction.type == TransactionType.ESCROW_HOLD:
                held += -transaction.amount
            elif transaction.type == TransactionType.ESCROW_RELEASE and transaction.amount > 0:
                # Payer-side release rows carry zero and are informational
                released += transaction.amount
            elif transaction.type == TransactionType.REFUND:
                refunded += transaction.amount

        return {
            "held": held,
            "released": released,
            "refunded": refunded,
            "expected": held - released - refunded,
        }

    def reconcile_wallet(self, user: User, transactions: List[WalletTransaction]) -> Dict[str, Any]:
        """Compare the stored balance with the ledger sum."""
        ledger_balance = self.compute_balance(transactions)
        drift = user.wallet_balance - ledger_balance
        return {
            "user_id": user.id,
            "stored_balance": user.wallet_balance,
            "ledger_balance": ledger_balance,
            "drift": drift,
            "consistent": drift == 0,
        }

    def reconcile_escrow(
        self,
        escrow: EscrowAccount,
        transactions: List[WalletTransaction]
    ) -> Dict[str, Any]:
        """
        Compare an escrow account with its contract's ledger rows.
        An account holding more than the ledger allows is inconsistent;
        holding less is reported as drift as well.
        """
        totals = self.compute_escrow_total(transactions)
        drift = escrow.amount - totals["expected"]
        return {
            "escrow_id": escrow.id,
            "contract_id": escrow.contract_id,
            "stored_amount": escrow.amount,
            "ledger_amount": totals["expected"],
            "held": totals["held"],
            "released": totals["released"],
            "refunded": totals["refunded"],
            "drift": drift,
            "within_ledger": escrow.amount <= totals["expected"],
            "consistent": drift == 0,
        }

    def build_report(
        self,
        wallet: Dict[str, Any],
        escrows: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        escrows = escrows or []
        return {
            "wallet": wallet,
            "escrows": escrows,
            "consistent": wallet["consistent"] and all(e["consistent"] for e in escrows),
        }
