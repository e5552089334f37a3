"""
Unit tests for LedgerService.
"""

from app.domain.models.user import User
from app.domain.models.escrow import EscrowAccount
from app.domain.models.wallet import WalletTransaction, TransactionType
from app.domain.services.ledger_service import LedgerService


def row(amount, type, completed=True, contract_id=None, user_id=1):
    metadata = {"contract_id": contract_id} if contract_id else {}
    return WalletTransaction.create(
        user_id=user_id, amount=amount, type=type, metadata=metadata, completed=completed
    )


class TestLedgerService:
    """Test cases for ledger arithmetic and reconciliation."""

    def setup_method(self):
        self.service = LedgerService()

    def test_compute_balance_ignores_pending_and_failed(self):
        """Test only completed rows count."""
        failed = row(300, TransactionType.DEPOSIT, completed=False)
        failed.fail("declined")
        transactions = [
            row(1000, TransactionType.DEPOSIT),
            row(-250, TransactionType.WITHDRAWAL),
            row(500, TransactionType.DEPOSIT, completed=False),
            failed,
        ]

        assert self.service.compute_balance(transactions) == 750

    def test_compute_escrow_total(self):
        """Test held, released and refunded magnitudes."""
        transactions = [
            row(-1000, TransactionType.ESCROW_HOLD, contract_id=3),
            row(0, TransactionType.ESCROW_RELEASE, contract_id=3),
            row(400, TransactionType.ESCROW_RELEASE, contract_id=3, user_id=2),
            row(100, TransactionType.REFUND, contract_id=3),
        ]

        totals = self.service.compute_escrow_total(transactions)

        assert totals == {"held": 1000, "released": 400, "refunded": 100, "expected": 500}

    def test_reconcile_wallet_consistent(self):
        user = User(email="a@example.com", username="alice", wallet_balance=700)
        transactions = [row(1000, TransactionType.DEPOSIT), row(-300, TransactionType.ESCROW_HOLD)]

        report = self.service.reconcile_wallet(user, transactions)

        assert report["consistent"] is True
        assert report["drift"] == 0
        assert report["ledger_balance"] == 700

    def test_reconcile_wallet_drift(self):
        """Test a stored balance that disagrees with the ledger."""
        user = User(email="a@example.com", username="alice", wallet_balance=900)

        report = self.service.reconcile_wallet(user, [row(1000, TransactionType.DEPOSIT)])

        assert report["consistent"] is False
        assert report["drift"] == -100

    def test_reconcile_escrow_over_ledger(self):
        """Test an escrow holding more than its holds allow."""
        escrow = EscrowAccount(contract_id=3, amount=800)
        transactions = [row(-500, TransactionType.ESCROW_HOLD, contract_id=3)]

        report = self.service.reconcile_escrow(escrow, transactions)

        assert report["within_ledger"] is False
        assert report["consistent"] is False
        assert report["drift"] == 300

    def test_build_report(self):
        user = User(email="a@example.com", username="alice", wallet_balance=0)
        wallet = self.service.reconcile_wallet(user, [])
        escrow = self.service.reconcile_escrow(EscrowAccount(contract_id=3, amount=0), [])

        report = self.service.build_report(wallet, [escrow])

        assert report["consistent"] is True
        assert report["escrows"] == [escrow]
