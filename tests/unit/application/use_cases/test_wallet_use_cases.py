"""
Unit tests for wallet use cases against the in-memory backend.
"""

import pytest
from urllib.parse import urlparse, parse_qs

from app.domain.models.user import UserRole
from app.domain.models.wallet import TransactionType, TransactionStatus
from app.application.dto.wallet_dto import (
    ListTransactionsRequestDTO,
    DepositRequestDTO,
    WithdrawRequestDTO,
    InitiateExternalDepositRequestDTO,
    ExternalDepositCallbackRequestDTO,
    SystemAdjustmentRequestDTO,
    ReconcileRequestDTO
)
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
from tests.factories import create_user, load_user, transactions_of


class TestBalanceAndHistory:
    """Test cases for balance and transaction history queries."""

    @pytest.mark.asyncio
    async def test_get_balance(self, uow_factory):
        user = await create_user(uow_factory, "alice", balance=2500)

        result = await GetWalletBalanceUseCase(uow_factory()).set_current_user(user).execute(None)

        assert result.success is True
        assert result.data.balance == 2500
        assert result.data.user_id == user.id

    @pytest.mark.asyncio
    async def test_requires_authentication(self, uow_factory):
        """Test queries without a current user."""
        result = await GetWalletBalanceUseCase(uow_factory()).execute(None)

        assert result.success is False
        assert result.error_code == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_list_transactions_newest_first(self, uow_factory):
        user = await create_user(uow_factory, "alice", balance=1000)
        for amount in (100, 200, 300):
            await DepositFundsUseCase(uow_factory()).set_current_user(user).execute(
                DepositRequestDTO(amount=amount)
            )

        result = await ListTransactionsUseCase(uow_factory()).set_current_user(user).execute(
            ListTransactionsRequestDTO(limit=2)
        )

        assert result.success is True
        assert [t.amount for t in result.data.items] == [300, 200]
        assert result.data.total == 4
        assert result.data.has_more is True

    @pytest.mark.asyncio
    async def test_list_transactions_filtered(self, uow_factory):
        user = await create_user(uow_factory, "alice", balance=1000)
        await WithdrawFundsUseCase(uow_factory()).set_current_user(user).execute(
            WithdrawRequestDTO(amount=100)
        )

        result = await ListTransactionsUseCase(uow_factory()).set_current_user(user).execute(
            ListTransactionsRequestDTO(type=TransactionType.WITHDRAWAL)
        )

        assert result.data.total == 1
        assert result.data.items[0].amount == -100
        assert result.data.has_more is False


class TestDepositAndWithdraw:
    """Test cases for manual deposits and withdrawals."""

    @pytest.mark.asyncio
    async def test_deposit(self, uow_factory):
        user = await create_user(uow_factory, "alice")

        result = await DepositFundsUseCase(uow_factory()).set_current_user(user).execute(
            DepositRequestDTO(amount=1500)
        )

        assert result.success is True
        assert result.data.balance == 1500
        assert result.data.transaction.status == TransactionStatus.COMPLETED.value
        assert result.data.transaction.reference.startswith("manual-deposit-")
        assert (await load_user(uow_factory, user.id)).wallet_balance == 1500

    @pytest.mark.asyncio
    async def test_deposit_duplicate_reference_rolls_back(self, uow_factory):
        """Test a rejected row leaves the balance untouched."""
        user = await create_user(uow_factory, "alice")
        request = DepositRequestDTO(amount=100, paymentReference="bank-123")
        await DepositFundsUseCase(uow_factory()).set_current_user(user).execute(request)

        result = await DepositFundsUseCase(uow_factory()).set_current_user(user).execute(request)

        assert result.success is False
        assert result.error_code == "DUPLICATE_ENTITY"
        assert (await load_user(uow_factory, user.id)).wallet_balance == 100

    @pytest.mark.asyncio
    async def test_withdraw(self, uow_factory):
        user = await create_user(uow_factory, "alice", balance=1000)

        result = await WithdrawFundsUseCase(uow_factory()).set_current_user(user).execute(
            WithdrawRequestDTO(amount=400)
        )

        assert result.success is True
        assert result.data.balance == 600
        assert result.data.transaction.amount == -400

    @pytest.mark.asyncio
    async def test_withdraw_insufficient_funds(self, uow_factory):
        user = await create_user(uow_factory, "alice", balance=100)

        result = await WithdrawFundsUseCase(uow_factory()).set_current_user(user).execute(
            WithdrawRequestDTO(amount=101)
        )

        assert result.success is False
        assert result.error_code == "INSUFFICIENT_FUNDS"
        assert len(await transactions_of(uow_factory, user.id)) == 1


class TestExternalDeposits:
    """Test cases for provider deposits and their callbacks."""

    async def initiate(self, uow_factory, user, amount=5000):
        result = await InitiateExternalDepositUseCase(uow_factory()).set_current_user(user).execute(
            InitiateExternalDepositRequestDTO(amount=amount)
        )
        assert result.success is True
        return result.data

    def callback(self, reference, notification="COMPLETED"):
        return ExternalDepositCallbackRequestDTO(
            pesapalMerchantReference=reference,
            pesapalTrackingId="track-1",
            pesapalNotification=notification
        )

    @pytest.mark.asyncio
    async def test_initiate_creates_pending_row(self, uow_factory):
        user = await create_user(uow_factory, "alice")

        data = await self.initiate(uow_factory, user)

        assert data.payment_reference.startswith("pesapal-")
        assert data.status == TransactionStatus.PENDING.value
        query = parse_qs(urlparse(data.payment_url).query)
        assert query["pesapal_merchant_reference"] == [data.payment_reference]
        assert query["amount"] == ["5000"]
        assert (await load_user(uow_factory, user.id)).wallet_balance == 0

    @pytest.mark.asyncio
    async def test_completed_callback_credits_once(self, uow_factory):
        user = await create_user(uow_factory, "alice")
        data = await self.initiate(uow_factory, user)

        first = await ProcessExternalDepositCallbackUseCase(uow_factory()).execute(
            self.callback(data.payment_reference)
        )
        second = await ProcessExternalDepositCallbackUseCase(uow_factory()).execute(
            self.callback(data.payment_reference)
        )

        assert first.data.status == "success"
        assert second.data.status == "already_processed"
        assert second.data.transaction_status == TransactionStatus.COMPLETED.value
        assert (await load_user(uow_factory, user.id)).wallet_balance == 5000

    @pytest.mark.asyncio
    async def test_failed_callback(self, uow_factory):
        user = await create_user(uow_factory, "alice")
        data = await self.initiate(uow_factory, user)

        result = await ProcessExternalDepositCallbackUseCase(uow_factory()).execute(
            self.callback(data.payment_reference, "FAILED")
        )
        status = await GetDepositStatusUseCase(uow_factory()).set_current_user(user).execute(
            data.payment_reference
        )

        assert result.data.status == "failed"
        assert status.data.status == TransactionStatus.FAILED.value
        assert (await load_user(uow_factory, user.id)).wallet_balance == 0

    @pytest.mark.asyncio
    async def test_unknown_reference(self, uow_factory):
        result = await ProcessExternalDepositCallbackUseCase(uow_factory()).execute(
            self.callback("pesapal-unknown")
        )

        assert result.success is False
        assert result.error_code == "ENTITY_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_status_of_other_users_deposit(self, uow_factory):
        """Test references of other users are reported as missing."""
        alice = await create_user(uow_factory, "alice")
        bob = await create_user(uow_factory, "bob")
        data = await self.initiate(uow_factory, alice)

        result = await GetDepositStatusUseCase(uow_factory()).set_current_user(bob).execute(
            data.payment_reference
        )

        assert result.error_code == "ENTITY_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_status_ignores_non_deposit_rows(self, uow_factory):
        """Test a withdrawal reference is not reported as a deposit."""
        user = await create_user(uow_factory, "alice", balance=1000)
        withdrawal = await WithdrawFundsUseCase(uow_factory()).set_current_user(user).execute(
            WithdrawRequestDTO(amount=400)
        )

        result = await GetDepositStatusUseCase(uow_factory()).set_current_user(user).execute(
            withdrawal.data.transaction.reference
        )

        assert result.error_code == "ENTITY_NOT_FOUND"


class TestSystemAdjustment:
    """Test cases for staff adjustments."""

    @pytest.mark.asyncio
    async def test_requires_balance_admin_role(self, uow_factory):
        support = await create_user(uow_factory, "support", role=UserRole.SUPPORT)
        target = await create_user(uow_factory, "target")

        result = await SystemAdjustmentUseCase(uow_factory()).set_current_user(support).execute(
            SystemAdjustmentRequestDTO(user_id=target.id, amount=100, reason="goodwill")
        )

        assert result.error_code == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_signed_adjustments(self, uow_factory):
        accounts = await create_user(uow_factory, "accounts", role=UserRole.ACCOUNTS)
        target = await create_user(uow_factory, "target", balance=500)

        credit = await SystemAdjustmentUseCase(uow_factory()).set_current_user(accounts).execute(
            SystemAdjustmentRequestDTO(user_id=target.id, amount=250, reason="goodwill credit")
        )
        debit = await SystemAdjustmentUseCase(uow_factory()).set_current_user(accounts).execute(
            SystemAdjustmentRequestDTO(user_id=target.id, amount=-700, reason="chargeback")
        )

        assert credit.data.balance == 750
        assert debit.data.balance == 50
        assert debit.data.transaction.type == TransactionType.SYSTEM_ADJUSTMENT.value

    @pytest.mark.asyncio
    async def test_cannot_go_negative(self, uow_factory):
        admin = await create_user(uow_factory, "admin", role=UserRole.ADMIN)
        target = await create_user(uow_factory, "target", balance=100)

        result = await SystemAdjustmentUseCase(uow_factory()).set_current_user(admin).execute(
            SystemAdjustmentRequestDTO(user_id=target.id, amount=-101, reason="chargeback")
        )

        assert result.error_code == "INSUFFICIENT_FUNDS"
        assert (await load_user(uow_factory, target.id)).wallet_balance == 100


class TestReconcileWallet:
    """Test cases for ledger reconciliation."""

    @pytest.mark.asyncio
    async def test_consistent_after_operations(self, uow_factory):
        user = await create_user(uow_factory, "alice", balance=1000)
        await WithdrawFundsUseCase(uow_factory()).set_current_user(user).execute(
            WithdrawRequestDTO(amount=300)
        )

        result = await ReconcileWalletUseCase(uow_factory()).set_current_user(user).execute(
            ReconcileRequestDTO(user_id=user.id)
        )

        assert result.success is True
        assert result.data.consistent is True
        assert result.data.wallet["ledger_balance"] == 700

    @pytest.mark.asyncio
    async def test_detects_drift(self, uow_factory):
        user = await create_user(uow_factory, "alice", balance=1000)
        async with uow_factory() as uow:
            stored = await uow.users.find_by_id(user.id)
            stored.wallet_balance = 1200
            await uow.users.save(stored)
            await uow.commit()

        result = await ReconcileWalletUseCase(uow_factory()).set_current_user(user).execute(
            ReconcileRequestDTO(user_id=user.id)
        )

        assert result.data.consistent is False
        assert result.data.wallet["drift"] == 200

    @pytest.mark.asyncio
    async def test_other_users_require_staff(self, uow_factory):
        alice = await create_user(uow_factory, "alice")
        bob = await create_user(uow_factory, "bob")
        accounts = await create_user(uow_factory, "accounts", role=UserRole.ACCOUNTS)

        denied = await ReconcileWalletUseCase(uow_factory()).set_current_user(bob).execute(
            ReconcileRequestDTO(user_id=alice.id)
        )
        allowed = await ReconcileWalletUseCase(uow_factory()).set_current_user(accounts).execute(
            ReconcileRequestDTO(user_id=alice.id)
        )

        assert denied.error_code == "FORBIDDEN"
        assert allowed.success is True
