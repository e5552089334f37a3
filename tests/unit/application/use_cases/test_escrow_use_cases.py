"""
Unit tests for escrow use cases against the in-memory backend.
"""

import pytest

from app.domain.models.user import UserRole
from app.domain.models.escrow import ContractStatus, EscrowStatus
from app.domain.models.wallet import TransactionType
from app.application.dto.escrow_dto import (
    HoldFundsRequestDTO,
    ReleaseFundsRequestDTO,
    RefundFundsRequestDTO,
    DisputeRequestDTO,
    ResolveDisputeRequestDTO,
    GetEscrowRequestDTO
)
from app.application.use_cases.escrow_use_cases import (
    HoldFundsUseCase,
    ReleaseFundsUseCase,
    RefundFundsUseCase,
    DisputeEscrowUseCase,
    ResolveDisputeUseCase,
    GetEscrowUseCase
)
from app.application.use_cases.wallet_use_cases import build_reconciliation_report
from app.infrastructure.repositories.in_memory import (
    InMemoryUnitOfWork,
    InMemoryUserRepository,
    InMemoryEscrowRepository,
    InMemoryWalletTransactionRepository
)
from tests.factories import (
    create_user,
    create_contract,
    load_user,
    load_escrow,
    transactions_of
)


@pytest.fixture
def parties(uow_factory):
    """Factory coroutine creating a funded client, a freelancer and their contract."""
    async def make(balance=100_000, **contract_kwargs):
        client = await create_user(uow_factory, "client", balance=balance)
        freelancer = await create_user(uow_factory, "freelancer", role=UserRole.FREELANCER)
        contract = await create_contract(uow_factory, client, freelancer, **contract_kwargs)
        return client, freelancer, contract
    return make


async def hold(uow_factory, actor, contract, amount=30_000, supervisor_id=None):
    return await HoldFundsUseCase(uow_factory()).set_current_user(actor).execute(
        HoldFundsRequestDTO(contract_id=contract.id, amount=amount, supervisor_id=supervisor_id)
    )


async def release(uow_factory, actor, contract, amount):
    return await ReleaseFundsUseCase(uow_factory()).set_current_user(actor).execute(
        ReleaseFundsRequestDTO(contract_id=contract.id, amount=amount)
    )


async def refund(uow_factory, actor, contract, amount):
    return await RefundFundsUseCase(uow_factory()).set_current_user(actor).execute(
        RefundFundsRequestDTO(contract_id=contract.id, amount=amount)
    )


class FailingTransactionRepository(InMemoryWalletTransactionRepository):
    async def add(self, transaction):
        raise RuntimeError("ledger unavailable")


class LockRecordingUserRepository(InMemoryUserRepository):

    def __init__(self, store, locks):
        super().__init__(store)
        self.locks = locks

    async def find_by_id(self, user_id, for_update=False):
        if for_update:
            self.locks.append(("user", user_id))
        return await super().find_by_id(user_id, for_update)


class LockRecordingEscrowRepository(InMemoryEscrowRepository):

    def __init__(self, store, locks):
        super().__init__(store)
        self.locks = locks

    async def find_by_contract(self, contract_id, for_update=False):
        if for_update:
            self.locks.append(("escrow", contract_id))
        return await super().find_by_contract(contract_id, for_update)


def lock_recording_uow(store):
    """Unit of work recording every row lock in the order it is taken."""
    locks = []
    uow = InMemoryUnitOfWork(store)
    uow.users = LockRecordingUserRepository(store, locks)
    uow.escrows = LockRecordingEscrowRepository(store, locks)
    return uow, locks


class TestHoldFunds:
    """Test cases for funding an escrow."""

    @pytest.mark.asyncio
    async def test_first_hold_opens_escrow(self, uow_factory, parties):
        client, freelancer, contract = await parties()

        result = await hold(uow_factory, client, contract)

        assert result.success is True
        assert result.data.message == "Escrow account created"
        assert result.data.escrow.amount == 30_000
        assert result.data.transaction.type == TransactionType.ESCROW_HOLD.value
        assert result.data.transaction.amount == -30_000
        assert result.data.transaction.metadata["contract_id"] == contract.id
        assert (await load_user(uow_factory, client.id)).wallet_balance == 70_000

    @pytest.mark.asyncio
    async def test_second_hold_tops_up(self, uow_factory, parties):
        client, freelancer, contract = await parties()
        await hold(uow_factory, client, contract)

        result = await hold(uow_factory, client, contract, amount=5_000)

        assert result.data.message == "Escrow account funded"
        assert (await load_escrow(uow_factory, contract.id)).amount == 35_000

    @pytest.mark.asyncio
    async def test_freelancer_cannot_hold(self, uow_factory, parties):
        client, freelancer, contract = await parties()

        result = await hold(uow_factory, freelancer, contract)

        assert result.error_code == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_insufficient_funds_creates_nothing(self, uow_factory, parties):
        client, freelancer, contract = await parties(balance=1_000)

        result = await hold(uow_factory, client, contract)

        assert result.error_code == "INSUFFICIENT_FUNDS"
        assert await load_escrow(uow_factory, contract.id) is None
        assert (await load_user(uow_factory, client.id)).wallet_balance == 1_000

    @pytest.mark.asyncio
    async def test_inactive_contract(self, uow_factory, parties):
        client, freelancer, contract = await parties(status=ContractStatus.COMPLETED)

        result = await hold(uow_factory, client, contract)

        assert result.error_code == "BUSINESS_RULE_VIOLATION"

    @pytest.mark.asyncio
    async def test_unknown_contract(self, uow_factory):
        client = await create_user(uow_factory, "client", balance=1_000)

        result = await HoldFundsUseCase(uow_factory()).set_current_user(client).execute(
            HoldFundsRequestDTO(contract_id=999, amount=100)
        )

        assert result.error_code == "ENTITY_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_missing_supervisor(self, uow_factory, parties):
        client, freelancer, contract = await parties()

        result = await hold(uow_factory, client, contract, supervisor_id=999)

        assert result.error_code == "ENTITY_NOT_FOUND"
        assert (await load_user(uow_factory, client.id)).wallet_balance == 100_000

    @pytest.mark.asyncio
    async def test_failed_ledger_write_rolls_back(self, store, uow_factory, parties):
        """Test nothing is persisted when a write fails mid-operation."""
        client, freelancer, contract = await parties()
        uow = InMemoryUnitOfWork(store)
        uow.transactions = FailingTransactionRepository(store)

        result = await HoldFundsUseCase(uow).set_current_user(client).execute(
            HoldFundsRequestDTO(contract_id=contract.id, amount=30_000)
        )

        assert result.success is False
        assert result.error_code == "UNKNOWN_ERROR"
        assert await load_escrow(uow_factory, contract.id) is None
        assert (await load_user(uow_factory, client.id)).wallet_balance == 100_000
        assert len(await transactions_of(uow_factory, client.id)) == 1


class TestReleaseAndRefund:
    """Test cases for paying out and returning held funds."""

    @pytest.mark.asyncio
    async def test_release_writes_both_ledger_rows(self, uow_factory, parties):
        client, freelancer, contract = await parties()
        await hold(uow_factory, client, contract)

        result = await release(uow_factory, client, contract, 10_000)

        assert result.success is True
        assert result.data.escrow.amount == 20_000
        assert result.data.escrow.status == EscrowStatus.ACTIVE.value
        assert (await load_user(uow_factory, freelancer.id)).wallet_balance == 10_000

        client_rows = await transactions_of(uow_factory, client.id)
        assert [(t.type, t.amount) for t in client_rows][-1] == (TransactionType.ESCROW_RELEASE, 0)
        freelancer_rows = await transactions_of(uow_factory, freelancer.id)
        assert [(t.type, t.amount) for t in freelancer_rows] == [(TransactionType.ESCROW_RELEASE, 10_000)]

    @pytest.mark.asyncio
    async def test_ledger_stays_consistent(self, uow_factory, parties):
        client, freelancer, contract = await parties()
        await hold(uow_factory, client, contract)
        await release(uow_factory, client, contract, 10_000)

        async with uow_factory() as uow:
            client_report = await build_reconciliation_report(uow, client.id)
            freelancer_report = await build_reconciliation_report(uow, freelancer.id)

        assert client_report["consistent"] is True
        assert client_report["wallet"]["ledger_balance"] == 70_000
        assert client_report["escrows"][0]["ledger_amount"] == 20_000
        assert freelancer_report["consistent"] is True

    @pytest.mark.asyncio
    async def test_full_release_closes_escrow(self, uow_factory, parties):
        client, freelancer, contract = await parties()
        await hold(uow_factory, client, contract)

        result = await release(uow_factory, client, contract, 30_000)

        assert result.data.escrow.status == EscrowStatus.RELEASED.value

    @pytest.mark.asyncio
    async def test_cannot_release_more_than_held(self, uow_factory, parties):
        client, freelancer, contract = await parties()
        await hold(uow_factory, client, contract)

        result = await release(uow_factory, client, contract, 30_001)

        assert result.error_code == "BUSINESS_RULE_VIOLATION"
        assert (await load_user(uow_factory, freelancer.id)).wallet_balance == 0

    @pytest.mark.asyncio
    async def test_release_permissions(self, uow_factory, parties):
        client, freelancer, contract = await parties()
        supervisor = await create_user(uow_factory, "supervisor", role=UserRole.FREELANCER)
        outsider = await create_user(uow_factory, "outsider")
        await hold(uow_factory, client, contract, supervisor_id=supervisor.id)

        by_freelancer = await release(uow_factory, freelancer, contract, 1_000)
        by_outsider = await release(uow_factory, outsider, contract, 1_000)
        by_supervisor = await release(uow_factory, supervisor, contract, 1_000)

        assert by_freelancer.error_code == "FORBIDDEN"
        assert by_outsider.error_code == "FORBIDDEN"
        assert by_supervisor.success is True

    @pytest.mark.asyncio
    async def test_refund_permissions(self, uow_factory, parties):
        client, freelancer, contract = await parties()
        resolver = await create_user(uow_factory, "resolver", role=UserRole.DISPUTE_RESOLUTION)
        await hold(uow_factory, client, contract)

        by_client = await refund(uow_factory, client, contract, 5_000)
        by_resolver = await refund(uow_factory, resolver, contract, 5_000)

        assert by_client.error_code == "FORBIDDEN"
        assert by_resolver.success is True
        assert by_resolver.data.transaction.type == TransactionType.REFUND.value
        assert (await load_user(uow_factory, client.id)).wallet_balance == 75_000

    @pytest.mark.asyncio
    async def test_missing_escrow(self, uow_factory, parties):
        client, freelancer, contract = await parties()

        result = await release(uow_factory, client, contract, 1_000)

        assert result.error_code == "ENTITY_NOT_FOUND"


class TestLockOrder:
    """Every escrow operation locks the escrow row before any user row."""

    @pytest.mark.asyncio
    async def test_opening_hold(self, store, parties):
        client, freelancer, contract = await parties()
        uow, locks = lock_recording_uow(store)

        result = await HoldFundsUseCase(uow).set_current_user(client).execute(
            HoldFundsRequestDTO(contract_id=contract.id, amount=1_000)
        )

        assert result.success is True
        assert locks == [("escrow", contract.id), ("user", client.id)]

    @pytest.mark.asyncio
    async def test_hold_release_and_refund_agree(self, store, uow_factory, parties):
        client, freelancer, contract = await parties()
        resolver = await create_user(uow_factory, "resolver", role=UserRole.DISPUTE_RESOLUTION)
        await hold(uow_factory, client, contract)
        operations = [
            (HoldFundsUseCase, HoldFundsRequestDTO(contract_id=contract.id, amount=1_000), client, client.id),
            (ReleaseFundsUseCase, ReleaseFundsRequestDTO(contract_id=contract.id, amount=1_000), client, freelancer.id),
            (RefundFundsUseCase, RefundFundsRequestDTO(contract_id=contract.id, amount=1_000), resolver, client.id),
        ]

        for use_case_class, request, actor, locked_user_id in operations:
            uow, locks = lock_recording_uow(store)

            result = await use_case_class(uow).set_current_user(actor).execute(request)

            assert result.success is True, use_case_class.__name__
            assert locks == [("escrow", contract.id), ("user", locked_user_id)], use_case_class.__name__


class TestDisputes:
    """Test cases for disputes and their resolution."""

    @pytest.mark.asyncio
    async def test_dispute_blocks_release(self, uow_factory, parties):
        client, freelancer, contract = await parties()
        await hold(uow_factory, client, contract)

        disputed = await DisputeEscrowUseCase(uow_factory()).set_current_user(freelancer).execute(
            DisputeRequestDTO(contract_id=contract.id, reason="Work was not accepted")
        )
        blocked = await release(uow_factory, client, contract, 1_000)

        assert disputed.data.escrow.status == EscrowStatus.DISPUTED.value
        assert blocked.error_code == "BUSINESS_RULE_VIOLATION"

    @pytest.mark.asyncio
    async def test_outsider_cannot_dispute(self, uow_factory, parties):
        client, freelancer, contract = await parties()
        outsider = await create_user(uow_factory, "outsider")
        await hold(uow_factory, client, contract)

        result = await DisputeEscrowUseCase(uow_factory()).set_current_user(outsider).execute(
            DisputeRequestDTO(contract_id=contract.id)
        )

        assert result.error_code == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_resolve_requires_resolution_role(self, uow_factory, parties):
        client, freelancer, contract = await parties()
        resolver = await create_user(uow_factory, "resolver", role=UserRole.DISPUTE_RESOLUTION)
        await hold(uow_factory, client, contract)
        await DisputeEscrowUseCase(uow_factory()).set_current_user(client).execute(
            DisputeRequestDTO(contract_id=contract.id)
        )

        denied = await ResolveDisputeUseCase(uow_factory()).set_current_user(client).execute(
            ResolveDisputeRequestDTO(contract_id=contract.id)
        )
        resolved = await ResolveDisputeUseCase(uow_factory()).set_current_user(resolver).execute(
            ResolveDisputeRequestDTO(contract_id=contract.id)
        )

        assert denied.error_code == "FORBIDDEN"
        assert resolved.data.escrow.status == EscrowStatus.ACTIVE.value


class TestGetEscrow:
    """Test cases for viewing an escrow."""

    @pytest.mark.asyncio
    async def test_view_access(self, uow_factory, parties):
        client, freelancer, contract = await parties()
        support = await create_user(uow_factory, "support", role=UserRole.SUPPORT)
        outsider = await create_user(uow_factory, "outsider")
        await hold(uow_factory, client, contract)
        request = GetEscrowRequestDTO(contract_id=contract.id)

        for actor in (client, freelancer, support):
            result = await GetEscrowUseCase(uow_factory()).set_current_user(actor).execute(request)
            assert result.success is True
            assert result.data.amount == 30_000

        denied = await GetEscrowUseCase(uow_factory()).set_current_user(outsider).execute(request)
        assert denied.error_code == "FORBIDDEN"
