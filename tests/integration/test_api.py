"""
End-to-end API tests over the in-memory backend.
"""

import asyncio
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.config import settings
from app.domain.models.user import UserRole
from app.infrastructure.auth.password_hasher import BcryptPasswordHasher
from app.infrastructure.repositories.in_memory import InMemoryUnitOfWork
from app.infrastructure.repositories.provider import reset_memory_store
from tests.factories import TEST_PASSWORD, create_user, create_contract


API = settings.api_prefix


@pytest.fixture
def memory_store():
    return reset_memory_store()


@pytest.fixture
def client(memory_store):
    with TestClient(app) as test_client:
        yield test_client


def register(client, username, role="client"):
    response = client.post(f"{API}/auth/register", json={
        "email": f"{username}@example.com",
        "username": username,
        "password": TEST_PASSWORD,
        "fullName": username.title(),
        "role": role,
    })
    assert response.status_code == 201, response.text
    client.cookies.clear()
    body = response.json()
    return body["user"]["id"], {"session-token": body["session_token"]}


def seed_contract(store, client_id, freelancer_id):
    factory = lambda: InMemoryUnitOfWork(store)
    contract = asyncio.run(create_contract(
        factory, SimpleNamespace(id=client_id), SimpleNamespace(id=freelancer_id)
    ))
    return contract.id


def seed_staff(store, username, role):
    factory = lambda: InMemoryUnitOfWork(store)
    hashed = BcryptPasswordHasher(rounds=4).hash_password(TEST_PASSWORD)
    return asyncio.run(create_user(factory, username, role=role, password_hash=hashed))


class TestSystemEndpoints:

    def test_health(self, client):
        response = client.get(f"{API}/health")

        assert response.status_code == 200
        assert response.json()["dependencies"]["storage"] == "memory"
        assert response.json()["dependencies"]["identity_provider"] == "disabled"

    def test_unknown_path(self, client):
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "NOT_FOUND"
        assert "/nowhere" in response.json()["detail"]["message"]

    def test_request_id_is_echoed(self, client):
        response = client.get(f"{API}/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"
        assert "X-Process-Time" in response.headers


class TestAuthEndpoints:
    """Test cases for registration, login and logout."""

    def test_register_sets_session_cookie(self, client):
        response = client.post(f"{API}/auth/register", json={
            "email": "alice@example.com",
            "username": "alice",
            "password": TEST_PASSWORD,
            "fullName": "Alice",
            "role": "client",
        })

        assert response.status_code == 201
        assert response.json()["auth_provider"] == "local"
        assert "password_hash" not in response.json()["user"]
        assert client.cookies.get(settings.session_cookie_name) == response.json()["session_token"]

        me = client.get(f"{API}/auth/me")
        assert me.status_code == 200
        assert me.json()["username"] == "alice"

    def test_register_rejects_staff_role(self, client):
        response = client.post(f"{API}/auth/register", json={
            "email": "mallory@example.com",
            "username": "mallory",
            "password": TEST_PASSWORD,
            "fullName": "Mallory",
            "role": "admin",
        })

        assert response.status_code == 422

    @pytest.mark.parametrize("password", ["p" * 100, "é" * 40])
    def test_register_rejects_password_over_72_bytes(self, client, password):
        response = client.post(f"{API}/auth/register", json={
            "email": "long@example.com",
            "username": "long",
            "password": password,
            "fullName": "Long",
            "role": "client",
        })

        assert response.status_code == 422

    def test_login_and_logout(self, client):
        register(client, "alice")

        login = client.post(f"{API}/auth/login", json={"username": "alice", "password": TEST_PASSWORD})
        assert login.status_code == 200
        token = login.json()["session_token"]

        logout = client.post(f"{API}/auth/logout", headers={"session-token": token})
        assert logout.json()["details"] == {"session_revoked": True}

        client.cookies.clear()
        assert client.get(f"{API}/auth/me", headers={"session-token": token}).status_code == 401

    def test_wrong_password(self, client):
        register(client, "alice")

        response = client.post(f"{API}/auth/login", json={"identifier": "alice", "password": "bad-password"})

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "UNAUTHORIZED"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_requires_authentication(self, client):
        assert client.get(f"{API}/wallet/balance").status_code == 401
        assert client.get(f"{API}/activities").status_code == 401


class TestWalletEndpoints:
    """Test cases for balances, deposits and the ledger."""

    def test_deposit_withdraw_and_history(self, client):
        user_id, headers = register(client, "alice")

        deposit = client.post(f"{API}/wallet/deposit", json={"amount": 5_000}, headers=headers)
        withdraw = client.post(f"{API}/wallet/withdraw", json={"amount": 1_500}, headers=headers)
        balance = client.get(f"{API}/wallet/balance", headers=headers)
        history = client.get(f"{API}/wallet/transactions", params={"type": "withdrawal"}, headers=headers)

        assert deposit.status_code == 201
        assert withdraw.json()["balance"] == 3_500
        assert balance.json() == {"user_id": user_id, "balance": 3_500, "currency": settings.default_currency}
        assert history.json()["total"] == 1
        assert history.json()["items"][0]["amount"] == -1_500

    def test_insufficient_funds(self, client):
        _, headers = register(client, "alice")

        response = client.post(f"{API}/wallet/withdraw", json={"amount": 1}, headers=headers)

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INSUFFICIENT_FUNDS"

    def test_invalid_amount(self, client):
        _, headers = register(client, "alice")

        response = client.post(f"{API}/wallet/deposit", json={"amount": 0}, headers=headers)

        assert response.status_code == 422

    def test_external_deposit_callback(self, client):
        _, headers = register(client, "alice")
        initiated = client.post(f"{API}/wallet/pesapal/initiate", json={"amount": 2_000}, headers=headers)
        reference = initiated.json()["payment_reference"]
        notification = {
            "pesapalMerchantReference": reference,
            "pesapalTrackingId": "track-1",
            "pesapalNotification": "COMPLETED",
            "pesapalExtra": "ignored",
        }

        first = client.post(f"{API}/wallet/pesapal/callback", json=notification)
        second = client.post(f"{API}/wallet/pesapal/callback", json=notification)
        status_response = client.get(f"{API}/wallet/pesapal/status/{reference}", headers=headers)

        assert initiated.status_code == 201
        assert first.json()["status"] == "success"
        assert second.json()["status"] == "already_processed"
        assert status_response.json()["status"] == "completed"
        assert client.get(f"{API}/wallet/balance", headers=headers).json()["balance"] == 2_000

    def test_callback_unknown_reference(self, client):
        response = client.post(f"{API}/wallet/pesapal/callback", json={
            "pesapalMerchantReference": "pesapal-missing",
            "pesapalNotification": "COMPLETED",
        })

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "ENTITY_NOT_FOUND"

    def test_adjustment_requires_balance_admin(self, client, memory_store):
        user_id, headers = register(client, "alice")
        seed_staff(memory_store, "accounts", UserRole.ACCOUNTS)
        login = client.post(f"{API}/auth/login", json={"identifier": "accounts", "password": TEST_PASSWORD})
        staff_headers = {"session-token": login.json()["session_token"]}
        client.cookies.clear()
        body = {"user_id": user_id, "amount": 750, "reason": "goodwill credit"}

        denied = client.post(f"{API}/wallet/adjust", json=body, headers=headers)
        adjusted = client.post(f"{API}/wallet/adjust", json=body, headers=staff_headers)

        assert denied.status_code == 403
        assert adjusted.status_code == 201
        assert adjusted.json()["balance"] == 750


class TestEscrowEndpoints:
    """Test cases for the escrow lifecycle over HTTP."""

    def test_hold_release_and_reconcile(self, client, memory_store):
        client_id, client_headers = register(client, "buyer")
        freelancer_id, freelancer_headers = register(client, "maker", role="freelancer")
        contract_id = seed_contract(memory_store, client_id, freelancer_id)
        client.post(f"{API}/wallet/deposit", json={"amount": 60_000}, headers=client_headers)

        held = client.post(
            f"{API}/escrow/hold", json={"contractId": contract_id, "amount": 50_000}, headers=client_headers
        )
        forbidden = client.post(
            f"{API}/escrow/release", json={"contractId": contract_id, "amount": 10_000}, headers=freelancer_headers
        )
        released = client.post(
            f"{API}/escrow/release", json={"contractId": contract_id, "amount": 20_000}, headers=client_headers
        )
        escrow = client.get(f"{API}/escrow/{contract_id}", headers=freelancer_headers)
        report = client.get(f"{API}/wallet/reconcile/{client_id}", headers=client_headers)
        feed = client.get(f"{API}/activities", headers=freelancer_headers)

        assert held.status_code == 201
        assert held.json()["message"] == "Escrow account created"
        assert forbidden.status_code == 403
        assert released.status_code == 200
        assert escrow.json()["amount"] == 30_000
        assert report.json()["consistent"] is True
        assert report.json()["escrows"][0]["ledger_amount"] == 30_000
        assert [a["type"] for a in feed.json()] == ["escrow_released"]
        assert client.get(f"{API}/wallet/balance", headers=freelancer_headers).json()["balance"] == 20_000

    def test_create_alias(self, client, memory_store):
        client_id, client_headers = register(client, "buyer")
        freelancer_id, _ = register(client, "maker", role="freelancer")
        contract_id = seed_contract(memory_store, client_id, freelancer_id)
        client.post(f"{API}/wallet/deposit", json={"amount": 1_000}, headers=client_headers)

        response = client.post(
            f"{API}/escrow/create", json={"contractId": contract_id, "amount": 1_000}, headers=client_headers
        )

        assert response.status_code == 201

    def test_missing_escrow(self, client):
        _, headers = register(client, "buyer")

        response = client.get(f"{API}/escrow/999", headers=headers)

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "ENTITY_NOT_FOUND"

    def test_reconcile_other_user_forbidden(self, client):
        alice_id, _ = register(client, "alice")
        _, bob_headers = register(client, "bob")

        response = client.get(f"{API}/wallet/reconcile/{alice_id}", headers=bob_headers)

        assert response.status_code == 403
