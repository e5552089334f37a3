"""
Unit tests for the last-resort error middleware.
"""

import json

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.domain.models.base import (
    InsufficientFundsError,
    EntityNotFoundError,
    DomainException
)
from app.infrastructure.web.middleware.error_handler import ErrorHandlerMiddleware, classify


class TestClassify:

    def test_domain_errors_use_their_code(self):
        assert classify(InsufficientFundsError(1, 500, 100))[:2] == (400, "INSUFFICIENT_FUNDS")
        assert classify(EntityNotFoundError("Escrow", 7))[:2] == (404, "ENTITY_NOT_FOUND")

    def test_unknown_domain_code_is_a_client_error(self):
        assert classify(DomainException("nope", "SOMETHING_ELSE"))[:2] == (400, "SOMETHING_ELSE")

    def test_storage_errors_are_unavailable(self):
        exc = OperationalError("SELECT 1", {}, Exception("db down"))

        assert classify(exc)[:2] == (503, "STORAGE_UNAVAILABLE")

    def test_invalid_json(self):
        try:
            json.loads("{")
        except json.JSONDecodeError as exc:
            assert classify(exc)[1] == "INVALID_JSON"

    def test_unexpected_errors_hide_details(self):
        status_code, code, message = classify(RuntimeError("secret internals"))

        assert (status_code, code) == (500, "UNKNOWN_ERROR")
        assert "secret" not in message


class TestErrorHandlerMiddleware:

    def build_client(self):
        app = FastAPI()
        app.add_middleware(ErrorHandlerMiddleware)

        @app.get("/boom")
        async def boom():
            raise RuntimeError("kaput")

        @app.get("/missing")
        async def missing():
            raise EntityNotFoundError("Contract", 42)

        return TestClient(app, raise_server_exceptions=False)

    def test_unexpected_exception_returns_500(self):
        response = self.build_client().get("/boom")

        assert response.status_code == 500
        assert response.json()["detail"]["code"] == "UNKNOWN_ERROR"

    def test_domain_exception_keeps_code(self):
        response = self.build_client().get("/missing")

        assert response.status_code == 404
        assert response.json()["detail"] == {
            "code": "ENTITY_NOT_FOUND",
            "message": "Contract with id 42 not found"
        }
