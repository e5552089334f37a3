"""
Unit tests for JWT access tokens.
"""

from jose import jwt

from app.domain.models.user import User, UserRole
from app.infrastructure.auth.jwt_handler import JWTHandler


def make_user():
    user = User(email="alice@example.com", username="alice", role=UserRole.CLIENT)
    user.id = 42
    return user


class TestJWTHandler:

    def setup_method(self):
        self.handler = JWTHandler(secret="unit-test-secret", algorithm="HS256", expire_minutes=15)

    def test_round_trip_claims(self):
        token = self.handler.create_access_token(make_user())

        payload = self.handler.verify_token(token)

        assert payload["sub"] == "42"
        assert payload["email"] == "alice@example.com"
        assert payload["role"] == "client"
        assert self.handler.get_user_id(f"Bearer {token}") == 42

    def test_rejects_wrong_secret(self):
        other = JWTHandler(secret="another-secret", algorithm="HS256", expire_minutes=15)
        token = other.create_access_token(make_user())

        assert self.handler.verify_token(token) is None
        assert self.handler.get_user_id(token) is None

    def test_rejects_expired_token(self):
        token = jwt.encode(
            {"sub": "42", "exp": 1_000_000, "iat": 999_000},
            "unit-test-secret",
            algorithm="HS256"
        )

        assert self.handler.verify_token(token) is None

    def test_rejects_token_without_subject(self):
        token = jwt.encode({"exp": 4_000_000_000}, "unit-test-secret", algorithm="HS256")

        assert self.handler.verify_token(token) is None

    def test_non_numeric_subject(self):
        token = jwt.encode({"sub": "abc", "exp": 4_000_000_000}, "unit-test-secret", algorithm="HS256")

        assert self.handler.get_user_id(token) is None

    def test_garbage(self):
        assert self.handler.verify_token("not.a.token") is None
