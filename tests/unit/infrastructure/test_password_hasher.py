"""
Unit tests for the bcrypt password hasher.
"""

import pytest

from app.domain.models.base import ValidationError
from app.infrastructure.auth.password_hasher import BcryptPasswordHasher


class TestBcryptPasswordHasher:

    def test_hash_and_verify(self, hasher):
        hashed = hasher.hash_password("s3cret-pass")

        assert hashed.startswith("$2")
        assert hasher.verify_password("s3cret-pass", hashed) is True
        assert hasher.verify_password("wrong", hashed) is False
        assert hasher.needs_rehash(hashed) is False

    def test_hashes_are_salted(self, hasher):
        assert hasher.hash_password("same") != hasher.hash_password("same")

    def test_legacy_sha256(self, hasher):
        """Test digests stored before bcrypt still verify."""
        legacy = BcryptPasswordHasher.legacy_hash("old-password")

        assert len(legacy) == 64
        assert hasher.verify_password("old-password", legacy) is True
        assert hasher.verify_password("other", legacy) is False
        assert hasher.needs_rehash(legacy) is True

    def test_empty_or_unknown_hash(self, hasher):
        assert hasher.verify_password("anything", "") is False
        assert hasher.verify_password("anything", "not-a-hash") is False

    def test_hashes_up_to_72_bytes(self, hasher):
        hashed = hasher.hash_password("p" * 72)

        assert hasher.verify_password("p" * 72, hashed) is True

    @pytest.mark.parametrize("password", ["p" * 73, "p" * 100, "é" * 40])
    def test_rejects_passwords_over_72_bytes(self, hasher, password):
        with pytest.raises(ValidationError) as exc_info:
            hasher.hash_password(password)

        assert exc_info.value.code == "VALIDATION_ERROR"

    def test_long_password_never_verifies(self, hasher):
        """Test bcrypt does not match on the 72-byte prefix."""
        hashed = hasher.hash_password("p" * 72)

        assert hasher.verify_password("p" * 100, hashed) is False
        assert hasher.verify_password("é" * 40, hashed) is False
