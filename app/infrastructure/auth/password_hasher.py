"""
Password hashing with bcrypt.
Accounts created before bcrypt was adopted store an unsalted SHA-256 hex
digest; those still verify and are flagged for rehashing.
"""

import hashlib
import hmac
import logging
import re

import bcrypt

from app.domain.models.base import ValidationError
from app.domain.services.auth_service import PasswordHasher, PASSWORD_MAX_BYTES

logger = logging.getLogger(__name__)

LEGACY_SHA256_PATTERN = re.compile(r'^[0-9a-f]{64}$')


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > PASSWORD_MAX_BYTES


class BcryptPasswordHasher(PasswordHasher):
    """bcrypt hasher with legacy SHA-256 verification."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash_password(self, password: str) -> str:
        if password_too_long(password):
            raise ValidationError(
                f"Password must be at most {PASSWORD_MAX_BYTES} bytes", field="password"
            )
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds))
        return hashed.decode("utf-8")

    def verify_password(self, password: str, hashed_password: str) -> bool:
        if not hashed_password:
            return False

        if self.is_legacy_hash(hashed_password):
            digest = hashlib.sha256(password.encode("utf-8")).hexdigest()
            return hmac.compare_digest(digest, hashed_password)

        # No bcrypt hash was ever created from such a password
        if password_too_long(password):
            return False

        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password hash has an unknown format")
            return False

    def needs_rehash(self, hashed_password: str) -> bool:
        return self.is_legacy_hash(hashed_password)

    @staticmethod
    def is_legacy_hash(hashed_password: str) -> bool:
        return bool(LEGACY_SHA256_PATTERN.match(hashed_password or ""))

    @staticmethod
    def legacy_hash(password: str) -> str:
        """SHA-256 digest in the legacy storage format."""
        return hashlib.sha256(password.encode("utf-8")).hexdigest()
