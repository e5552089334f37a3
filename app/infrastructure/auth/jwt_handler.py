"""
JWT token handler.
Issues and validates HS256 access tokens for externally authenticated users.
"""

import logging
from typing import Optional, Dict, Any
from datetime import datetime, timedelta
from jose import JWTError, jwt

from app.config import get_settings
from app.domain.models.user import User
from app.domain.services.auth_service import TokenService

logger = logging.getLogger(__name__)


class JWTHandler(TokenService):
    """Handles JWT token creation and validation."""

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        expire_minutes: Optional[int] = None
    ):
        settings = get_settings()
        self.jwt_secret = secret or settings.jwt_secret_key
        self.jwt_algorithm = algorithm or settings.jwt_algorithm
        self.expire_minutes = expire_minutes or settings.jwt_access_token_expire_minutes

    def create_access_token(self, user: User, expires_minutes: Optional[int] = None) -> str:
        """
        Create a signed access token for a user.

        Args:
            user: Authenticated user
            expires_minutes: Override for the configured lifetime

        Returns:
            JWT token string
        """
        now = datetime.utcnow()
        expire = now + timedelta(minutes=expires_minutes or self.expire_minutes)

        payload = {
            "sub": str(user.id),
            "email": str(user.email),
            "role": user.role.value,
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
        }

        return jwt.encode(payload, self.jwt_secret, algorithm=self.jwt_algorithm)

    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Verify and decode a JWT token.

        Args:
            token: JWT token string, optionally prefixed with 'Bearer '

        Returns:
            Token payload, or None if the token is invalid or expired
        """
        if token.startswith('Bearer '):
            token = token[7:]

        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=[self.jwt_algorithm],
                options={"verify_exp": True, "verify_aud": False}
            )
        except JWTError as e:
            logger.debug(f"Rejected JWT: {str(e)}")
            return None

        if 'sub' not in payload or 'exp' not in payload:
            logger.debug("Rejected JWT without sub or exp claim")
            return None

        return payload

    def get_user_id(self, token: str) -> Optional[int]:
        """Extract the numeric user ID, or None when the token is unusable."""
        payload = self.verify_token(token)
        if payload is None:
            return None
        try:
            return int(payload['sub'])
        except (TypeError, ValueError):
            return None
