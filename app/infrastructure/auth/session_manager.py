"""
Request authentication for hybrid sessions.
Resolves a user from either a signed JWT or an opaque session token.
"""

import logging
from typing import Callable, Optional

from app.domain.models.user import User
from app.domain.repositories.unit_of_work import UnitOfWork
from app.domain.services.auth_service import TokenService

logger = logging.getLogger(__name__)


class SessionManager:
    """Looks up the user behind a bearer token or a session token."""

    def __init__(self, uow_factory: Callable[[], UnitOfWork], token_service: TokenService):
        self.uow_factory = uow_factory
        self.token_service = token_service

    async def user_from_access_token(self, token: str) -> Optional[User]:
        payload = self.token_service.verify_token(token)
        if payload is None:
            return None

        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            logger.warning("Access token carries a non-numeric subject")
            return None

        async with self.uow_factory() as uow:
            user = await uow.users.find_by_id(user_id)

        if user is None or not user.active:
            return None
        return user

    async def user_from_session_token(self, token: str) -> Optional[User]:
        """
        Validate a session token.
        Expired sessions are deleted; valid ones get their activity bumped.
        """
        async with self.uow_factory() as uow:
            session = await uow.sessions.find_by_token(token)
            if session is None:
                return None

            if session.is_expired():
                await uow.sessions.delete(token)
                await uow.commit()
                logger.info(f"Removed expired session of user {session.user_id}")
                return None

            session.touch()
            await uow.sessions.touch(session)
            user = await uow.users.find_by_id(session.user_id)
            await uow.commit()

        if user is None or not user.active:
            return None
        return user
