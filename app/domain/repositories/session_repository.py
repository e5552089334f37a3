"""
Session and audit repository interfaces used by hybrid authentication.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from app.domain.models.session import UserSession
from app.domain.models.activity import Activity, AuditLogEntry


class SessionRepository(ABC):

    @abstractmethod
    async def add(self, session: UserSession) -> UserSession:
        pass

    @abstractmethod
    async def find_by_token(self, token: str) -> Optional[UserSession]:
        pass

    @abstractmethod
    async def touch(self, session: UserSession) -> None:
        """Persist last_activity."""
        pass

    @abstractmethod
    async def delete(self, token: str) -> bool:
        pass

    @abstractmethod
    async def delete_for_user(self, user_id: int) -> int:
        pass


class ActivityRepository(ABC):

    @abstractmethod
    async def add(self, activity: Activity) -> Activity:
        pass

    @abstractmethod
    async def find_by_user(self, user_id: int, limit: int = 10) -> List[Activity]:
        """Newest first."""
        pass


class AuditLogRepository(ABC):

    @abstractmethod
    async def add(self, entry: AuditLogEntry) -> AuditLogEntry:
        pass

    @abstractmethod
    async def find_by_user(self, user_id: int, limit: int = 50) -> List[AuditLogEntry]:
        pass
