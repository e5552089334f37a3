"""
User repository interface.
Defines the contract for user data persistence operations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from app.domain.models.user import User


class UserRepository(ABC):
    """Repository interface for the User aggregate."""

    @abstractmethod
    async def save(self, user: User) -> User:
        """
        Save a user entity.
        Assigns an ID to new users and raises DuplicateEntityError on
        email or username clashes.
        """
        pass

    @abstractmethod
    async def find_by_id(self, user_id: int, for_update: bool = False) -> Optional[User]:
        """
        Find a user by ID.
        for_update locks the row until the surrounding unit of work ends.
        """
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def find_by_username(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    async def find_all(self, limit: int = 10, offset: int = 0) -> List[User]:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass
