"""
User repository implementation using SQLAlchemy.
"""

from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import func

from app.domain.models.user import User
from app.domain.repositories.user_repository import UserRepository
from app.domain.models.base import EntityNotFoundError, DuplicateEntityError
from app.infrastructure.db.models import UserModel
from app.infrastructure.mappers.user_mapper import UserMapper


class SQLAlchemyUserRepository(UserRepository):
    """SQLAlchemy implementation of user repository."""

    def __init__(self, session: Session):
        self.session = session
        self.mapper = UserMapper()

    def _check_unique(self, user: User) -> None:
        query = self.session.query(UserModel)
        if user.id is not None:
            query = query.filter(UserModel.id != user.id)

        if query.filter(UserModel.email == str(user.email)).first():
            raise DuplicateEntityError("User", "email", str(user.email))
        if query.filter(UserModel.username == user.username).first():
            raise DuplicateEntityError("User", "username", user.username)

    async def save(self, user: User) -> User:
        """Save a user entity."""
        self._check_unique(user)

        if user.is_new:
            model = self.mapper.domain_to_model(user)
            self.session.add(model)
            self.session.flush()
            user.id = model.id
        else:
            model = self.session.query(UserModel).filter_by(id=user.id).first()
            if not model:
                raise EntityNotFoundError("User", user.id)
            self.mapper.update_model(model, user)
            self.session.flush()

        return user

    async def find_by_id(self, user_id: int, for_update: bool = False) -> Optional[User]:
        """Get user by ID."""
        query = self.session.query(UserModel).filter_by(id=user_id)
        if for_update:
            query = query.with_for_update()

        model = query.first()
        if not model:
            return None

        return self.mapper.model_to_domain(model)

    async def find_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        model = self.session.query(UserModel).filter(
            func.lower(UserModel.email) == email.strip().lower()
        ).first()

        if not model:
            return None

        return self.mapper.model_to_domain(model)

    async def find_by_username(self, username: str) -> Optional[User]:
        model = self.session.query(UserModel).filter_by(username=username).first()

        if not model:
            return None

        return self.mapper.model_to_domain(model)

    async def find_all(self, limit: int = 10, offset: int = 0) -> List[User]:
        """Get all users with pagination."""
        models = (
            self.session.query(UserModel)
            .order_by(UserModel.id)
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [self.mapper.model_to_domain(model) for model in models]

    async def count(self) -> int:
        """Get total user count."""
        return self.session.query(func.count(UserModel.id)).scalar()
