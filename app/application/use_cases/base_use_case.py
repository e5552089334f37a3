"""
Use case base classes: result wrapping, authorization hooks and the
commit-then-publish cycle of write operations.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, TypeVar, Generic, List
from dataclasses import dataclass
import time

from app.domain.events.base import DomainEvent, publish_event
from app.domain.models.base import (
    DomainException,
    ValidationError,
    AuthenticationError,
    AuthorizationError
)
from app.domain.models.user import User, UserRole
from app.domain.repositories.unit_of_work import UnitOfWork


logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


@dataclass
class UseCaseResult(Generic[T]):
    """
    Outcome of a use case. Routers turn a failed result into an HTTP error
    through its error_code (see routers/responses.py).
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def ok(cls, data: T) -> "UseCaseResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, error: str, error_code: str) -> "UseCaseResult[T]":
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def from_exception(cls, exc: Exception) -> "UseCaseResult[T]":
        if isinstance(exc, DomainException):
            return cls.failed(exc.message, exc.code)

        logger.exception("Unexpected error in use case")
        return cls.failed("An unexpected error occurred", "UNKNOWN_ERROR")


class BaseUseCase(ABC, Generic[T, R]):
    """
    Validates the request, runs the business logic and folds any failure
    into a UseCaseResult. Domain exceptions become their error code;
    anything else is logged and reported as UNKNOWN_ERROR.
    """

    async def execute(self, request: T) -> UseCaseResult[R]:
        started = time.perf_counter()
        try:
            await self._validate_request(request)
            data = await self._execute_business_logic(request)
            result = UseCaseResult.ok(data)
        except Exception as exc:
            if isinstance(exc, DomainException):
                logger.info(f"{type(self).__name__} rejected: {exc.code} {exc.message}")
            result = UseCaseResult.from_exception(exc)

        result.metadata = {
            "use_case": type(self).__name__,
            "duration_ms": round((time.perf_counter() - started) * 1000, 3)
        }
        return result

    async def _validate_request(self, request: T) -> None:
        """Hook for request checks that need no storage access."""
        pass

    @abstractmethod
    async def _execute_business_logic(self, request: T) -> R:
        pass


class AuthorizedUseCase(BaseUseCase[T, R]):
    """
    Base for use cases acting on behalf of an authenticated user.
    """

    def __init__(self):
        self.current_user: Optional[User] = None

    def set_current_user(self, user: User) -> "AuthorizedUseCase[T, R]":
        """Set the current user context."""
        self.current_user = user
        return self

    async def _validate_request(self, request: T) -> None:
        """Validate request with authorization check."""
        await super()._validate_request(request)

        if self.current_user is None:
            raise AuthenticationError("User authentication required")

        await self._check_authorization(request)

    async def _check_authorization(self, request: T) -> None:
        """Check if the current user is authorized. Override in subclasses."""
        pass

    def _require_role(self, *roles: UserRole) -> None:
        """Check if user has one of the required roles."""
        if not self.current_user.has_role(*roles):
            allowed = ", ".join(role.value for role in roles)
            raise AuthorizationError(f"One of the roles [{allowed}] is required")

    def _require_self_or_role(self, user_id: int, *roles: UserRole) -> None:
        """Check if user acts on their own account or has a required role."""
        if self.current_user.id != user_id and not self.current_user.has_role(*roles):
            raise AuthorizationError("Insufficient permissions")


class QueryUseCase(AuthorizedUseCase[T, R]):
    """
    Base class for query use cases (read operations).
    Runs inside a unit of work that is never committed.
    """

    def __init__(self, uow: UnitOfWork):
        super().__init__()
        self.uow = uow

    async def _execute_business_logic(self, request: T) -> R:
        async with self.uow:
            return await self._execute_query_logic(request)

    @abstractmethod
    async def _execute_query_logic(self, request: T) -> R:
        pass


class CommandUseCase(BaseUseCase[T, R]):
    """
    Base class for command use cases (write operations).
    The command logic runs inside a unit of work; the unit of work is
    committed when the logic returns and domain events are published
    after the commit.
    """

    def __init__(self, uow: UnitOfWork):
        super().__init__()
        self.uow = uow

    async def _execute_business_logic(self, request: T) -> R:
        await self._prepare(request)
        async with self.uow:
            result = await self._execute_command_logic(request)
            await self.uow.commit()
            events = list(self.uow.committed_events)

        await self._publish_events(events)
        return result

    async def _prepare(self, request: T) -> None:
        """
        Runs before the unit of work is entered. Slow work such as
        password hashing or remote calls belongs here so that no row
        locks are held while it runs.
        """
        pass

    @abstractmethod
    async def _execute_command_logic(self, request: T) -> R:
        """Execute the command logic. Must be implemented by subclasses."""
        pass

    async def _publish_events(self, events: List[DomainEvent]) -> None:
        """Publish collected domain events."""
        for event in events:
            try:
                await publish_event(event)
            except Exception:
                # The unit of work is already committed at this point
                logger.exception(f"Failed to publish {event.event_type}")


class AuthorizedCommandUseCase(CommandUseCase[T, R], AuthorizedUseCase[T, R]):
    """Command executed on behalf of an authenticated user."""
    pass


class PaginatedQueryUseCase(QueryUseCase[T, R]):
    """
    Base class for paginated query use cases.
    """

    def __init__(self, uow: UnitOfWork, default_page_size: int = 10, max_page_size: int = 100):
        super().__init__(uow)
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    async def _validate_request(self, request: T) -> None:
        """Validate paginated request."""
        await super()._validate_request(request)

        if hasattr(request, 'limit'):
            if request.limit > self.max_page_size:
                raise ValidationError(f"Limit cannot exceed {self.max_page_size}", "limit")
            if request.limit < 1:
                raise ValidationError("Limit must be positive", "limit")
        if hasattr(request, 'offset') and request.offset < 0:
            raise ValidationError("Offset cannot be negative", "offset")
