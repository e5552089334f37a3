"""
Base classes for domain events and event handling.
Events are collected by the unit of work and published only after a
successful commit.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Dict, Any, List, Type, Union
from datetime import datetime
from dataclasses import dataclass, field
import uuid


logger = logging.getLogger(__name__)

EVENT_LOG_SIZE = 500


@dataclass
class DomainEvent(ABC):
    """Base class for all domain events."""

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()), kw_only=True)
    occurred_at: datetime = field(default_factory=datetime.utcnow, kw_only=True)
    event_type: str = field(init=False)
    version: int = field(default=1, kw_only=True)

    def __post_init__(self):
        self.event_type = self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "occurred_at": self.occurred_at.isoformat(),
            "version": self.version,
            "data": self._get_event_data()
        }

    @abstractmethod
    def _get_event_data(self) -> Dict[str, Any]:
        """Get event-specific data for serialization."""
        pass


class EventHandler(ABC):
    """Base class for event handlers."""

    @abstractmethod
    async def handle(self, event: DomainEvent) -> None:
        """Handle a domain event."""
        pass

    @abstractmethod
    def can_handle(self, event: DomainEvent) -> bool:
        """Check if this handler can process the given event."""
        pass


class EventDispatcher:
    """
    Dispatches committed domain events to registered handlers.

    Handlers run one after another in registration order, specific
    handlers before global ones. A failing handler is logged and never
    stops the others: by the time an event is dispatched the data it
    describes is already committed.
    """

    def __init__(self, log_size: int = EVENT_LOG_SIZE):
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []
        self._event_log: Deque[Dict[str, Any]] = deque(maxlen=log_size)

    def register_handler(
        self,
        event_type: Union[str, Type[DomainEvent]],
        handler: EventHandler
    ) -> None:
        """Register an event handler for an event class or event type name."""
        if not isinstance(event_type, str):
            event_type = event_type.__name__

        self._handlers.setdefault(event_type, []).append(handler)
        logger.info(f"Registered handler {handler.__class__.__name__} for {event_type}")

    def register_global_handler(self, handler: EventHandler) -> None:
        """Register a handler that is offered every event."""
        self._global_handlers.append(handler)
        logger.info(f"Registered global handler {handler.__class__.__name__}")

    async def dispatch(self, event: DomainEvent) -> int:
        """
        Dispatch an event.

        Returns:
            Number of handlers that processed the event successfully
        """
        self._event_log.append(event.to_dict())

        handlers = list(self._handlers.get(event.event_type, []))
        handlers.extend(h for h in self._global_handlers if h.can_handle(event))

        if not handlers:
            logger.debug(f"No handlers registered for event: {event.event_type}")
            return 0

        handled = 0
        for handler in handlers:
            if await self._safe_handle(handler, event):
                handled += 1

        logger.debug(f"Dispatched {event.event_type} ({event.event_id}) to {handled}/{len(handlers)} handler(s)")
        return handled

    async def _safe_handle(self, handler: EventHandler, event: DomainEvent) -> bool:
        try:
            await handler.handle(event)
            return True
        except Exception:
            logger.exception(
                f"Handler {handler.__class__.__name__} failed to process "
                f"{event.event_type} ({event.event_id})"
            )
            return False

    def get_event_log(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Most recent dispatched events first."""
        return list(reversed(self._event_log))[:limit]

    def get_registered_handlers(self) -> Dict[str, List[str]]:
        """Handler class names per event type, plus the global handlers."""
        result = {
            event_type: [h.__class__.__name__ for h in handlers]
            for event_type, handlers in self._handlers.items()
        }
        if self._global_handlers:
            result["global"] = [h.__class__.__name__ for h in self._global_handlers]
        return result


_event_dispatcher = None


def get_event_dispatcher() -> EventDispatcher:
    """Get the process-wide event dispatcher."""
    global _event_dispatcher
    if _event_dispatcher is None:
        _event_dispatcher = EventDispatcher()
    return _event_dispatcher


async def publish_event(event: DomainEvent) -> int:
    """Publish a domain event through the process-wide dispatcher."""
    return await get_event_dispatcher().dispatch(event)
