"""
Registers the notification handlers with the process-wide dispatcher.
"""

import logging
from typing import Optional

from app.domain.events.base import EventDispatcher, get_event_dispatcher
from .notification_handlers import LoggingNotificationHandler, ActivityRecorder

logger = logging.getLogger(__name__)

_initialized = False


def setup_event_handlers(dispatcher: Optional[EventDispatcher] = None) -> EventDispatcher:
    """Wire the log and activity handlers into `dispatcher` (the global one by default)."""
    dispatcher = dispatcher or get_event_dispatcher()

    dispatcher.register_global_handler(LoggingNotificationHandler())

    recorder = ActivityRecorder()
    for event_class in ActivityRecorder.HANDLED_EVENTS:
        dispatcher.register_handler(event_class, recorder)

    for event_type, handlers in dispatcher.get_registered_handlers().items():
        logger.debug(f"Event {event_type}: {', '.join(handlers)}")
    return dispatcher


def initialize_event_system() -> None:
    """Idempotent; the app lifespan calls this once per process start."""
    global _initialized
    if _initialized:
        logger.debug("Event handlers already registered")
        return
    setup_event_handlers()
    _initialized = True
    logger.info("Event system initialized")
