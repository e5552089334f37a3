"""
Infrastructure event handlers.
Handles domain events and records activities and notifications.
"""

from .notification_handlers import LoggingNotificationHandler, ActivityRecorder
from .event_setup import setup_event_handlers, initialize_event_system

__all__ = [
    "LoggingNotificationHandler",
    "ActivityRecorder",
    "setup_event_handlers",
    "initialize_event_system"
]
