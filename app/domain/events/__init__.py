"""
Domain events for the application.
Event-driven architecture components for activity tracking and notifications.
"""

from .base import DomainEvent, EventHandler, EventDispatcher, get_event_dispatcher, publish_event
from .wallet_events import FundsDeposited, FundsWithdrawn, WalletAdjusted
from .escrow_events import (
    EscrowFunded,
    EscrowReleased,
    EscrowRefunded,
    EscrowDisputed,
    EscrowDisputeResolved
)
from .auth_events import UserRegistered, UserLoggedIn

__all__ = [
    "DomainEvent",
    "EventHandler",
    "EventDispatcher",
    "get_event_dispatcher",
    "publish_event",
    "FundsDeposited",
    "FundsWithdrawn",
    "WalletAdjusted",
    "EscrowFunded",
    "EscrowReleased",
    "EscrowRefunded",
    "EscrowDisputed",
    "EscrowDisputeResolved",
    "UserRegistered",
    "UserLoggedIn"
]
