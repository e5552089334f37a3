"""
Event handlers for wallet and escrow notifications.
Turns committed domain events into activity feed rows and log lines.
"""

import logging
from typing import Callable, Dict, Any, Optional, Tuple

from app.domain.events.base import EventHandler, DomainEvent
from app.domain.events.wallet_events import FundsDeposited, FundsWithdrawn, WalletAdjusted
from app.domain.events.escrow_events import (
    EscrowFunded,
    EscrowReleased,
    EscrowRefunded,
    EscrowDisputed,
)
from app.domain.models.activity import Activity, ActivityType
from app.domain.repositories.unit_of_work import UnitOfWork
from app.infrastructure.repositories.provider import get_unit_of_work


logger = logging.getLogger(__name__)


class LoggingNotificationHandler(EventHandler):
    """Logs every event that goes through the dispatcher."""

    def can_handle(self, event: DomainEvent) -> bool:
        return True

    async def handle(self, event: DomainEvent) -> None:
        logger.info(f"Notification: {event.event_type} (ID: {event.event_id}) {event._get_event_data()}")


class ActivityRecorder(EventHandler):
    """
    Records activity feed entries for balance-affecting events.

    Runs in its own unit of work, after the command that raised the
    event has committed.
    """

    HANDLED_EVENTS = (
        FundsDeposited,
        FundsWithdrawn,
        WalletAdjusted,
        EscrowFunded,
        EscrowReleased,
        EscrowRefunded,
        EscrowDisputed,
    )

    def __init__(self, uow_factory: Callable[[], UnitOfWork] = get_unit_of_work):
        self.uow_factory = uow_factory

    def can_handle(self, event: DomainEvent) -> bool:
        return isinstance(event, self.HANDLED_EVENTS)

    async def handle(self, event: DomainEvent) -> None:
        entry = self.activity_for(event)
        if entry is None:
            return

        user_id, activity_type, metadata = entry
        async with self.uow_factory() as uow:
            await uow.activities.add(
                Activity(user_id=user_id, type=activity_type, metadata=metadata)
            )
            await uow.commit()

        logger.debug(f"Recorded {activity_type.value} activity for user {user_id}")

    @staticmethod
    def activity_for(event: DomainEvent) -> Optional[Tuple[int, ActivityType, Dict[str, Any]]]:
        """Map an event to (user_id, activity type, metadata)."""
        data = event._get_event_data()

        if isinstance(event, FundsDeposited):
            return event.user_id, ActivityType.WALLET_DEPOSIT, data
        if isinstance(event, FundsWithdrawn):
            return event.user_id, ActivityType.WALLET_WITHDRAWAL, data
        if isinstance(event, WalletAdjusted):
            return event.user_id, ActivityType.WALLET_ADJUSTED, data
        if isinstance(event, EscrowFunded):
            return event.client_id, ActivityType.ESCROW_CREATED, data
        if isinstance(event, EscrowReleased):
            return event.freelancer_id, ActivityType.ESCROW_RELEASED, data
        if isinstance(event, EscrowRefunded):
            return event.client_id, ActivityType.ESCROW_REFUNDED, data
        if isinstance(event, EscrowDisputed):
            return event.raised_by, ActivityType.ESCROW_DISPUTED, data
        return None
