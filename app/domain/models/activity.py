"""
Activity feed and audit log entries.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from enum import Enum

from app.domain.models.base import BaseEntity, ValidationError


class ActivityType(str, Enum):
    WALLET_DEPOSIT = "wallet_deposit"
    WALLET_WITHDRAWAL = "wallet_withdrawal"
    WALLET_ADJUSTED = "wallet_adjusted"
    ESCROW_CREATED = "escrow_created"
    ESCROW_RELEASED = "escrow_released"
    ESCROW_REFUNDED = "escrow_refunded"
    ESCROW_DISPUTED = "escrow_disputed"


@dataclass
class Activity(BaseEntity):
    """User-facing record of something that happened to an account."""

    user_id: Optional[int] = None
    type: ActivityType = ActivityType.WALLET_DEPOSIT
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        super().__post_init__()
        if not isinstance(self.type, ActivityType):
            self.type = ActivityType(self.type)
        if self.user_id is None:
            raise ValidationError("Activity must belong to a user", "user_id")


@dataclass
class AuditLogEntry(BaseEntity):
    """Security audit trail row."""

    user_id: Optional[int] = None
    action: str = ""
    resource: str = ""
    resource_id: Optional[str] = None
    detail: Dict[str, Any] = field(default_factory=dict)
    ip_address: str = ""
    user_agent: str = ""

    def __post_init__(self):
        super().__post_init__()
        if not self.action or not self.resource:
            raise ValidationError("Audit entries need an action and a resource")
