"""
Base DTOs for the application layer.
Request DTOs reject unknown fields; responses serialize enums as values.
"""

from typing import Any, Dict, Optional
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict


class BaseDTO(BaseModel):

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        validate_assignment=True,
        extra="forbid",
    )


class RequestDTO(BaseDTO):
    pass


class ResponseDTO(BaseDTO):
    """Response carrying the identity and timestamps of a stored record."""

    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MessageResponseDTO(BaseDTO):
    message: str
    details: Optional[Dict[str, Any]] = None


class HealthCheckResponseDTO(BaseDTO):
    status: str = Field(description="Service status")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    environment: Optional[str] = None
    version: Optional[str] = None
    dependencies: Optional[Dict[str, str]] = Field(
        default=None, description="Storage backend and identity provider state"
    )


class ErrorDetailDTO(BaseDTO):
    code: str = Field(description="Stable error code, e.g. INSUFFICIENT_FUNDS")
    message: str


class ErrorResponseDTO(BaseDTO):
    """Body of every error answered by the API."""

    detail: ErrorDetailDTO
    request_id: Optional[str] = None
    debug: Optional[Dict[str, Any]] = None
