"""
Last-resort error handling for exceptions that escape the routers.

Domain exceptions raised outside a use case still map to their error
code's status; anything else is logged with its traceback and answered
with a generic 5xx body.
"""

import json
import logging
import traceback
from typing import Tuple

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from fastapi import status
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.application.dto.base_dto import ErrorDetailDTO, ErrorResponseDTO
from app.domain.models.base import DomainException
from app.infrastructure.web.routers.responses import status_for

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return self.handle_exception(request, exc)

    def handle_exception(self, request: Request, exc: Exception) -> JSONResponse:
        status_code, code, message = classify(exc)

        if status_code >= 500:
            logger.error(
                f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
                exc_info=exc
            )
        else:
            logger.info(f"{request.method} {request.url.path} failed with {code}: {message}")

        request_id = getattr(request.state, "request_id", None)
        body = ErrorResponseDTO(
            detail=ErrorDetailDTO(code=code, message=message),
            request_id=request_id
        )
        if settings.debug:
            body.debug = {
                "exception_type": type(exc).__name__,
                "traceback": traceback.format_exception(type(exc), exc, exc.__traceback__)
            }

        headers = {"X-Request-ID": request_id} if request_id else None
        return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True), headers=headers)


def classify(exc: Exception) -> Tuple[int, str, str]:
    """Status code, error code and client-safe message for an exception."""
    if isinstance(exc, DomainException):
        code = exc.code
        status_code = status_for(code)
        if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
            status_code = status.HTTP_400_BAD_REQUEST
        return status_code, code, exc.message
    if isinstance(exc, SQLAlchemyError):
        return (
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "STORAGE_UNAVAILABLE",
            "The storage backend could not complete the request"
        )
    if isinstance(exc, json.JSONDecodeError):
        return status.HTTP_400_BAD_REQUEST, "INVALID_JSON", "The request body contains invalid JSON"
    if isinstance(exc, TimeoutError):
        return status.HTTP_504_GATEWAY_TIMEOUT, "TIMEOUT", "The request took too long to process"
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "UNKNOWN_ERROR", "An unexpected error occurred"
