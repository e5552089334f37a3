"""
Translation of use case results into HTTP responses.
"""

from typing import Any, Dict

from fastapi import HTTPException, status

from app.application.use_cases.base_use_case import UseCaseResult


ERROR_STATUS_CODES: Dict[str, int] = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "BUSINESS_RULE_VIOLATION": status.HTTP_400_BAD_REQUEST,
    "INSUFFICIENT_FUNDS": status.HTTP_400_BAD_REQUEST,
    "UNAUTHORIZED": status.HTTP_401_UNAUTHORIZED,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "ENTITY_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "DUPLICATE_ENTITY": status.HTTP_409_CONFLICT,
}


def status_for(error_code: str) -> int:
    return ERROR_STATUS_CODES.get(error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def unwrap(result: UseCaseResult) -> Any:
    """
    Return the result data or raise the matching HTTPException.

    Raises:
        HTTPException: When the use case failed
    """
    if result.success:
        return result.data

    error_code = result.error_code or "UNKNOWN_ERROR"
    status_code = status_for(error_code)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    raise HTTPException(
        status_code=status_code,
        detail={"code": error_code, "message": result.error},
        headers=headers
    )
