"""
Authentication router for user authentication endpoints.
Handles registration, hybrid login, logout and the current profile.
"""

from datetime import timedelta
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, Request, Response, status

from app.config import get_settings
from app.domain.models.user import User
from app.domain.repositories.unit_of_work import UnitOfWork
from app.domain.services.auth_service import PasswordHasher, TokenService, IdentityProvider
from app.infrastructure.auth import (
    get_current_user,
    get_request_context,
    get_session_token,
    get_token_service,
    get_password_hasher,
    get_identity_provider,
    get_session_lifetime
)
from app.infrastructure.rate_limiting import auth_rate_limit
from app.infrastructure.repositories.provider import get_unit_of_work
from app.application.use_cases.auth_use_cases import (
    RegisterUserUseCase,
    LoginUseCase,
    LogoutUseCase
)
from app.application.dto.auth_dto import (
    RegisterRequestDTO,
    LoginRequestDTO,
    RequestContextDTO,
    UserResponseDTO,
    AuthResponseDTO
)
from app.application.dto.base_dto import MessageResponseDTO
from .responses import unwrap


router = APIRouter()


def _set_session_cookie(response: Response, auth: AuthResponseDTO, lifetime: timedelta) -> None:
    if not auth.session_token:
        return
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=auth.session_token,
        max_age=int(lifetime.total_seconds()),
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax"
    )


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=AuthResponseDTO)
async def register(
    request: RegisterRequestDTO,
    response: Response,
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    password_hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    identity_provider: Annotated[IdentityProvider, Depends(get_identity_provider)],
    context: Annotated[RequestContextDTO, Depends(get_request_context)],
    session_lifetime: Annotated[timedelta, Depends(get_session_lifetime)],
    _: None = Depends(auth_rate_limit)
):
    """
    Register a new user account and start a session.

    - **email**: Valid email address
    - **username**: Unique handle
    - **password**: Password with at least 8 characters
    - **fullName**: User's full name
    - **role**: client or freelancer
    """
    use_case = RegisterUserUseCase(
        uow, password_hasher, identity_provider,
        context=context, session_lifetime=session_lifetime
    )
    auth = unwrap(await use_case.execute(request))
    _set_session_cookie(response, auth, session_lifetime)
    return auth


@router.post("/login", response_model=AuthResponseDTO)
async def login(
    request: LoginRequestDTO,
    response: Response,
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    password_hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
    identity_provider: Annotated[IdentityProvider, Depends(get_identity_provider)],
    context: Annotated[RequestContextDTO, Depends(get_request_context)],
    session_lifetime: Annotated[timedelta, Depends(get_session_lifetime)],
    _: None = Depends(auth_rate_limit)
):
    """
    Authenticate with email or username.

    Local accounts receive a session token (also set as the session
    cookie); accounts verified by the external provider receive a
    bearer access token.
    """
    use_case = LoginUseCase(
        uow, password_hasher, token_service, identity_provider,
        context=context, session_lifetime=session_lifetime
    )
    auth = unwrap(await use_case.execute(request))
    _set_session_cookie(response, auth, session_lifetime)
    return auth


@router.post("/logout", response_model=MessageResponseDTO)
async def logout(
    http_request: Request,
    response: Response,
    current_user: Annotated[User, Depends(get_current_user)],
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)]
):
    """Revoke the presented session token and clear the session cookie."""
    token: Optional[str] = get_session_token(http_request)
    revoked = False
    if token:
        revoked = unwrap(await LogoutUseCase(uow).execute(token))

    response.delete_cookie(get_settings().session_cookie_name)
    return MessageResponseDTO(
        message="Logged out successfully",
        details={"session_revoked": revoked}
    )


@router.get("/me", response_model=UserResponseDTO)
async def get_current_user_profile(
    current_user: Annotated[User, Depends(get_current_user)]
):
    """Profile of the authenticated user."""
    return UserResponseDTO.from_entity(current_user)
