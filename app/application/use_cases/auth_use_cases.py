"""
Hybrid authentication use cases.

Local credentials are checked first and produce an opaque server-side
session. When they fail and an external identity provider is
configured, the provider is tried and a signed JWT is issued instead.
"""

import logging
import re
import secrets
from datetime import timedelta
from typing import Optional, List

from app.domain.events import UserRegistered, UserLoggedIn
from app.domain.models.base import AuthenticationError, DuplicateEntityError
from app.domain.models.user import User, UserRole, SELF_SERVICE_ROLES
from app.domain.models.session import UserSession
from app.domain.models.activity import Activity, AuditLogEntry
from app.domain.repositories.unit_of_work import UnitOfWork
from app.domain.services.auth_service import (
    PasswordHasher,
    TokenService,
    IdentityProvider,
    ExternalIdentity,
    PASSWORD_MAX_BYTES
)
from app.application.dto.auth_dto import (
    RegisterRequestDTO,
    LoginRequestDTO,
    RequestContextDTO,
    UserResponseDTO,
    AuthResponseDTO
)
from .base_use_case import CommandUseCase, QueryUseCase

logger = logging.getLogger(__name__)

AUTH_PROVIDER_LOCAL = "local"
AUTH_PROVIDER_EXTERNAL = "external"

_USERNAME_STRIP = re.compile(r'[^A-Za-z0-9_.\-]')


class AuthUseCaseMixin:
    """Session issuing and audit logging shared by register and login."""

    uow: UnitOfWork
    context: RequestContextDTO
    session_lifetime: timedelta

    async def _start_session(self, user: User) -> UserSession:
        session = UserSession.start(
            user.id,
            self.session_lifetime,
            user_agent=self.context.user_agent,
            ip_address=self.context.ip_address
        )
        return await self.uow.sessions.add(session)

    async def _audit(self, user: User, action: str, **detail) -> None:
        await self.uow.audit_logs.add(AuditLogEntry(
            user_id=user.id,
            action=action,
            resource="auth",
            resource_id=str(user.id),
            detail=detail,
            ip_address=self.context.ip_address,
            user_agent=self.context.user_agent
        ))


class RegisterUserUseCase(AuthUseCaseMixin, CommandUseCase[RegisterRequestDTO, AuthResponseDTO]):
    """
    Create a local account and sign it in.
    Hashing and the provider sign-up run before the unit of work opens;
    uniqueness is checked again inside it.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        password_hasher: PasswordHasher,
        identity_provider: IdentityProvider,
        context: Optional[RequestContextDTO] = None,
        session_lifetime: timedelta = timedelta(hours=24)
    ):
        super().__init__(uow)
        self.password_hasher = password_hasher
        self.identity_provider = identity_provider
        self.context = context or RequestContextDTO()
        self.session_lifetime = session_lifetime
        self._password_hash: Optional[str] = None
        self._identity: Optional[ExternalIdentity] = None

    async def _ensure_available(self, email: str, username: str) -> None:
        if await self.uow.users.find_by_email(email):
            raise DuplicateEntityError("User", "email", email)
        if await self.uow.users.find_by_username(username):
            raise DuplicateEntityError("User", "username", username)

    async def _prepare(self, request: RegisterRequestDTO) -> None:
        email = str(request.email).strip().lower()
        async with self.uow:
            await self._ensure_available(email, request.username)

        self._password_hash = self.password_hasher.hash_password(request.password)

        if self.identity_provider.enabled:
            self._identity = await self.identity_provider.sign_up(
                email,
                request.password,
                metadata={"username": request.username, "full_name": request.full_name, "role": UserRole(request.role).value}
            )
            if self._identity is None:
                logger.warning(f"External provider did not register {email}; account is local only")

    async def _execute_command_logic(self, request: RegisterRequestDTO) -> AuthResponseDTO:
        email = str(request.email).strip().lower()
        await self._ensure_available(email, request.username)

        role = UserRole(request.role)
        user = User(
            email=email,
            username=request.username,
            password_hash=self._password_hash,
            full_name=request.full_name,
            role=role,
            external_id=self._identity.external_id if self._identity else None
        )

        user.record_login()
        await self.uow.users.save(user)
        session = await self._start_session(user)
        await self._audit(user, "register", auth_provider=AUTH_PROVIDER_LOCAL)

        self.uow.collect(UserRegistered(
            user_id=user.id,
            email=email,
            role=role.value,
            auth_provider=AUTH_PROVIDER_LOCAL
        ))
        logger.info(f"Registered user {user.id} ({role.value})")

        return AuthResponseDTO(
            user=UserResponseDTO.from_entity(user),
            auth_provider=AUTH_PROVIDER_LOCAL,
            session_token=session.token,
            expires_at=session.expires_at
        )


class LoginUseCase(AuthUseCaseMixin, CommandUseCase[LoginRequestDTO, AuthResponseDTO]):
    """
    Hybrid login: local password first, external provider second.
    Credentials are checked before the unit of work opens; the
    unit of work only records the login.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        password_hasher: PasswordHasher,
        token_service: TokenService,
        identity_provider: IdentityProvider,
        context: Optional[RequestContextDTO] = None,
        session_lifetime: timedelta = timedelta(hours=24)
    ):
        super().__init__(uow)
        self.password_hasher = password_hasher
        self.token_service = token_service
        self.identity_provider = identity_provider
        self.context = context or RequestContextDTO()
        self.session_lifetime = session_lifetime
        self._verified: Optional[User] = None
        self._upgraded_hash: Optional[str] = None
        self._identity: Optional[ExternalIdentity] = None
        self._unusable_hash: Optional[str] = None

    async def _find_user(self, identifier: str) -> Optional[User]:
        identifier = identifier.strip()
        if "@" in identifier:
            return await self.uow.users.find_by_email(identifier)
        return await self.uow.users.find_by_username(identifier)

    async def _prepare(self, request: LoginRequestDTO) -> None:
        async with self.uow:
            user = await self._find_user(request.identifier)

        if user is not None and self.password_hasher.verify_password(request.password, user.password_hash):
            self._verified = user
            if (self.password_hasher.needs_rehash(user.password_hash)
                    and len(request.password.encode("utf-8")) <= PASSWORD_MAX_BYTES):
                self._upgraded_hash = self.password_hasher.hash_password(request.password)
            return

        if self.identity_provider.enabled:
            email = request.identifier.strip().lower() if "@" in request.identifier else (
                str(user.email) if user is not None else None
            )
            if email:
                self._identity = await self.identity_provider.sign_in(email, request.password)
                if self._identity is not None:
                    # Unusable local password for a provisioned account
                    self._unusable_hash = self.password_hasher.hash_password(secrets.token_urlsafe(32))
                    return

        logger.info(f"Failed login for {request.identifier}")
        raise AuthenticationError("Invalid credentials")

    async def _execute_command_logic(self, request: LoginRequestDTO) -> AuthResponseDTO:
        if self._identity is not None:
            return await self._login_external(self._identity)

        user = await self.uow.users.find_by_id(self._verified.id, for_update=True)
        # The password changed or the account vanished since it was verified
        if user is None or user.password_hash != self._verified.password_hash:
            raise AuthenticationError("Invalid credentials")
        return await self._login_local(user)

    async def _login_local(self, user: User) -> AuthResponseDTO:
        self._ensure_active(user)

        if self._upgraded_hash:
            user.change_password_hash(self._upgraded_hash)
            logger.info(f"Upgraded password hash for user {user.id}")

        user.record_login()
        await self.uow.users.save(user)
        session = await self._start_session(user)
        await self._audit(user, "login", auth_provider=AUTH_PROVIDER_LOCAL)

        self.uow.collect(UserLoggedIn(
            user_id=user.id,
            auth_provider=AUTH_PROVIDER_LOCAL,
            ip_address=self.context.ip_address
        ))
        logger.info(f"User {user.id} logged in locally")

        return AuthResponseDTO(
            user=UserResponseDTO.from_entity(user),
            auth_provider=AUTH_PROVIDER_LOCAL,
            session_token=session.token,
            expires_at=session.expires_at
        )

    async def _login_external(self, identity: ExternalIdentity) -> AuthResponseDTO:
        user = await self.uow.users.find_by_email(identity.email)
        provisioned = user is None
        if provisioned:
            user = await self._provision(identity)
        else:
            self._ensure_active(user)
            if not user.external_id:
                user.external_id = identity.external_id

        user.record_login()
        await self.uow.users.save(user)
        await self._audit(user, "login", auth_provider=AUTH_PROVIDER_EXTERNAL, provisioned=provisioned)

        if provisioned:
            self.uow.collect(UserRegistered(
                user_id=user.id,
                email=str(user.email),
                role=user.role.value,
                auth_provider=AUTH_PROVIDER_EXTERNAL
            ))
        self.uow.collect(UserLoggedIn(
            user_id=user.id,
            auth_provider=AUTH_PROVIDER_EXTERNAL,
            ip_address=self.context.ip_address
        ))
        logger.info(f"User {user.id} logged in through the external provider")

        return AuthResponseDTO(
            user=UserResponseDTO.from_entity(user),
            auth_provider=AUTH_PROVIDER_EXTERNAL,
            access_token=self.token_service.create_access_token(user)
        )

    async def _provision(self, identity: ExternalIdentity) -> User:
        """Create the local counterpart of an externally authenticated user."""
        try:
            role = UserRole(identity.role) if identity.role else UserRole.FREELANCER
        except ValueError:
            role = UserRole.FREELANCER
        # Provider metadata is user-editable, so it can never grant staff roles
        if role not in SELF_SERVICE_ROLES:
            role = UserRole.FREELANCER

        username = await self._available_username(identity.username or identity.email.split("@")[0])
        user = User(
            email=identity.email,
            username=username,
            password_hash=self._unusable_hash,
            full_name=identity.full_name,
            role=role,
            external_id=identity.external_id
        )
        await self.uow.users.save(user)
        logger.info(f"Provisioned local user {user.id} for external identity {identity.external_id}")
        return user

    async def _available_username(self, base: str) -> str:
        base = _USERNAME_STRIP.sub("", base)[:40]
        if len(base) < 3:
            base = f"user{base}"
        candidate = base
        suffix = 1
        while await self.uow.users.find_by_username(candidate):
            suffix += 1
            candidate = f"{base}{suffix}"
        return candidate

    @staticmethod
    def _ensure_active(user: User) -> None:
        if not user.active:
            raise AuthenticationError("Account is deactivated")


class LogoutUseCase(CommandUseCase[str, bool]):
    """Revoke a local session token."""

    async def _execute_command_logic(self, token: str) -> bool:
        revoked = await self.uow.sessions.delete(token)
        if revoked:
            logger.info("Session revoked")
        return revoked


class ListActivitiesUseCase(QueryUseCase[int, List[Activity]]):
    """Most recent activity feed entries of the current user."""

    async def _execute_query_logic(self, limit: int) -> List[Activity]:
        return await self.uow.activities.find_by_user(self.current_user.id, limit=max(1, min(limit, 100)))
