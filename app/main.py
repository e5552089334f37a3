"""
Main FastAPI application entry point.
Wires configuration, middleware, the wallet, escrow and auth routers,
and the startup and shutdown hooks.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
import logging
from typing import Dict, Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from app.config import settings
from app.application.dto.base_dto import HealthCheckResponseDTO, ErrorDetailDTO, ErrorResponseDTO
from app.infrastructure.db.database import Base, engine
from app.infrastructure.db import models  # noqa: F401  registers the tables
from app.infrastructure.events.event_setup import initialize_event_system
from app.infrastructure.rate_limiting import init_rate_limiter
from app.infrastructure.web.middleware.error_handler import ErrorHandlerMiddleware
from app.infrastructure.web.middleware.request_context import RequestContextMiddleware
from app.infrastructure.web.routers import (
    auth,
    wallet,
    escrow,
    activities
)

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

ROUTERS = (
    (auth.router, "/auth", "Authentication"),
    (wallet.router, "/wallet", "Wallet"),
    (escrow.router, "/escrow", "Escrow"),
    (activities.router, "/activities", "Activities"),
)


def init_sentry() -> None:
    """Error reporting is only wired outside development and only with a DSN."""
    if not settings.sentry_dsn or settings.is_development:
        return
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        environment=settings.environment,
        release=f"gigwallet-backend@{settings.api_version}",
        send_default_pii=False,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
    )
    logger.info("Sentry initialized")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.api_title} v{settings.api_version}")
    logger.info(f"Environment: {settings.environment}, storage: {settings.storage_backend}")

    init_sentry()

    if settings.storage_backend == "database":
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")

    initialize_event_system()
    init_rate_limiter()

    if not settings.identity_provider_enabled:
        logger.info("External identity provider not configured; local authentication only")

    yield

    logger.info("Shutting down application")
    engine.dispose()


def create_application() -> FastAPI:
    docs_enabled = settings.debug
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        debug=settings.debug,
        docs_url=f"{settings.api_prefix}/docs" if docs_enabled else None,
        redoc_url=f"{settings.api_prefix}/redoc" if docs_enabled else None,
        openapi_url=f"{settings.api_prefix}/openapi.json" if docs_enabled else None,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    if settings.is_production:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=["*"])
    app.add_middleware(RequestContextMiddleware)
    # Outermost, so failures in the other middleware are formatted too
    app.add_middleware(ErrorHandlerMiddleware)

    for router, prefix, tag in ROUTERS:
        app.include_router(router, prefix=f"{settings.api_prefix}{prefix}", tags=[tag])

    @app.get("/")
    async def root() -> Dict[str, Any]:
        return {
            "name": settings.api_title,
            "version": settings.api_version,
            "environment": settings.environment,
            "docs": app.docs_url,
            "health": f"{settings.api_prefix}/health"
        }

    @app.get(f"{settings.api_prefix}/health", response_model=HealthCheckResponseDTO)
    async def health_check():
        return HealthCheckResponseDTO(
            status="healthy",
            environment=settings.environment,
            version=settings.api_version,
            dependencies={
                "storage": settings.storage_backend,
                "identity_provider": "enabled" if settings.identity_provider_enabled else "disabled"
            }
        )

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc):
        detail = getattr(exc, "detail", None)
        if isinstance(detail, dict):
            # Missing entities keep their error code
            return JSONResponse(status_code=404, content={"detail": detail})
        body = ErrorResponseDTO(
            detail=ErrorDetailDTO(code="NOT_FOUND", message=f"The path {request.url.path} was not found"),
            request_id=getattr(request.state, "request_id", None)
        )
        return JSONResponse(status_code=404, content=body.model_dump(exclude_none=True))

    return app


app = create_application()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level="debug" if settings.debug else "info",
    )
