"""
Application configuration using Pydantic Settings.
Loads environment variables and provides type-safe configuration.
"""

from typing import List, Optional
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, validator
from pathlib import Path

# Get the base directory
BASE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173", "http://localhost:5000"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    environment: str = Field(default="development", description="Current environment")
    debug: bool = Field(default=False, description="Debug mode")

    # API Configuration
    api_title: str = Field(default="GigWallet Marketplace API")
    api_version: str = Field(default="1.0.0")
    api_prefix: str = Field(default="/api/v1")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Storage
    storage_backend: str = Field(default="database", description="memory or database")
    database_url: str = Field(
        default=f"sqlite:///{BASE_DIR / 'gigwallet.db'}",
        description="SQLAlchemy database URL"
    )

    # Supabase (external identity provider, disabled when url or key is unset)
    supabase_url: Optional[str] = Field(default=None, description="Supabase project URL")
    supabase_anon_key: Optional[str] = Field(default=None, description="Supabase anonymous key")

    # JWT Configuration
    jwt_secret_key: str = Field(default="development-secret-key-change-in-production", description="JWT secret key")
    jwt_algorithm: str = Field(default="HS256")
    jwt_access_token_expire_minutes: int = Field(default=60 * 24)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # Local sessions
    session_expire_hours: int = Field(default=24)
    session_cookie_name: str = Field(default="session")
    session_header_name: str = Field(default="session-token")
    session_cookie_secure: bool = Field(default=False)

    # Payment provider used for external deposits
    payment_provider_base_url: str = Field(default="https://pay.pesapal.com/iframe")
    payment_callback_url: str = Field(default="http://localhost:8000/api/v1/wallet/pesapal/callback")

    # CORS
    cors_origins: str | List[str] = Field(default=",".join(DEFAULT_CORS_ORIGINS))
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: List[str] = Field(default=["*"])
    cors_allow_headers: List[str] = Field(default=["*"])

    # Pagination
    default_page_size: int = Field(default=10)
    max_page_size: int = Field(default=100)

    # Rate Limiting
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_period: int = Field(default=60)  # seconds
    rate_limit_auth_requests: int = Field(default=10)
    rate_limit_payment_requests: int = Field(default=30)
    rate_limit_webhook_requests: int = Field(default=120)

    # Sentry (Optional)
    sentry_dsn: Optional[str] = Field(default=None)
    sentry_traces_sample_rate: float = Field(default=0.1)

    default_currency: str = Field(default="USD")

    @validator("cors_origins", pre=True)
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return list(DEFAULT_CORS_ORIGINS)
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @validator("storage_backend")
    def validate_storage_backend(cls, v):
        value = v.lower()
        if value not in ("memory", "database"):
            raise ValueError("storage_backend must be 'memory' or 'database'")
        return value

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def identity_provider_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    def validate_environment(self) -> None:
        """Validate that all required environment variables are set."""
        missing_vars = []
        if not self.jwt_secret_key or self.jwt_secret_key.startswith("development-"):
            missing_vars.append("JWT_SECRET_KEY")
        if not self.database_url:
            missing_vars.append("DATABASE_URL")

        if missing_vars:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing_vars)}"
            )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Use this function to get settings throughout the application.
    """
    settings = Settings()

    # Validate environment in production
    if settings.is_production:
        settings.validate_environment()

    return settings


# Create a global settings instance
settings = get_settings()
