# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses pydantic-settings to:
    - Automatically load from .env file
    - Validate types and constraints
    - Provide sensible defaults for development

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # These are required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key (used for per-request auth calls)"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="Legacy HS256 JWT secret for verifying access tokens"
    )

    # -------------------------------------------------------------------------
    # Email (Resend)
    # -------------------------------------------------------------------------

    RESEND_API_KEY: str = Field(
        default="",
        description="Resend API key. Emails fail with a clear error when unset."
    )

    RESEND_API_URL: str = Field(
        default="https://api.resend.com",
        description="Base URL of the Resend REST API"
    )

    TEST_EMAIL_FROM: str = Field(
        default="Test <onboarding@resend.dev>",
        description="Sender used by the diagnostic test email"
    )

    INVITATION_FROM: str = Field(
        default="CIRFPRO <send@cirfpro.com>",
        description="Sender of coach invitation emails"
    )

    NOTIFICATION_FROM: str = Field(
        default="CIRFPRO <notifications@cirfpro.com>",
        description="Sender of notifications to coaches"
    )

    # -------------------------------------------------------------------------
    # Invitations
    # -------------------------------------------------------------------------

    INVITATION_EXPIRY_DAYS: int = Field(
        default=14,
        ge=1,
        le=90,
        description="How long an invitation link stays valid after it is (re)sent"
    )

    # -------------------------------------------------------------------------
    # Redirects
    # -------------------------------------------------------------------------

    APP_URL: str = Field(
        default="http://localhost:3000",
        description="Public URL of the web frontend (redirect targets live here)"
    )

    API_PUBLIC_URL: str = Field(
        default="http://localhost:8000",
        description="Public URL of this API (used in verification email links)"
    )

    SIGNIN_PATH: str = Field(
        default="/auth/signin",
        description="Frontend sign-in page path"
    )

    DEFAULT_REDIRECT_PATH: str = Field(
        default="/dashboard",
        description="Where the callback sends users when no valid `next` is given"
    )

    ALLOWED_REDIRECT_PREFIXES: str = Field(
        default="/dashboard,/coach,/athlete,/auth",
        description="Comma-separated path prefixes accepted for `next` redirects"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    ENABLE_TEST_ROUTES: bool = Field(
        default=True,
        description="Mount diagnostic routes such as POST /test-email"
    )

    # -------------------------------------------------------------------------
    # Security
    # -------------------------------------------------------------------------

    AUTH_COOKIE_NAME: str = Field(
        default="sb-access-token",
        description="Cookie holding the Supabase access token for browser sessions"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://myapp.com" -> ["http://localhost:3000", "https://myapp.com"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def allowed_redirect_prefixes_list(self) -> list[str]:
        """Parse ALLOWED_REDIRECT_PREFIXES into a list of non-empty paths."""
        return [p.strip() for p in self.ALLOWED_REDIRECT_PREFIXES.split(",") if p.strip()]

    @property
    def signin_url(self) -> str:
        """Absolute URL of the frontend sign-in page."""
        return f"{self.APP_URL.rstrip('/')}{self.SIGNIN_PATH}"

    @property
    def email_redirect_url(self) -> str:
        """Verification link target embedded in sign-up emails."""
        return f"{self.API_PUBLIC_URL.rstrip('/')}/api/v1/auth/callback"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.

    Returns:
        Settings: The application settings instance
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
