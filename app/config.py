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

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key (used for end-user auth calls)"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="Legacy HS256 JWT secret for verifying Supabase access tokens"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (Celery broker + realtime pub/sub)
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for Celery broker and WebSocket fan-out"
    )

    CELERY_TASK_ALWAYS_EAGER: bool = Field(
        default=False,
        description="Run Celery tasks inline instead of sending them to the broker"
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

    SITE_URL: str = Field(
        default="http://localhost:3000",
        description="Public URL of the web frontend (used in auth e-mail redirects)"
    )

    # -------------------------------------------------------------------------
    # Security
    # -------------------------------------------------------------------------

    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    ADMIN_EMAILS: str = Field(
        default="",
        description="E-mail addresses allowed to review verifications (comma-separated)"
    )

    SESSION_COOKIE_SECURE: bool = Field(
        default=False,
        description="Mark session cookies as Secure (enable behind HTTPS)"
    )

    # -------------------------------------------------------------------------
    # Auth Synchronisation
    # -------------------------------------------------------------------------

    PROFILE_FETCH_TIMEOUT_SECONDS: float = Field(
        default=3.0,
        gt=0,
        description="Timeout for fetching the user profile row"
    )

    AUTH_SYNC_TIMEOUT_SECONDS: float = Field(
        default=5.0,
        gt=0,
        description="Overall timeout for resolving a user after an auth event"
    )

    # -------------------------------------------------------------------------
    # Listing Images
    # -------------------------------------------------------------------------

    MAX_UPLOAD_SIZE_MB: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum image upload size in MB"
    )

    ALLOWED_IMAGE_EXTENSIONS: str = Field(
        default=".jpg,.jpeg,.png,.webp,.gif",
        description="Allowed image extensions (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Bookings
    # -------------------------------------------------------------------------

    BOOKING_OPEN_HOUR: int = Field(
        default=6,
        ge=0,
        le=23,
        description="First bookable hour of the day"
    )

    BOOKING_CLOSE_HOUR: int = Field(
        default=22,
        ge=1,
        le=24,
        description="Hour by which every booked slot must end"
    )

    DAILY_RATE_THRESHOLD_HOURS: float = Field(
        default=8,
        gt=0,
        description="Bookings at least this long are charged the daily rate"
    )

    # -------------------------------------------------------------------------
    # Mock Payments
    # -------------------------------------------------------------------------

    MOCK_PAYMENT_SUCCESS_RATE: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        description="Probability that a confirmation with a non-test card succeeds"
    )

    MOCK_PAYMENT_LATENCY_SECONDS: float = Field(
        default=0.5,
        ge=0.0,
        description="Simulated gateway latency"
    )

    PLATFORM_FEE_PERCENT: float = Field(
        default=10.0,
        ge=0.0,
        le=100.0,
        description="Platform fee taken from each payment"
    )

    PAYMENT_CURRENCY: str = Field(
        default="usd",
        description="Currency for payment intents"
    )

    # -------------------------------------------------------------------------
    # Mock E-mail
    # -------------------------------------------------------------------------

    MOCK_EMAIL_SUCCESS_RATE: float = Field(
        default=0.95,
        ge=0.0,
        le=1.0,
        description="Probability that a mock e-mail is reported as delivered"
    )

    MOCK_EMAIL_LATENCY_SECONDS: float = Field(
        default=0.0,
        ge=0.0,
        description="Simulated mail server latency"
    )

    EMAIL_SENDER_NAME: str = Field(
        default="FoodTruck Hub Team",
        description="Signature used in notification e-mails"
    )

    # -------------------------------------------------------------------------
    # Geocoding
    # -------------------------------------------------------------------------

    GEOCODING_URL: str = Field(
        default="https://nominatim.openstreetmap.org/search",
        description="Nominatim-compatible search endpoint"
    )

    GEOCODING_USER_AGENT: str = Field(
        default="FoodTruck-Hub-App/1.0",
        description="User-Agent header sent to the geocoder"
    )

    GEOCODING_COUNTRY_CODES: str = Field(
        default="gb",
        description="Country codes the geocoder is restricted to"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
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
    def admin_emails_list(self) -> list[str]:
        """Lower-cased admin e-mails; empty entries are dropped."""
        return [e.strip().lower() for e in self.ADMIN_EMAILS.split(",") if e.strip()]

    @property
    def allowed_image_extensions_list(self) -> list[str]:
        """
        Parse ALLOWED_IMAGE_EXTENSIONS string into a list.

        Example: ".jpg, .png" -> [".jpg", ".png"]
        """
        return [ext.strip().lower() for ext in self.ALLOWED_IMAGE_EXTENSIONS.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Convert MB to bytes for file size validation."""
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

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
