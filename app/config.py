# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.R2_BUCKET_NAME)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# Integration settings are optional: the process starts without them and the
# operation that needs a missing value fails with a ConfigurationError.
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
    # Object Storage (Cloudflare R2, S3-compatible)
    # -------------------------------------------------------------------------

    R2_ENDPOINT_URL: str | None = Field(
        default=None,
        description="R2 S3 API endpoint (e.g., https://<account>.r2.cloudflarestorage.com)"
    )

    R2_BUCKET_NAME: str | None = Field(
        default=None,
        description="Bucket holding portfolio images"
    )

    R2_ACCESS_KEY_ID: str | None = Field(
        default=None,
        description="R2 access key id"
    )

    R2_SECRET_ACCESS_KEY: str | None = Field(
        default=None,
        description="R2 secret access key"
    )

    R2_PUBLIC_BASE_URL: str | None = Field(
        default=None,
        description="Public base URL objects are served from (e.g., https://pub-xxx.r2.dev)"
    )

    R2_UPLOAD_URL_EXPIRES: int = Field(
        default=3600,
        ge=60,
        le=7 * 24 * 3600,
        description="Lifetime of presigned upload URLs in seconds"
    )

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------

    SUPABASE_URL: str | None = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_SERVICE_ROLE_KEY: str | None = Field(
        default=None,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_ANON_KEY: str | None = Field(
        default=None,
        description="Supabase anon/public key, used when no service key is set"
    )

    # -------------------------------------------------------------------------
    # OpenAI / Azure OpenAI Configuration
    # -------------------------------------------------------------------------

    OPENAI_API_KEY: str | None = Field(
        default=None,
        description="OpenAI API key for translation and image analysis"
    )

    OPENAI_VISION_MODEL: str = Field(
        default="gpt-4o-mini",
        description="Vision-capable model used for image analysis"
    )

    OPENAI_TRANSLATION_MODEL: str = Field(
        default="gpt-4o-mini",
        description="Model used for translation"
    )

    AZURE_OPENAI_ENDPOINT: str | None = Field(
        default=None,
        description="Azure OpenAI resource endpoint; switches both aids to Azure"
    )

    AZURE_OPENAI_API_KEY: str | None = Field(
        default=None,
        description="Azure OpenAI key (falls back to OPENAI_API_KEY)"
    )

    AZURE_OPENAI_DEPLOYMENT: str | None = Field(
        default=None,
        description="Azure deployment name (falls back to the model settings)"
    )

    AZURE_OPENAI_API_VERSION: str = Field(
        default="2024-02-15-preview",
        description="Azure OpenAI API version"
    )

    # -------------------------------------------------------------------------
    # Geocoding
    # -------------------------------------------------------------------------

    NOMINATIM_URL: str = Field(
        default="https://nominatim.openstreetmap.org/search",
        description="Nominatim search endpoint"
    )

    GEOCODE_USER_AGENT: str = Field(
        default="PrivatePortfolio/1.0 (+https://example.com)",
        description="User-Agent sent to Nominatim, required by its usage policy"
    )

    HTTP_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Timeout for outbound HTTP calls"
    )

    # -------------------------------------------------------------------------
    # Portfolio
    # -------------------------------------------------------------------------

    PORTFOLIO_CACHE_TTL_SECONDS: int = Field(
        default=300,
        ge=0,
        le=3600,
        description="How long an aggregated initial payload is served before recomputing"
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

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        # Treat empty variables as unset so blank entries count as missing
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
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def supabase_key(self) -> str | None:
        """Service-role key when present, otherwise the anon key."""
        return self.SUPABASE_SERVICE_ROLE_KEY or self.SUPABASE_ANON_KEY

    @property
    def uses_azure_openai(self) -> bool:
        return bool(self.AZURE_OPENAI_ENDPOINT)

    @property
    def has_openai_key(self) -> bool:
        return bool(self.OPENAI_API_KEY or self.AZURE_OPENAI_API_KEY)

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
