"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # STORAGE
    # ===================
    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|supabase)$",
        description="Where records live: process memory or Supabase tables"
    )
    seed_demo_data: bool = Field(
        default=True,
        description="Load the demo catalogue into the memory backend on startup"
    )
    supabase_url: Optional[str] = Field(
        None,
        description="Supabase project URL (supabase backend only)"
    )
    supabase_key: Optional[str] = Field(
        None,
        description="Supabase anon/public key (supabase backend only)"
    )

    # ===================
    # AUTH
    # ===================
    auth_enabled: bool = Field(
        default=True,
        description="Require a Bearer JWT on customer and order endpoints"
    )
    jwt_secret: str = Field(
        default="dev-jwt-secret-change-in-production",
        min_length=8,
        description="Secret used to validate HS256 access tokens"
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm"
    )

    # ===================
    # HOSTED MODEL
    # ===================
    anthropic_api_key: Optional[str] = Field(
        None,
        description="Anthropic API key for customer analysis"
    )
    ai_model_id: str = Field(
        default="claude-sonnet-4-20250514",
        description="Model used for customer consumption analysis"
    )
    ai_analysis_enabled: bool = Field(
        default=True,
        description="Feature flag; when false every analysis uses the fallback"
    )
    model_request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Timeout for a single model call"
    )
    model_max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Additional attempts after the first failed model call"
    )
    model_backoff_base_seconds: float = Field(
        default=0.5,
        ge=0,
        le=30,
        description="Backoff before retry n is base * 2**n"
    )
    model_backoff_jitter_seconds: float = Field(
        default=0.1,
        ge=0,
        le=5,
        description="Upper bound of random jitter added to each backoff"
    )
    model_deadline_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Total wall-clock budget for all attempts and backoffs"
    )
    model_max_tokens: int = Field(
        default=2048,
        ge=256,
        le=8192,
        description="Maximum tokens in the model response"
    )
    model_min_confidence: float = Field(
        default=0.3,
        ge=0,
        le=1,
        description="Model results below this overall confidence are rejected"
    )
    prompt_history_limit: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Most recent purchases/interactions included in the prompt"
    )

    # ===================
    # ANALYSIS THRESHOLDS
    # ===================
    full_confidence_intervals: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Observed purchase intervals needed for confidence 1.0"
    )
    urgent_window_days: int = Field(
        default=7,
        ge=1,
        le=60,
        description="Predicted purchases within this many days need action now"
    )
    upcoming_window_days: int = Field(
        default=30,
        ge=1,
        le=180,
        description="Predicted purchases within this many days are upcoming"
    )
    frequent_purchases_per_month: float = Field(
        default=4.0,
        gt=0,
        description="Purchase occasions per 30 days for the frequent segment"
    )
    occasional_purchases_per_month: float = Field(
        default=1.0,
        gt=0,
        description="Purchase occasions per 30 days for the occasional segment"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=3001,
        ge=1000,
        le=65535,
        description="API port"
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "https://omnix-ai.com"],
        description="Origins allowed by CORS"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def model_configured(self) -> bool:
        """Check if the hosted model can be called."""
        return bool(self.ai_analysis_enabled and self.anthropic_api_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
