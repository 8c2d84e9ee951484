"""Application configuration management using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Required settings will raise validation errors if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="luxlather-backend", description="Application name")
    app_version: str = Field(default="0.1.0", description="Version reported by the API and health check")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=5050, description="Server port")
    max_request_body_size: int = Field(default=1_048_576, description="Maximum request body size in bytes")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase secret key for backend operations")

    # Stripe
    stripe_secret_key: str = Field(default="", description="Stripe secret API key")
    stripe_webhook_secret: str = Field(default="", description="Stripe webhook signing secret")
    stripe_api_version: str = Field(default="2023-10-16", description="Pinned Stripe API version")
    stripe_timeout_seconds: float = Field(default=10.0, gt=0, description="Timeout for outbound Stripe calls")

    # Money
    default_currency: str = Field(default="JPY", description="Currency used when a checkout omits one")
    supported_currencies: str = Field(
        default="JPY,USD,EUR",
        description="Comma-separated allow-list of ISO 4217 codes accepted at checkout",
    )

    # Frontend
    client_url: str = Field(
        default="http://localhost:5173",
        description="Storefront base URL used for checkout redirects",
    )

    # Auth
    jwt_secret: str = Field(..., description="Secret used to sign HS256 access tokens")
    jwt_expiry_hours: int = Field(default=168, description="Customer access token lifetime in hours")
    admin_username: str = Field(default="", description="Environment admin username")
    admin_email: str = Field(default="", description="Environment admin email")
    admin_password: str = Field(default="", description="Environment admin password")

    # Contact form / email (Resend)
    resend_api_key: str = Field(default="", description="Resend API key for sending emails")
    email_from_address: str = Field(
        default="LuxLather <noreply@luxlather.com>",
        description="From address for transactional emails",
    )
    contact_to_email: str = Field(default="", description="Inbox that receives contact form notifications")
    contact_rate_limit_requests: int = Field(default=5, description="Contact submissions allowed per window")
    contact_rate_limit_window_seconds: int = Field(default=60, description="Contact rate limit window")

    @model_validator(mode="after")
    def check_default_currency(self) -> "Settings":
        """Ensure the default currency is part of the supported allow-list."""
        self.default_currency = self.default_currency.strip().upper()
        if self.default_currency not in self.supported_currencies_list:
            raise ValueError(
                f"DEFAULT_CURRENCY {self.default_currency} is not listed in SUPPORTED_CURRENCIES"
            )
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip().rstrip("/") for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def supported_currencies_list(self) -> list[str]:
        """Parse the supported currency allow-list (upper-cased)."""
        return [code.strip().upper() for code in self.supported_currencies.split(",") if code.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_stripe_test_mode(self) -> bool:
        """Check if using Stripe test keys."""
        return self.stripe_secret_key.startswith("sk_test_")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
