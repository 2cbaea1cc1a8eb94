"""Application settings and configuration.

This module defines all configuration options for the Unfiltered Voice service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="The Unfiltered Voice", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./voice.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Public site identity used by feeds and outbound mail
    site_base_url: str = Field(
        default="https://www.unfilteredvoice.me",
        alias="SITE_BASE_URL",
    )
    site_description: str = Field(
        default=(
            "A personal blog exploring mental health, current affairs, "
            "creative writing, and book reflections."
        ),
        alias="SITE_DESCRIPTION",
    )
    site_author: str = Field(default="Niyati Singhal", alias="SITE_AUTHOR")
    site_author_email: str = Field(
        default="preeniyati2101@gmail.com",
        alias="SITE_AUTHOR_EMAIL",
    )
    rss_item_limit: int = Field(default=50, alias="RSS_ITEM_LIMIT")
    feed_cache_seconds: int = Field(default=3600, alias="FEED_CACHE_SECONDS")

    # Outbound transactional mail
    mail_enabled: bool = Field(default=False, alias="MAIL_ENABLED")
    mail_api_url: str = Field(default="https://api.resend.com", alias="MAIL_API_URL")
    mail_api_key: str | None = Field(default=None, alias="MAIL_API_KEY")
    mail_from: str = Field(
        default="The Unfiltered Voice <noreply@unfilteredvoice.me>",
        alias="MAIL_FROM",
    )
    mail_primary_recipient: str = Field(
        default="noreply@unfilteredvoice.me",
        alias="MAIL_PRIMARY_RECIPIENT",
    )
    mail_timeout_seconds: float = Field(default=10.0, alias="MAIL_TIMEOUT_SECONDS")
    notify_on_publish: bool = Field(default=True, alias="NOTIFY_ON_PUBLISH")

    # Real-time row change fan-out
    redis_url: str | None = Field(default=None, alias="REDIS_URL")
    realtime_channel_prefix: str = Field(default="voice", alias="REALTIME_CHANNEL_PREFIX")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def realtime_enabled(self) -> bool:
        """Return True when row change events are mirrored to Redis."""
        return bool(self.redis_url)


settings = Settings()  # type: ignore[call-arg]
