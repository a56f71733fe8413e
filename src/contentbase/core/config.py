"""ContentBase settings.

Every value can be set through a ``CONTENTBASE_``-prefixed environment variable
or a .env file. ``get_settings`` caches the parsed result for the process.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server, database, storage, email and migration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CONTENTBASE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "ContentBase"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"
    external_url: str = "http://localhost:8000"
    frontend_url: str = "http://localhost:5173"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1

    # Database Settings
    database_url: str = "sqlite+aiosqlite:///./cb_data/contentbase.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_echo: bool = False

    # Operator Access
    operator_api_key: str | None = Field(
        default=None,
        description="Static key required on every API call (disabled when unset)",
    )
    api_key_header: str = "X-API-Key"

    # CORS Settings
    cors_origins: list[str] = Field(default=["http://localhost:5173", "http://localhost:8000"])
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = Field(default=["*"])
    cors_allow_headers: list[str] = Field(default=["*"])

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Object Storage Settings
    storage_backend: Literal["local", "s3"] = "local"
    storage_path: str = "./cb_data/files"
    s3_bucket: str | None = None
    s3_region: str | None = None
    s3_access_key_id: str | None = None
    s3_secret_access_key: str | None = None
    s3_endpoint_url: str | None = None
    signed_url_expires_seconds: int = 3600

    # Email Settings
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_use_ssl: bool = False
    smtp_timeout: int = 10
    email_from: str = "noreply@contentbase.local"
    email_from_name: str = "ContentBase"

    # Entry Migration Settings
    migration_batch_size: int = Field(default=500, ge=1)
    migration_max_retries: int = Field(default=3, ge=0)
    migration_retry_backoff_seconds: float = Field(default=0.5, ge=0)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"

    @property
    def smtp_configured(self) -> bool:
        """Whether outbound SMTP delivery is configured."""
        return bool(self.smtp_host and self.smtp_username and self.smtp_password)

    @model_validator(mode="after")
    def validate_sqlite_workers(self) -> "Settings":
        """Validate that SQLite is not used with multiple workers."""
        if self.workers > 1 and self.database_url.startswith("sqlite"):
            raise ValueError(
                "SQLite does not support multiple worker processes. "
                f"Requested {self.workers} workers, but SQLite requires workers=1. "
                "Either use --workers 1 or switch to PostgreSQL."
            )
        return self

    @model_validator(mode="after")
    def validate_s3_backend(self) -> "Settings":
        """Validate that the S3 backend has a bucket and region."""
        if self.storage_backend == "s3" and not (self.s3_bucket and self.s3_region):
            raise ValueError("storage_backend 's3' requires s3_bucket and s3_region")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This function caches the settings instance to avoid reloading
    configuration on every call. Settings are loaded once at startup.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
