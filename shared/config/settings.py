"""
Settings Module
===============

Pydantic-based configuration with environment variable loading.

Version: 0.1.0
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class RecordStoreMode(str, Enum):
    """Backing store selection for warranty records."""

    AUTO = "auto"
    KINTONE = "kintone"
    RELATIONAL = "relational"
    MOCK = "mock"


class KintoneSettings(BaseSettings):
    """kintone REST API configuration."""

    model_config = SettingsConfigDict(env_prefix="KINTONE_")

    domain: str = ""
    app_id: str = ""
    api_token: SecretStr = SecretStr("")
    mock_mode: bool = False
    timeout_seconds: float = 10.0

    # Semantic field name -> kintone field code overrides (JSON object)
    field_codes: dict[str, str] = Field(default_factory=dict)

    @property
    def is_configured(self) -> bool:
        """Check that domain, app and token are all present."""
        return bool(self.domain and self.app_id and self.api_token.get_secret_value())

    @property
    def base_url(self) -> str:
        """Generate the REST API base URL."""
        return f"https://{self.domain}/k/v1"


class PostgresSettings(BaseSettings):
    """PostgreSQL database configuration."""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = "localhost"
    port: int = 5432
    user: str = "warranty"
    password: SecretStr = SecretStr("warranty_dev_password")
    db: str = "warranty"

    # Full SQLAlchemy URL; takes precedence over the discrete fields
    url: str = ""

    @property
    def async_url(self) -> str:
        """Generate async SQLAlchemy connection URL."""
        if self.url:
            return self.url
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.db}"


class CORSSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    origins: str = "http://localhost:3000"
    allow_credentials: bool = True

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into list."""
        return [o.strip() for o in self.origins.split(",") if o.strip()]


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables with sensible defaults.
    Use the global `settings` singleton or call `get_settings()`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False
    log_level: LogLevel = LogLevel.INFO
    service_port: int = 8000

    # Record store
    record_store_mode: RecordStoreMode = RecordStoreMode.AUTO
    kintone: KintoneSettings = Field(default_factory=KintoneSettings)
    postgres: PostgresSettings = Field(default_factory=PostgresSettings)

    # Security
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Ensure log level is uppercase."""
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.environment == Environment.TESTING

    @property
    def expose_error_details(self) -> bool:
        """Echo raw upstream error text in responses (local debugging only)."""
        return self.debug and self.is_development


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
