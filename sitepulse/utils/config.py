# ==============================================================================
# Application Configuration
# ==============================================================================
"""
Configuration management using pydantic-settings.

All configuration is loaded from environment variables, with support for
.env files via python-dotenv.
"""

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file before any settings are instantiated
load_dotenv()


class TelemetrySettings(BaseSettings):
    """Collector, writer and aggregation settings."""

    model_config = SettingsConfigDict(env_prefix="TELEMETRY_")

    enabled: bool = Field(default=True, description="Enable telemetry collection")
    queue_max_size: int = Field(
        default=1000, description="Maximum records waiting to be written to the sink"
    )
    write_retry_attempts: int = Field(
        default=3, description="Attempts per sink write on transient failures"
    )
    flush_timeout_seconds: float = Field(
        default=5.0, description="How long shutdown waits for queued writes"
    )
    top_n: int = Field(default=5, description="Length of top pages / interactions lists")
    window_days: int = Field(default=30, description="Default dashboard window in days")

    # Environment defaults when the host does not supply them
    language: str = Field(default="en-US", description="Default language tag")
    timezone: str = Field(default="UTC", description="Default IANA timezone")


class SessionSettings(BaseSettings):
    """Authenticated session (idle timeout) settings."""

    model_config = SettingsConfigDict(env_prefix="SESSION_")

    session_timeout_minutes: int = Field(
        default=30, description="Inactivity timeout before forced sign-out"
    )
    login_path: str = Field(default="/admin/login", description="Redirect target on timeout")


class ValkeySettings(BaseSettings):
    """Valkey (Redis-compatible) connection settings for the event sink."""

    model_config = SettingsConfigDict(env_prefix="VALKEY_")

    host: str = Field(default="localhost", description="Valkey host")
    port: int = Field(default=6379, description="Valkey port")
    password: Optional[str] = Field(default=None, description="Valkey password")
    db: int = Field(default=0, description="Valkey database number")
    ssl: bool = Field(default=False, description="Use SSL/TLS connection")
    key_prefix: str = Field(default="sitepulse", description="Prefix for all telemetry keys")

    @property
    def url(self) -> str:
        """Build Valkey connection URL."""
        scheme = "rediss" if self.ssl else "redis"
        if self.password:
            return f"{scheme}://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"{scheme}://{self.host}:{self.port}/{self.db}"


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Nested settings
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    valkey: ValkeySettings = Field(default_factory=ValkeySettings)

    # General settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for subsequent calls.
    """
    return Settings()
