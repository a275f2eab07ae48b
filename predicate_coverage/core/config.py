"""Configuration Management - Tracking and Reporting Settings.

Provides environment-aware configuration with validation. Values are read
from ``PREDICATE_COVERAGE_*`` environment variables and an optional ``.env``
file; command-line flags override them.
"""

from enum import Enum
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from predicate_coverage.core.constants import (
    DEFAULT_TOP_K,
    STATS_REFRESH_INTERVAL,
    TOP_PREDICATES_SHOWN,
)
from predicate_coverage.core.coverage_types import Location


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class TrackingConfig(BaseSettings):
    """Hit tracking configuration."""

    model_config = SettingsConfigDict(env_prefix="PREDICATE_COVERAGE_TRACKING_")

    debug_locations: list[str] = Field(
        default_factory=list,
        description="CLASS:LINE locations whose trace events are logged at debug level",
    )

    @field_validator("debug_locations")
    @classmethod
    def validate_locations(cls, v: list[str]) -> list[str]:
        """Reject entries that are not CLASS:LINE."""
        for entry in v:
            Location.parse(entry)
        return v

    def parsed_debug_locations(self) -> set[Location]:
        return {Location.parse(entry) for entry in self.debug_locations}


class ReportingConfig(BaseSettings):
    """Dashboard and snapshot configuration."""

    model_config = SettingsConfigDict(env_prefix="PREDICATE_COVERAGE_REPORTING_")

    refresh_interval: float = Field(
        default=STATS_REFRESH_INTERVAL,
        ge=0.0,
        description="Minimum seconds between live dashboard renders",
    )
    top_k: int = Field(
        default=DEFAULT_TOP_K, ge=0, description="Under-covered branches listed"
    )
    top_predicates: int = Field(
        default=TOP_PREDICATES_SHOWN, ge=0, description="Predicates on the dashboard"
    )
    snapshot_path: Path | None = Field(
        default=None, description="Line coverage JSON written at the end of a run"
    )


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="PREDICATE_COVERAGE_LOGGING_")

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_format: str = Field(default="console", description="Log format: json or console")
    log_file: Path | None = Field(default=None, description="Optional log file")

    @field_validator("log_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return v


class Settings(BaseSettings):
    """Main application settings.

    Usage:
        from predicate_coverage.core.config import get_settings
        settings = get_settings()
    """

    model_config = SettingsConfigDict(
        env_prefix="PREDICATE_COVERAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    tracking: TrackingConfig = Field(default_factory=TrackingConfig)
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def get_summary(self) -> str:
        """Get configuration summary."""
        return f"""
Predicate Coverage Configuration
================================
Tracking:
  - Debug Locations: {", ".join(self.tracking.debug_locations) or "none"}

Reporting:
  - Refresh Interval: {self.reporting.refresh_interval}s
  - Top-K Branches: {self.reporting.top_k}
  - Top Predicates: {self.reporting.top_predicates}
  - Snapshot: {self.reporting.snapshot_path or "disabled"}

Logging:
  - Level: {self.logging.log_level.value}
  - Format: {self.logging.log_format}
"""


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings(force_reload: bool = False) -> Settings:
    """Get application settings (singleton).

    Args:
        force_reload: Force reload settings from environment

    Returns:
        Settings instance

    """
    global _settings
    if _settings is None or force_reload:
        _settings = Settings()
    return _settings
