from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environments."""

    DEVELOPMENT = "dev"
    STAGING = "staging"
    PRODUCTION = "prod"
    TEST = "test"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Current environment (dev, staging, prod or test)",
    )


class ProvisioningSettings(BaseSettings):
    """Tunables for provisioning, the retry queue and the number pool."""

    model_config = SettingsConfigDict(
        case_sensitive=False, extra="ignore", env_prefix="PROVISIONING_"
    )

    pool_regions: list[str] = Field(
        default_factory=lambda: ["IE"],
        description="Regions served from pre-purchased pool inventory",
    )
    number_label_prefix: str = Field(
        default="Phone", description="Prefix for human-readable number labels"
    )

    # Retry queue
    retry_max_attempts: int = Field(
        default=5, description="Attempts before a queue item is left failed"
    )
    retry_delays_seconds: list[int] = Field(
        default_factory=lambda: [60, 300, 900, 3600, 7200],
        description="Backoff schedule between retry attempts",
    )
    retry_batch_size: int = Field(
        default=10, description="Queue items processed per sweep"
    )
    retry_sweep_interval_seconds: int = Field(
        default=60, description="Seconds between retry sweeps"
    )

    # Number pool
    reservation_minutes: int = Field(
        default=15, description="How long a checkout reservation holds a number"
    )
    recycle_cooldown_hours: int = Field(
        default=24, description="Hours before a released pool number is reusable"
    )
    pool_low_stock_threshold: int = Field(
        default=3, description="Warn when available pool numbers drop below this"
    )
    pool_maintenance_interval_seconds: int = Field(
        default=300, description="Seconds between pool maintenance runs"
    )


_app_settings: AppSettings | None = None
_provisioning_settings: ProvisioningSettings | None = None


def get_app_settings() -> AppSettings:
    global _app_settings
    if _app_settings is None:
        _app_settings = AppSettings()
    return _app_settings


def get_provisioning_settings() -> ProvisioningSettings:
    """
    Get the global provisioning settings instance.

    Returns:
        ProvisioningSettings: The global settings instance
    """
    global _provisioning_settings
    if _provisioning_settings is None:
        _provisioning_settings = ProvisioningSettings()
    return _provisioning_settings


def set_provisioning_settings(settings: ProvisioningSettings) -> None:
    """
    Set the global provisioning settings instance.

    Useful for testing.

    Args:
        settings: The settings to set
    """
    global _provisioning_settings
    _provisioning_settings = settings
