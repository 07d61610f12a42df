"""
environment_sdk.tier0_core.config
───────────────────────────────────
Typed configuration with env layering. Reads from .env → environment
variables. All fields are typed via Pydantic.

Two settings models live here:
  - EnvironmentConfig: SDK knobs (refresh interval, logging). Cached.
  - EnvironmentOverrides: the VOSTOK_LOCAL_* overrides. Never cached: every
                           resolution reads a fresh snapshot so a refresh
                           cycle always sees the current process environment.

Minimal stack: pydantic-settings + python-dotenv
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOCAL_HOSTNAME_VARIABLE = "VOSTOK_LOCAL_HOSTNAME"
LOCAL_FQDN_VARIABLE = "VOSTOK_LOCAL_FQDN"
LOCAL_SERVICE_DISCOVERY_IPV4_VARIABLE = "VOSTOK_LOCAL_SERVICE_DISCOVERY_IPV4"


class EnvironmentConfig(BaseSettings):
    """
    Typed SDK configuration.
    All env vars are prefixed with ENVINFO_.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Service-discovery refresh ─────────────────────────────────────────────
    refresh_interval: float = Field(default=3.0, alias="ENVINFO_SDIP_REFRESH_INTERVAL")
    refresh_autostart: bool = Field(default=True, alias="ENVINFO_SDIP_REFRESH_AUTOSTART")

    # ── Logging ───────────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", alias="ENVINFO_LOG_LEVEL")
    log_format: str = Field(default="json", alias="ENVINFO_LOG_FORMAT")

    @field_validator("refresh_interval")
    @classmethod
    def validate_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"refresh interval must be positive, got {v!r}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        allowed = {"json", "console"}
        if v.lower() not in allowed:
            raise ValueError(f"log format must be one of {allowed}, got {v!r}")
        return v.lower()


class EnvironmentOverrides(BaseSettings):
    """
    Snapshot of the local identity overrides.

    None means the variable is unset; an empty string means it is set but
    empty. The FQDN override applies whenever it is set; the hostname and
    service-discovery IPv4 overrides only when non-empty.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    local_hostname: str | None = Field(default=None, alias=LOCAL_HOSTNAME_VARIABLE)
    local_fqdn: str | None = Field(default=None, alias=LOCAL_FQDN_VARIABLE)
    local_service_discovery_ipv4: str | None = Field(
        default=None, alias=LOCAL_SERVICE_DISCOVERY_IPV4_VARIABLE
    )


@lru_cache(maxsize=1)
def get_config() -> EnvironmentConfig:
    """
    Return the singleton SDK config. Cached after first call.
    Call _reset_config() in tests to pick up new env vars.
    """
    return EnvironmentConfig()


def _reset_config() -> None:
    """For tests: clear the config cache."""
    get_config.cache_clear()


def read_overrides() -> EnvironmentOverrides:
    """Read the current override variables. Not cached."""
    return EnvironmentOverrides()


__all__ = [
    "EnvironmentConfig",
    "EnvironmentOverrides",
    "LOCAL_HOSTNAME_VARIABLE",
    "LOCAL_FQDN_VARIABLE",
    "LOCAL_SERVICE_DISCOVERY_IPV4_VARIABLE",
    "get_config",
    "read_overrides",
]
