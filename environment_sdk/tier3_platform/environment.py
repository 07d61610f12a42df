"""
environment_sdk.tier3_platform.environment
────────────────────────────────────────────
The environment-facts context: one object owning every process-scoped fact.

  - application, host, fqdn, process_name, process_id, base_directory and
    home_directory are resolved lazily, once, on first read (OnceCell).
  - service_discovery_ipv4 is published by a RefreshScheduler started by the
    constructor and re-read on every access without recomputation.

No accessor ever raises. Construct one context per process via
get_environment(), or build your own with fake collaborators in tests.

Usage:
    from environment_sdk import get_environment

    env = get_environment()
    log.info("service.started", app=env.application, host=env.host,
             ip=env.service_discovery_ipv4)
"""
from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import Any

from pydantic import ValidationError

from environment_sdk.tier0_core.config import EnvironmentConfig, get_config
from environment_sdk.tier0_core.logging import get_logger
from environment_sdk.tier1_runtime.cells import OnceCell, PublishedCell
from environment_sdk.tier2_reliability.refresh import DEFAULT_INTERVAL, RefreshScheduler
from environment_sdk.tier3_platform.identity import IdentityResolver
from environment_sdk.tier3_platform.network import NetworkIdentityResolver

log = get_logger(__name__)


@dataclass(frozen=True)
class EnvironmentFacts:
    """Immutable snapshot of every environment fact."""
    application: str | None
    host: str
    fqdn: str | None
    service_discovery_ipv4: str | None
    process_name: str | None
    process_id: int | None
    base_directory: str | None
    home_directory: str | None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class EnvironmentInfo:
    """Provides information about the environment hosting the application."""

    def __init__(
        self,
        identity: IdentityResolver | None = None,
        network: NetworkIdentityResolver | None = None,
        *,
        refresh_interval: float | None = None,
        autostart: bool = True,
    ) -> None:
        self._identity = identity or IdentityResolver()
        self._network = network or NetworkIdentityResolver()

        self._application = OnceCell(self._identity.resolve_application_name)
        self._host = OnceCell(self._network.resolve_hostname)
        self._fqdn = OnceCell(self._network.resolve_fqdn)
        self._process_name = OnceCell(self._identity.resolve_process_name)
        self._process_id = OnceCell(self._identity.resolve_process_id)
        self._base_directory = OnceCell(self._identity.resolve_base_directory)
        self._home_directory = OnceCell(self._identity.resolve_home_directory)

        self._service_discovery_ipv4: PublishedCell[str] = PublishedCell()
        self._refresher: RefreshScheduler[str] = RefreshScheduler(
            self._network.resolve_service_discovery_ipv4,
            self._service_discovery_ipv4,
            interval=DEFAULT_INTERVAL if refresh_interval is None else refresh_interval,
        )

        if autostart:
            self.start()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Publish the service-discovery IPv4 once and keep it refreshed."""
        self._refresher.start()

    def close(self) -> None:
        """Stop the refresh loop. Memoized facts stay readable."""
        self._refresher.stop()

    def __enter__(self) -> "EnvironmentInfo":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def refresher(self) -> RefreshScheduler[str]:
        return self._refresher

    # ── Facts ─────────────────────────────────────────────────────────────────

    @property
    def application(self) -> str | None:
        """Name of the application."""
        return self._application.get()

    @property
    def host(self) -> str:
        """Name of the machine running the application. Never empty."""
        return self._host.get()

    @property
    def fqdn(self) -> str | None:
        """Fully qualified domain name of the machine."""
        return self._fqdn.get()

    @property
    def service_discovery_ipv4(self) -> str | None:
        """
        IPv4 through which the application is reachable on the hosting network.
        Refreshed in the background; may lag by up to one refresh interval.
        """
        return self._service_discovery_ipv4.get()

    @property
    def process_name(self) -> str | None:
        return self._process_name.get()

    @property
    def process_id(self) -> int | None:
        return self._process_id.get()

    @property
    def base_directory(self) -> str | None:
        """Directory of the entry script (or frozen executable)."""
        return self._base_directory.get()

    @property
    def home_directory(self) -> str | None:
        """Home directory of the current user."""
        return self._home_directory.get()

    def snapshot(self) -> EnvironmentFacts:
        return EnvironmentFacts(
            application=self.application,
            host=self.host,
            fqdn=self.fqdn,
            service_discovery_ipv4=self.service_discovery_ipv4,
            process_name=self.process_name,
            process_id=self.process_id,
            base_directory=self.base_directory,
            home_directory=self.home_directory,
        )


# ── Default context ───────────────────────────────────────────────────────────

_environment: EnvironmentInfo | None = None
_environment_lock = threading.Lock()


def _load_config() -> EnvironmentConfig:
    try:
        return get_config()
    except ValidationError as exc:
        log.warning(
            "environment.config.invalid",
            error_count=exc.error_count(),
            fields=[".".join(str(loc) for loc in err["loc"]) for err in exc.errors()],
        )
        return EnvironmentConfig.model_construct()


def get_environment() -> EnvironmentInfo:
    """
    Return the process-wide context, creating and starting it on first use.
    Invalid ENVINFO_* settings are logged and replaced by the defaults.
    """
    global _environment
    if _environment is None:
        with _environment_lock:
            if _environment is None:
                config = _load_config()
                _environment = EnvironmentInfo(
                    refresh_interval=config.refresh_interval,
                    autostart=config.refresh_autostart,
                )
                log.info("environment.created", refresh_interval=config.refresh_interval)
    return _environment


def _reset_environment() -> None:
    """For tests: stop and drop the default context."""
    global _environment
    with _environment_lock:
        if _environment is not None:
            _environment.close()
        _environment = None


# ── Public API ────────────────────────────────────────────────────────────────

def application() -> str | None:
    return get_environment().application


def host() -> str:
    return get_environment().host


def fqdn() -> str | None:
    return get_environment().fqdn


def service_discovery_ipv4() -> str | None:
    return get_environment().service_discovery_ipv4


def process_name() -> str | None:
    return get_environment().process_name


def process_id() -> int | None:
    return get_environment().process_id


def base_directory() -> str | None:
    return get_environment().base_directory


def home_directory() -> str | None:
    return get_environment().home_directory


__all__ = [
    "EnvironmentFacts",
    "EnvironmentInfo",
    "get_environment",
    "application",
    "host",
    "fqdn",
    "service_discovery_ipv4",
    "process_name",
    "process_id",
    "base_directory",
    "home_directory",
]
