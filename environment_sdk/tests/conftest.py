"""
environment_sdk test configuration.

Resolvers are exercised through fake collaborators: no test depends on the
DNS, interfaces or process of the machine running pytest unless it says so.
"""
from __future__ import annotations

import os
import socket

import pytest

# ── Quiet, deterministic defaults ──────────────────────────────────────────
# These must be set before any environment_sdk modules are imported.

os.environ.setdefault("ENVINFO_LOG_LEVEL", "WARNING")
os.environ.setdefault("ENVINFO_LOG_FORMAT", "console")

_OVERRIDE_VARIABLES = (
    "VOSTOK_LOCAL_HOSTNAME",
    "VOSTOK_LOCAL_FQDN",
    "VOSTOK_LOCAL_SERVICE_DISCOVERY_IPV4",
)


# ── Fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_module_singletons(monkeypatch):
    """
    Clear override variables and cached singletons around every test so no
    state bleeds between them.
    """
    from environment_sdk.tier0_core.config import _reset_config
    from environment_sdk.tier3_platform.environment import _reset_environment

    for name in _OVERRIDE_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    _reset_config()
    _reset_environment()

    yield

    _reset_environment()
    _reset_config()


# ── Fakes ──────────────────────────────────────────────────────────────────

class FakeDns:
    """In-memory DnsResolver. fail=True makes every call raise."""

    def __init__(
        self,
        hostname: str = "node-1",
        canonical: dict[str, str] | None = None,
        addresses: dict[str, list[str]] | None = None,
        fail: bool = False,
    ) -> None:
        self._hostname = hostname
        self.canonical = canonical or {}
        self.addresses = addresses or {}
        self.fail = fail
        self.lookups: list[str] = []

    def hostname(self) -> str:
        if self.fail:
            raise OSError("name service unavailable")
        return self._hostname

    def canonical_name(self, name: str) -> str:
        self.lookups.append(name)
        if self.fail or name not in self.canonical:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")
        return self.canonical[name]

    def ipv4_addresses(self, name: str) -> list[str]:
        if self.fail or name not in self.addresses:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")
        return list(self.addresses[name])


class FakeInterfaces:
    """InterfaceInventory whose routed addresses tests can swap at runtime."""

    def __init__(self, addresses: list[str] | None = None, fail: bool = False) -> None:
        self.addresses = list(addresses or [])
        self.fail = fail
        self.calls = 0

    def routed_ipv4_addresses(self) -> list[str]:
        self.calls += 1
        if self.fail:
            raise PermissionError("interface enumeration denied")
        return list(self.addresses)


class FakeDomainSuffix:
    def __init__(self, suffix: str | None) -> None:
        self.suffix = suffix

    def domain_suffix(self) -> str | None:
        return self.suffix


class FakeProcess:
    """ProcessProbe with settable facts; a BaseException value is raised instead."""

    def __init__(
        self,
        name: object = "billing-worker",
        pid: object = 4242,
        base_directory: object = "/srv/apps/billing",
        entry_module: object = "billing.worker",
    ) -> None:
        self.facts = {
            "name": name,
            "pid": pid,
            "base_directory": base_directory,
            "entry_module": entry_module,
        }

    def _get(self, key: str):
        value = self.facts[key]
        if isinstance(value, BaseException):
            raise value
        return value

    def name(self):
        return self._get("name")

    def pid(self):
        return self._get("pid")

    def base_directory(self):
        return self._get("base_directory")

    def entry_module(self):
        return self._get("entry_module")


class FakeRuntime:
    def __init__(self, is_interpreted: bool = False) -> None:
        self.is_interpreted = is_interpreted


class FakeHosting:
    def __init__(self, application_id: str | None = None) -> None:
        self._application_id = application_id

    def application_id(self) -> str | None:
        return self._application_id


@pytest.fixture
def fake_dns():
    return FakeDns(
        hostname="node-1",
        canonical={"node-1": "node-1.dc.example.com"},
        addresses={"node-1": ["172.17.0.1", "10.20.30.40"]},
    )


@pytest.fixture
def fake_interfaces():
    return FakeInterfaces(["10.20.30.40"])


@pytest.fixture
def fake_process():
    return FakeProcess()


@pytest.fixture
def fakes():
    """Fake collaborator classes, for tests that build their own variants."""
    from types import SimpleNamespace
    return SimpleNamespace(
        Dns=FakeDns,
        Interfaces=FakeInterfaces,
        DomainSuffix=FakeDomainSuffix,
        Process=FakeProcess,
        Runtime=FakeRuntime,
        Hosting=FakeHosting,
    )
