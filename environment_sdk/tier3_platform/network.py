"""
environment_sdk.tier3_platform.network
────────────────────────────────────────
Network identity: hostname, fully-qualified domain name and the
service-discovery IPv4 address.

The service-discovery IPv4 is the one address that is both advertised for
this host in DNS and bound to an interface with real outbound routing (up,
with a non-0.0.0.0 gateway). Bridges, VPN tunnels, container veths and
loopback fail one of those tests.

OS collaborators sit behind provider protocols selected at startup:
  - DnsResolver: SocketDnsResolver
  - DomainSuffixProbe: WindowsDomainSuffixProbe | NullDomainSuffixProbe
  - GatewayTable: ProcNetRouteGateways (Linux) | DefaultRouteGateways
  - InterfaceInventory: PsutilInterfaceInventory

Overrides: VOSTOK_LOCAL_HOSTNAME, VOSTOK_LOCAL_FQDN,
           VOSTOK_LOCAL_SERVICE_DISCOVERY_IPV4
"""
from __future__ import annotations

import ipaddress
import os
import socket
import sys
from typing import Callable, Protocol, runtime_checkable

import psutil

from environment_sdk.tier0_core.config import EnvironmentOverrides, read_overrides
from environment_sdk.tier0_core.errors import ProbeUnavailable
from environment_sdk.tier1_runtime.probe import attempt

UNKNOWN_HOST = "unknown"

# TEST-NET-1: only ever reachable through the default route.
_DEFAULT_ROUTE_PROBE_ADDRESS = ("192.0.2.1", 9)


# ── DNS ───────────────────────────────────────────────────────────────────────

@runtime_checkable
class DnsResolver(Protocol):
    def hostname(self) -> str: ...

    def canonical_name(self, name: str) -> str: ...

    def ipv4_addresses(self, name: str) -> list[str]: ...


class SocketDnsResolver:
    """Resolver backed by the system's name service via the socket module."""

    def hostname(self) -> str:
        return socket.gethostname()

    def canonical_name(self, name: str) -> str:
        return socket.gethostbyname_ex(name)[0]

    def ipv4_addresses(self, name: str) -> list[str]:
        seen: list[str] = []
        for *_, sockaddr in socket.getaddrinfo(name, None, socket.AF_INET):
            address = sockaddr[0]
            if address not in seen:
                seen.append(address)
        return seen


# ── Domain suffix ─────────────────────────────────────────────────────────────

@runtime_checkable
class DomainSuffixProbe(Protocol):
    def domain_suffix(self) -> str | None: ...


class NullDomainSuffixProbe:
    """Non-Windows hosts: the FQDN comes from DNS canonicalization instead."""

    def domain_suffix(self) -> str | None:
        return None


class WindowsDomainSuffixProbe:
    """Primary DNS suffix from the TCP/IP registry parameters, then USERDNSDOMAIN."""

    _KEY = r"SYSTEM\CurrentControlSet\Services\Tcpip\Parameters"

    def domain_suffix(self) -> str | None:
        import winreg

        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, self._KEY) as key:
            for value_name in ("Domain", "NV Domain"):
                try:
                    value, _ = winreg.QueryValueEx(key, value_name)
                except FileNotFoundError:
                    continue
                if value:
                    return str(value)
        suffix = os.environ.get("USERDNSDOMAIN")
        if suffix:
            return suffix
        raise ProbeUnavailable("machine has no primary DNS suffix")


def detect_domain_suffix_probe() -> DomainSuffixProbe:
    if sys.platform == "win32":
        return WindowsDomainSuffixProbe()
    return NullDomainSuffixProbe()


# ── Gateways ──────────────────────────────────────────────────────────────────

@runtime_checkable
class GatewayTable(Protocol):
    def gateway_interfaces(self) -> set[str]:
        """Names of interfaces with at least one gateway other than 0.0.0.0."""
        ...


class ProcNetRouteGateways:
    """Linux IPv4 routing table. Gateways are little-endian hex; 00000000 is "any"."""

    def __init__(self, path: str = "/proc/net/route") -> None:
        self._path = path

    def gateway_interfaces(self) -> set[str]:
        with open(self._path, encoding="ascii") as fh:
            lines = fh.read().splitlines()
        return parse_proc_net_route(lines)


def parse_proc_net_route(lines: list[str]) -> set[str]:
    interfaces: set[str] = set()
    for line in lines[1:]:
        fields = line.split()
        if len(fields) < 3:
            continue
        iface, gateway = fields[0], fields[2]
        try:
            if int(gateway, 16) != 0:
                interfaces.add(iface)
        except ValueError:
            continue
    return interfaces


class DefaultRouteGateways:
    """
    Portable fallback: let the kernel pick a source address for a default-route
    destination (UDP connect sends nothing) and map it back to its interface.
    """

    def gateway_interfaces(self) -> set[str]:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(_DEFAULT_ROUTE_PROBE_ADDRESS)
            source = sock.getsockname()[0]
        if not source or source == "0.0.0.0":
            return set()
        return {
            iface
            for iface, addrs in psutil.net_if_addrs().items()
            if any(a.family == socket.AF_INET and a.address == source for a in addrs)
        }


def detect_gateway_table() -> GatewayTable:
    if sys.platform.startswith("linux") and os.path.exists("/proc/net/route"):
        return ProcNetRouteGateways()
    return DefaultRouteGateways()


# ── Interfaces ────────────────────────────────────────────────────────────────

@runtime_checkable
class InterfaceInventory(Protocol):
    def routed_ipv4_addresses(self) -> list[str]:
        """IPv4 unicast addresses of up, gatewayed interfaces, in enumeration order."""
        ...


class PsutilInterfaceInventory:
    def __init__(self, gateways: GatewayTable | None = None) -> None:
        self._gateways = gateways or detect_gateway_table()

    def routed_ipv4_addresses(self) -> list[str]:
        stats = psutil.net_if_stats()
        routed = self._gateways.gateway_interfaces()
        addresses: list[str] = []
        for iface, addrs in psutil.net_if_addrs().items():
            state = stats.get(iface)
            if state is None or not state.isup or iface not in routed:
                continue
            for addr in addrs:
                if addr.family == socket.AF_INET and addr.address:
                    addresses.append(addr.address)
        return addresses


# ── Resolver ──────────────────────────────────────────────────────────────────

def _is_loopback(address: str) -> bool:
    return ipaddress.ip_address(address).is_loopback


class NetworkIdentityResolver:
    """Ordered fallback chains for hostname, FQDN and service-discovery IPv4."""

    def __init__(
        self,
        dns: DnsResolver | None = None,
        interfaces: InterfaceInventory | None = None,
        domain_suffix: DomainSuffixProbe | None = None,
        overrides: Callable[[], EnvironmentOverrides] = read_overrides,
    ) -> None:
        self._dns = dns or SocketDnsResolver()
        self._interfaces = interfaces or PsutilInterfaceInventory()
        self._domain_suffix = domain_suffix or detect_domain_suffix_probe()
        self._overrides = overrides

    def _read_overrides(self) -> EnvironmentOverrides:
        return attempt("config.overrides", self._overrides).or_else(EnvironmentOverrides.model_construct())

    def resolve_hostname(self) -> str:
        """Never empty: falls back to the "unknown" sentinel."""
        override = self._read_overrides().local_hostname
        if override:
            return override
        return attempt("dns.hostname", self._dns.hostname).or_none() or UNKNOWN_HOST

    def resolve_fqdn(self) -> str | None:
        result = attempt("network.fqdn", self._fqdn_chain)
        if result:
            return result.value
        return self.resolve_hostname()

    def _fqdn_chain(self) -> str | None:
        overrides = self._read_overrides()
        if overrides.local_fqdn is not None:
            return overrides.local_fqdn

        if overrides.local_hostname:
            return self._dns.canonical_name(overrides.local_hostname)

        suffix = attempt("network.domain_suffix", self._domain_suffix.domain_suffix).or_none()
        if suffix:
            suffix = "." + suffix.lstrip(".")
            hostname = self.resolve_hostname()
            if hostname.endswith(suffix):
                return hostname
            return hostname + suffix

        return self._dns.canonical_name(self.resolve_hostname())

    def resolve_service_discovery_ipv4(self) -> str | None:
        return attempt("network.service_discovery_ipv4", self._service_discovery_chain).or_none()

    def _service_discovery_chain(self) -> str | None:
        override = self._read_overrides().local_service_discovery_ipv4
        if override:
            return override

        advertised = set(self._dns.ipv4_addresses(self.resolve_hostname()))
        if not advertised:
            return None

        for address in self._interfaces.routed_ipv4_addresses():
            if address in advertised and not _is_loopback(address):
                return address
        return None


__all__ = [
    "UNKNOWN_HOST",
    "DnsResolver",
    "SocketDnsResolver",
    "DomainSuffixProbe",
    "NullDomainSuffixProbe",
    "WindowsDomainSuffixProbe",
    "detect_domain_suffix_probe",
    "GatewayTable",
    "ProcNetRouteGateways",
    "DefaultRouteGateways",
    "parse_proc_net_route",
    "detect_gateway_table",
    "InterfaceInventory",
    "PsutilInterfaceInventory",
    "NetworkIdentityResolver",
]
