"""
environment_sdk
───────────────
Stable top-level exports. Import from here, not from sub-modules directly.
Every name exported here is part of the public API and subject to semver.
"""
from environment_sdk.tier0_core.config import (
    EnvironmentConfig,
    LOCAL_FQDN_VARIABLE,
    LOCAL_HOSTNAME_VARIABLE,
    LOCAL_SERVICE_DISCOVERY_IPV4_VARIABLE,
    get_config,
)
from environment_sdk.tier0_core.errors import (
    ConfigurationError,
    EnvironmentInfoError,
    ProbeUnavailable,
)
from environment_sdk.tier0_core.logging import get_logger
from environment_sdk.tier0_core.metrics import start_metrics_server

from environment_sdk.tier1_runtime.probe import ProbeResult, attempt
from environment_sdk.tier1_runtime.runtime import RuntimeDetector, get_runtime_detector
from environment_sdk.tier1_runtime.provenance import (
    parse_commit_hash,
    parse_commit_time,
    parse_build_date,
    extract_commit_hash,
    extract_commit_time,
    extract_build_date,
    extract_commit_hash_from_entry,
    extract_commit_time_from_entry,
    extract_build_date_from_entry,
)

from environment_sdk.tier2_reliability.refresh import RefreshScheduler

from environment_sdk.tier3_platform.network import UNKNOWN_HOST
from environment_sdk.tier3_platform.environment import (
    EnvironmentFacts,
    EnvironmentInfo,
    get_environment,
    application,
    host,
    fqdn,
    service_discovery_ipv4,
    process_name,
    process_id,
    base_directory,
    home_directory,
)

__version__ = "0.1.0"
__all__ = [
    # environment facts
    "EnvironmentInfo", "EnvironmentFacts", "get_environment",
    "application", "host", "fqdn", "service_discovery_ipv4",
    "process_name", "process_id", "base_directory", "home_directory",
    "UNKNOWN_HOST",
    # overrides
    "LOCAL_HOSTNAME_VARIABLE", "LOCAL_FQDN_VARIABLE",
    "LOCAL_SERVICE_DISCOVERY_IPV4_VARIABLE",
    # runtime
    "RuntimeDetector", "get_runtime_detector",
    # provenance
    "parse_commit_hash", "parse_commit_time", "parse_build_date",
    "extract_commit_hash", "extract_commit_time", "extract_build_date",
    "extract_commit_hash_from_entry", "extract_commit_time_from_entry",
    "extract_build_date_from_entry",
    # probes
    "ProbeResult", "attempt",
    # refresh
    "RefreshScheduler",
    # config
    "get_config", "EnvironmentConfig",
    # logging
    "get_logger",
    # metrics
    "start_metrics_server",
    # errors
    "EnvironmentInfoError", "ProbeUnavailable", "ConfigurationError",
]
