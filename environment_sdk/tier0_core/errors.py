"""
environment_sdk.tier0_core.errors
───────────────────────────────────
Error taxonomy. Probe-level errors never escape a resolver: they are raised
inside a probe implementation and absorbed by tier1_runtime.probe.attempt().
The only error a caller can observe is ConfigurationError, at construction.
"""
from __future__ import annotations

from typing import Any


# ── Base error ────────────────────────────────────────────────────────────────

class EnvironmentInfoError(Exception):
    """
    Base class for all SDK errors. Every error has:
    - code: stable machine-readable string (snake_case)
    - detail: internal context
    - metadata: structured fields for logging
    """

    code: str = "environment_error"

    def __init__(
        self,
        detail: str = "Environment information is unavailable.",
        code: str | None = None,
        **metadata: Any,
    ) -> None:
        self.code = code or self.__class__.code
        self.detail = detail
        self.metadata = metadata
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.detail,
                **self.metadata,
            }
        }


# ── Typed error classes ───────────────────────────────────────────────────────

class ProbeUnavailable(EnvironmentInfoError):
    """A probe ran but the fact it looks for does not exist on this host."""
    code = "probe_unavailable"


class ConfigurationError(EnvironmentInfoError):
    """Misconfiguration detected at construction."""
    code = "configuration_error"


__all__ = ["EnvironmentInfoError", "ProbeUnavailable", "ConfigurationError"]
