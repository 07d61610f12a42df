"""
environment_sdk.tier3_platform.identity
─────────────────────────────────────────
Application and process identity: application name, process name and id,
base directory and home directory.

Every step is an independent probe. A failing probe contributes nothing and
the chain moves on; no resolver here ever raises.

Platform-specific lookups sit behind small provider protocols selected at
startup, so tests inject fakes instead of patching the OS:
  - ProcessProbe: OsProcessProbe (psutil + os)
  - HostingEnvironment: AppServiceHostingEnvironment | NullHostingEnvironment
"""
from __future__ import annotations

import os
import re
import sys
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

import psutil

from environment_sdk.tier0_core.errors import ProbeUnavailable
from environment_sdk.tier1_runtime.probe import attempt
from environment_sdk.tier1_runtime.runtime import (
    RuntimeDetector,
    entry_module_name,
    get_runtime_detector,
)

# Process names that identify the host, not the application.
_GENERIC_HOST_PROCESSES = frozenset({"w3wp", "iisexpress", "uwsgi", "gunicorn", "celery"})
_INTERPRETER_RE = re.compile(r"(python|pypy)[\d.]*w?")


def is_generic_host_process(name: str) -> bool:
    """True for interpreter and hosting-server process names (case-insensitive)."""
    normalized = name.lower()
    if normalized.endswith(".exe"):
        normalized = normalized[: -len(".exe")]
    return normalized in _GENERIC_HOST_PROCESSES or bool(_INTERPRETER_RE.fullmatch(normalized))


# ── Process probe ─────────────────────────────────────────────────────────────

@runtime_checkable
class ProcessProbe(Protocol):
    """OS-level facts about the current process. Methods may raise; callers isolate."""

    def name(self) -> str | None: ...

    def pid(self) -> int | None: ...

    def base_directory(self) -> str | None: ...

    def entry_module(self) -> str | None: ...


class OsProcessProbe:
    """Reads the current process through psutil and the interpreter."""

    def name(self) -> str | None:
        return psutil.Process().name() or None

    def pid(self) -> int | None:
        return os.getpid()

    def base_directory(self) -> str | None:
        if getattr(sys, "frozen", False):
            return os.path.dirname(os.path.abspath(sys.executable))
        main = sys.modules.get("__main__")
        path = getattr(main, "__file__", None)
        if path:
            return os.path.dirname(os.path.abspath(path))
        return os.getcwd()

    def entry_module(self) -> str | None:
        return entry_module_name()


# ── Hosting environment ───────────────────────────────────────────────────────

@runtime_checkable
class HostingEnvironment(Protocol):
    """Application identifier assigned by a hosting platform, if any."""

    def application_id(self) -> str | None: ...


class NullHostingEnvironment:
    """No hosting platform detected."""

    def application_id(self) -> str | None:
        return None


class AppServiceHostingEnvironment:
    """
    IIS-backed App Service hosting.
    Site name from WEBSITE_SITE_NAME, virtual path from the WSGI SCRIPT_NAME.
    A root virtual path contributes nothing.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def application_id(self) -> str | None:
        site = self._environ.get("WEBSITE_SITE_NAME")
        if not site:
            raise ProbeUnavailable("WEBSITE_SITE_NAME is not set")
        virtual_path = (self._environ.get("SCRIPT_NAME") or "").strip("/")
        if not virtual_path:
            return site
        return f"{site}/{virtual_path}"


def detect_hosting_environment(environ: Mapping[str, str] | None = None) -> HostingEnvironment:
    environ = os.environ if environ is None else environ
    if environ.get("WEBSITE_SITE_NAME"):
        return AppServiceHostingEnvironment(environ)
    return NullHostingEnvironment()


# ── Home directory ────────────────────────────────────────────────────────────

def _user_profile(environ: Mapping[str, str]) -> str | None:
    if sys.platform == "win32":
        return environ.get("USERPROFILE") or None
    import pwd
    return pwd.getpwuid(os.getuid()).pw_dir or None


# ── Resolver ──────────────────────────────────────────────────────────────────

class IdentityResolver:
    """Ordered fallback chains for application and process identity."""

    def __init__(
        self,
        process: ProcessProbe | None = None,
        runtime: RuntimeDetector | None = None,
        hosting: HostingEnvironment | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._environ = os.environ if environ is None else environ
        self._process = process or OsProcessProbe()
        self._runtime = runtime or get_runtime_detector()
        self._hosting = hosting or detect_hosting_environment(self._environ)

    def resolve_process_name(self) -> str | None:
        return attempt("process.name", self._process.name).or_none()

    def resolve_process_id(self) -> int | None:
        return attempt("process.pid", self._process.pid).or_none()

    def resolve_base_directory(self) -> str | None:
        return attempt("process.base_directory", self._process.base_directory).or_none()

    def resolve_home_directory(self) -> str | None:
        home = attempt("home.HOME", self._environ.get, "HOME").or_none()
        if home:
            return home

        drive = attempt("home.HOMEDRIVE", self._environ.get, "HOMEDRIVE").or_none()
        path = attempt("home.HOMEPATH", self._environ.get, "HOMEPATH").or_none()
        if drive and path:
            return drive + path

        return attempt("home.user_profile", _user_profile, self._environ).or_none()

    def resolve_application_name(self) -> str | None:
        return attempt("identity.application", self._application_chain).or_none()

    def _entry_module(self) -> str | None:
        return attempt("process.entry_module", self._process.entry_module).or_none() or None

    def _application_chain(self) -> str | None:
        interpreted = attempt("runtime.is_interpreted", lambda: self._runtime.is_interpreted)
        if interpreted.or_else(False):
            return self._entry_module()

        process_name = self.resolve_process_name()
        if process_name and not is_generic_host_process(process_name):
            return process_name

        entry = self._entry_module()
        if entry:
            return entry

        hosted = attempt("hosting.application_id", self._hosting.application_id).or_none()
        if hosted:
            return hosted

        base = self.resolve_base_directory()
        segments = [part for part in base.split(os.sep) if part][1:] if base else []
        if process_name:
            segments.append(process_name)
        return "/".join(segments) or None


__all__ = [
    "ProcessProbe",
    "OsProcessProbe",
    "HostingEnvironment",
    "NullHostingEnvironment",
    "AppServiceHostingEnvironment",
    "detect_hosting_environment",
    "is_generic_host_process",
    "IdentityResolver",
]
