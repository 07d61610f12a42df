"""
environment_sdk.tier1_runtime.runtime
───────────────────────────────────────
Runtime edition detection. Independent boolean facts about which interpreter
hosts the process and how it was launched. Each fact is probed once per
detector and reads False when its probe fails.

The identity resolver uses is_interpreted to decide whether the OS process
name means anything: under a stock interpreter it is always "python3.x", so
only the entry module names the application.
"""
from __future__ import annotations

import sys
import sysconfig
from functools import cached_property
from pathlib import PurePath

from environment_sdk.tier1_runtime.probe import attempt

_INTERPRETERS = frozenset({"cpython", "pypy", "graalpy"})


class RuntimeDetector:
    """Determines the runtime on which the application is running."""

    @cached_property
    def implementation(self) -> str | None:
        """Lower-case interpreter name (cpython, pypy, graalpy, ...)."""
        return attempt("runtime.implementation", lambda: sys.implementation.name.lower()).or_none()

    @cached_property
    def is_cpython(self) -> bool:
        return self.implementation == "cpython"

    @cached_property
    def is_pypy(self) -> bool:
        return self.implementation == "pypy"

    @cached_property
    def is_graalpy(self) -> bool:
        return self.implementation == "graalpy"

    @cached_property
    def is_frozen(self) -> bool:
        """True inside a bundled executable (PyInstaller, cx_Freeze, py2exe)."""
        return attempt("runtime.frozen", lambda: bool(getattr(sys, "frozen", False))).or_else(False)

    @cached_property
    def is_interpreted(self) -> bool:
        """True when a stock interpreter runs the entry module as a script or -m target."""
        return not self.is_frozen and self.implementation in _INTERPRETERS

    @cached_property
    def is_free_threaded(self) -> bool:
        """True on a free-threaded (no-GIL) build."""
        return attempt(
            "runtime.free_threaded",
            lambda: bool(sysconfig.get_config_var("Py_GIL_DISABLED")),
        ).or_else(False)

    @cached_property
    def is_python_311_and_newer(self) -> bool:
        return self._at_least(3, 11)

    @cached_property
    def is_python_312_and_newer(self) -> bool:
        return self._at_least(3, 12)

    @cached_property
    def is_python_313_and_newer(self) -> bool:
        return self._at_least(3, 13)

    def _at_least(self, major: int, minor: int) -> bool:
        return attempt(
            f"runtime.python_{major}{minor}",
            lambda: tuple(sys.version_info[:2]) >= (major, minor),
        ).or_else(False)

    def as_dict(self) -> dict[str, object]:
        return {
            "implementation": self.implementation,
            "is_cpython": self.is_cpython,
            "is_pypy": self.is_pypy,
            "is_graalpy": self.is_graalpy,
            "is_frozen": self.is_frozen,
            "is_interpreted": self.is_interpreted,
            "is_free_threaded": self.is_free_threaded,
            "is_python_311_and_newer": self.is_python_311_and_newer,
            "is_python_312_and_newer": self.is_python_312_and_newer,
            "is_python_313_and_newer": self.is_python_313_and_newer,
        }


# ── Entry module ───────────────────────────────────────────────────────────

def entry_module_name() -> str | None:
    """
    Declared name of the module the process was started with.

    `python -m pkg.tool` gives "pkg.tool", `python -m pkg` gives "pkg",
    `python tool.py` and console scripts give the file stem ("tool").
    Returns None for interactive sessions and embedded interpreters.
    """
    main = sys.modules.get("__main__")
    spec = getattr(main, "__spec__", None)
    spec_name = getattr(spec, "name", None)
    if spec_name:
        if spec_name.endswith(".__main__"):
            spec_name = spec_name[: -len(".__main__")]
        return spec_name

    path = getattr(main, "__file__", None) or (sys.argv[0] if sys.argv else None)
    if not path or path == "-c":
        return None
    stem = PurePath(path).stem
    return stem or None


# ── Module-level singleton ─────────────────────────────────────────────────

_detector = RuntimeDetector()


def get_runtime_detector() -> RuntimeDetector:
    """Return the process-wide detector."""
    return _detector


__all__ = ["RuntimeDetector", "entry_module_name", "get_runtime_detector"]
