"""
environment_sdk.tier0_core.logging
────────────────────────────────────
Structured logs with levels and automatic context injection. Probe failures
and refresh-loop lifecycle events are emitted here; nothing in the SDK ever
prints.

The refresh loop runs on its own thread inside library code, often
before the host application has configured logging, so its failures would
otherwise vanish. The stdout handler is therefore attached to the
"environment_sdk" logger only, never to the root logger: the host keeps full
control of its own handlers and can silence these with
logging.getLogger("environment_sdk").handlers.clear() or ENVINFO_LOG_LEVEL.

Minimal stack: structlog (stdout JSON or console)
Configure via: ENVINFO_LOG_LEVEL, ENVINFO_LOG_FORMAT=json|console
"""
from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog


# ── Configuration ─────────────────────────────────────────────────────────────

def _configure_structlog() -> None:
    log_level = os.getenv("ENVINFO_LOG_LEVEL", "INFO").upper()
    log_format = os.getenv("ENVINFO_LOG_FORMAT", "json").lower()

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    sdk_logger = logging.getLogger("environment_sdk")
    sdk_logger.addHandler(handler)
    sdk_logger.setLevel(getattr(logging, log_level, logging.INFO))


# ── Public API ────────────────────────────────────────────────────────────────

_configured = False


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Return a structured logger bound to the given name.

    Usage:
        log = get_logger(__name__)
        log.debug("probe.unavailable", probe="dns.canonical_name", error="...")
        log.info("sdip.refresh.started", interval=3.0)
    """
    global _configured
    if not _configured:
        _configure_structlog()
        _configured = True
    return structlog.get_logger(name or __name__)


__all__ = ["get_logger"]
