"""
environment_sdk.tier1_runtime.provenance
──────────────────────────────────────────
Source-control provenance embedded in package metadata.

Release builds stamp a free-text block into the distribution's Summary or
Description, for example:

    Commit: c2c780c5a3c3b58f072a93b89e508d0a622aa332
    Author: someone
    Date: 2021-06-08 16:58:19 +0500
    Build date: 2021-07-02T15:24:38.3740000+05:00

or carry the commit as the local version segment ("1.4.2+c2c780c5...").
The parse_* functions read such a block; the extract_* functions locate it
in installed distribution metadata. None of them raise.
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from importlib import metadata

from environment_sdk.tier1_runtime.probe import attempt, isolated
from environment_sdk.tier1_runtime.runtime import entry_module_name

_COMMIT_RE = re.compile(r"^[ \t]*Commit:[ \t]*([0-9a-fA-F]{40})\b", re.MULTILINE)
_DATE_RE = re.compile(r"^[ \t]*Date:[ \t]*(\S.*?)[ \t\r]*$", re.MULTILINE)
_BUILD_DATE_RE = re.compile(r"^[ \t]*Build date:[ \t]*(\S.*?)[ \t\r]*$", re.MULTILINE)

_TIMESTAMP_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[T ](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d+))?"
    r"\s*(Z|[+-]\d{2}:?\d{2})$"
)


# ── Text parsing ───────────────────────────────────────────────────────────

def parse_commit_hash(text: str | None) -> str | None:
    """Return the 40-hex commit sha from a `Commit:` line."""
    if not text:
        return None
    match = _COMMIT_RE.search(text)
    return match.group(1) if match else None


def parse_commit_time(text: str | None) -> datetime | None:
    """Return the timezone-aware instant from a `Date:` line."""
    return _parse_line(_DATE_RE, text)


def parse_build_date(text: str | None) -> datetime | None:
    """Return the timezone-aware instant from a `Build date:` line."""
    return _parse_line(_BUILD_DATE_RE, text)


def _parse_line(pattern: re.Pattern[str], text: str | None) -> datetime | None:
    if not text:
        return None
    match = pattern.search(text)
    if match is None:
        return None
    return parse_timestamp(match.group(1))


def parse_timestamp(raw: str) -> datetime | None:
    """
    Parse `YYYY-MM-DD[T ]HH:MM:SS[.fraction] <offset>`.

    The offset is required (`Z`, `+HHMM` or `+HH:MM`). Fractions longer than
    microseconds are truncated.
    """
    match = _TIMESTAMP_RE.match(raw.strip())
    if match is None:
        return None
    year, month, day, hour, minute, second, fraction, offset = match.groups()
    micros = int((fraction or "0")[:6].ljust(6, "0"))
    try:
        return datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second), micros,
            tzinfo=_parse_offset(offset),
        )
    except ValueError:
        return None


def _parse_offset(raw: str) -> timezone:
    if raw == "Z":
        return timezone.utc
    sign = -1 if raw[0] == "-" else 1
    digits = raw[1:].replace(":", "")
    delta = timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
    return timezone(sign * delta)


# ── Distribution metadata ──────────────────────────────────────────────────

DistributionRef = str | metadata.Distribution


def _distribution(ref: DistributionRef | None) -> metadata.Distribution | None:
    if ref is None:
        return None
    if isinstance(ref, metadata.Distribution):
        return ref
    return metadata.distribution(ref)


def _title_blocks(dist: metadata.Distribution) -> list[str]:
    """Summary first, then the long description."""
    meta = dist.metadata.json
    blocks = []
    for key in ("summary", "description"):
        value = meta.get(key)
        if isinstance(value, str) and value:
            blocks.append(value)
    return blocks


def _commit_from_version(dist: metadata.Distribution) -> str | None:
    parts = [p for p in (dist.version or "").split("+") if p]
    if len(parts) == 2:
        return parts[1]
    return None


@isolated("provenance.commit_hash")
def extract_commit_hash(ref: DistributionRef | None) -> str | None:
    """
    Commit hash of an installed distribution.

    The local version segment wins; otherwise the Summary, then the
    Description, are searched for a `Commit:` line.
    """
    dist = _distribution(ref)
    if dist is None:
        return None
    commit = attempt("provenance.version_local", _commit_from_version, dist).or_none()
    if commit:
        return commit
    for block in _title_blocks(dist):
        commit = parse_commit_hash(block)
        if commit:
            return commit
    return None


@isolated("provenance.commit_time")
def extract_commit_time(ref: DistributionRef | None) -> datetime | None:
    """Commit time from the `Date:` line of the distribution's metadata text."""
    dist = _distribution(ref)
    if dist is None:
        return None
    for block in _title_blocks(dist):
        parsed = parse_commit_time(block)
        if parsed is not None:
            return parsed
    return None


@isolated("provenance.build_date")
def extract_build_date(ref: DistributionRef | None) -> datetime | None:
    """Build date from the `Build date:` line of the distribution's metadata text."""
    dist = _distribution(ref)
    if dist is None:
        return None
    for block in _title_blocks(dist):
        parsed = parse_build_date(block)
        if parsed is not None:
            return parsed
    return None


@isolated("provenance.entry_distribution")
def entry_distribution() -> str | None:
    """Name of the installed distribution that provides the entry module."""
    module = entry_module_name()
    if not module:
        return None
    top_level = module.split(".", 1)[0]
    owners = metadata.packages_distributions().get(top_level) or []
    return owners[0] if owners else None


def extract_commit_hash_from_entry() -> str | None:
    return extract_commit_hash(entry_distribution())


def extract_commit_time_from_entry() -> datetime | None:
    return extract_commit_time(entry_distribution())


def extract_build_date_from_entry() -> datetime | None:
    return extract_build_date(entry_distribution())


__all__ = [
    "parse_commit_hash",
    "parse_commit_time",
    "parse_build_date",
    "parse_timestamp",
    "extract_commit_hash",
    "extract_commit_time",
    "extract_build_date",
    "entry_distribution",
    "extract_commit_hash_from_entry",
    "extract_commit_time_from_entry",
    "extract_build_date_from_entry",
]
