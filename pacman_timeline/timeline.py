#!/usr/bin/env python3
"""Build the package timeline: refresh the cache, reconcile, filter."""

import logging
import time
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import dateparser

from .cache import CacheStore, is_stale
from .fingerprint import compute_fingerprint
from .models import (
    SENTINEL_TIMESTAMP,
    CacheRecord,
    PackageEvent,
    PackageStatus,
    ReconciledEntry,
)
from .parser import parse_log, parse_timestamp
from .sources import (
    DEFAULT_LOG_PATH,
    get_log_size,
    query_installed_packages,
    read_log,
)

logger = logging.getLogger(__name__)


class DateRangeError(ValueError):
    """A --from-date or --to-date expression could not be parsed."""


def ensure_fresh_cache(
    cache_store: Optional[CacheStore],
    packages: Sequence[str],
    log_path: Path = DEFAULT_LOG_PATH,
    workers: int = 1,
) -> CacheRecord:
    """Return a record matching the current system, re-parsing only if needed.

    On a cache hit the log is only stat'ed, never read, and nothing is
    written. Otherwise the log is parsed from scratch and the new record is
    saved. A failed save is logged and does not affect the returned record.

    Args:
        cache_store: Store to read and write, or None to always parse without caching
        packages: Installed package names in the order pacman reports them
        log_path: Path to the pacman log
        workers: Number of processes for parsing the log

    Returns:
        The cached or freshly built record.
    """
    fingerprint = compute_fingerprint(packages)
    log_size = get_log_size(log_path)

    cached_record = None
    if cache_store is not None:
        t_load = time.time()
        cached_record = cache_store.load()
        logger.debug(
            "Loaded cache %s in %.3fs", cache_store.cache_path, time.time() - t_load
        )
    if cached_record is not None and not is_stale(cached_record, fingerprint, log_size):
        logger.debug("Cache hit: %d events", len(cached_record.events))
        return cached_record

    logger.debug("Cache miss, parsing %s", log_path)
    t_parse = time.time()
    content = read_log(log_path) or b""
    record = CacheRecord(
        version=cache_store.library_version if cache_store is not None else "unknown",
        fingerprint=fingerprint,
        # Length of what was actually parsed, in case the log grew since the stat
        log_byte_length=len(content),
        events=parse_log(content, workers=workers),
    )
    logger.debug(
        "Parsed %d bytes in %.3fs (%d events)",
        len(content),
        time.time() - t_parse,
        len(record.events),
    )

    if cache_store is not None:
        t_save = time.time()
        try:
            cache_store.save(record)
        except OSError as e:
            logger.warning("Failed to write cache %s: %s", cache_store.cache_path, e)
        else:
            logger.debug("Saved cache in %.3fs", time.time() - t_save)

    return record


def reconcile(
    events: Mapping[str, PackageEvent], packages: Sequence[str]
) -> list[ReconciledEntry]:
    """Merge logged history with the installed package list.

    Logged events are kept as they are, including packages that have since
    been removed. Installed packages without any logged event get the
    sentinel timestamp and INSTALLED, which sorts them first.

    Returns:
        Entries sorted by timestamp string, ascending.
    """
    merged: dict[str, tuple[str, PackageStatus]] = {
        name: (event.timestamp, event.status) for name, event in events.items()
    }
    for name in packages:
        merged.setdefault(name, (SENTINEL_TIMESTAMP, PackageStatus.INSTALLED))

    entries = [
        ReconciledEntry(package_name=name, timestamp=timestamp, status=status)
        for name, (timestamp, status) in merged.items()
    ]
    entries.sort(key=lambda entry: entry.timestamp)
    return entries


def filter_by_date(
    entries: list[ReconciledEntry],
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
) -> list[ReconciledEntry]:
    """Filter entries by date range.

    Dates accept anything dateparser understands ("2 weeks ago",
    "yesterday", "2025-06-08"). pacman logs local time, so bounds and
    timestamps are compared as naive local datetimes. Entries without a
    logged date are always kept.

    Raises:
        DateRangeError: If a date expression cannot be parsed.
    """
    if not from_date and not to_date:
        return entries

    dateparser_settings: Any = {"RETURN_AS_TIMEZONE_AWARE": False}
    from_dt = None
    to_dt = None

    if from_date:
        from_dt = dateparser.parse(from_date, settings=dateparser_settings)
        if not from_dt:
            raise DateRangeError(f"Could not parse from-date: {from_date}")
        # If parsing relative dates like "today", start from beginning of day
        if from_date in ["today", "yesterday"] or "days ago" in from_date:
            from_dt = from_dt.replace(hour=0, minute=0, second=0, microsecond=0)

    if to_date:
        to_dt = dateparser.parse(to_date, settings=dateparser_settings)
        if not to_dt:
            raise DateRangeError(f"Could not parse to-date: {to_date}")
        # If parsing relative dates like "today", end at end of day
        if to_date in ["today", "yesterday"] or "days ago" in to_date:
            to_dt = to_dt.replace(hour=23, minute=59, second=59, microsecond=999999)

    filtered: list[ReconciledEntry] = []
    for entry in entries:
        if not entry.has_history:
            filtered.append(entry)
            continue

        entry_dt = parse_timestamp(entry.timestamp)
        if not entry_dt:
            continue
        entry_dt = entry_dt.replace(tzinfo=None)

        if from_dt and entry_dt < from_dt:
            continue
        if to_dt and entry_dt > to_dt:
            continue

        filtered.append(entry)

    return filtered


def build_timeline(
    cache_store: Optional[CacheStore],
    log_path: Path = DEFAULT_LOG_PATH,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    workers: int = 1,
    packages: Optional[Sequence[str]] = None,
) -> list[ReconciledEntry]:
    """Produce the reconciled timeline for the current system.

    Args:
        cache_store: Cache to use, or None to disable caching
        log_path: Path to the pacman log
        from_date: Optional lower date bound
        to_date: Optional upper date bound
        workers: Number of processes for parsing the log
        packages: Installed packages; queried from pacman when omitted

    Returns:
        Sorted timeline entries, empty if no installed packages were found.
    """
    if packages is None:
        packages = query_installed_packages() or []
    if not packages:
        logger.debug("No installed packages reported, nothing to show")
        return []

    record = ensure_fresh_cache(cache_store, packages, log_path, workers)
    entries = reconcile(record.events, packages)

    return filter_by_date(entries, from_date, to_date)
