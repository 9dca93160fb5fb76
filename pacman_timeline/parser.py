"""Extract package lifecycle events from the pacman log.

Only ALPM transaction lines are of interest, e.g.::

    [2024-01-01T10:00:00+0000] [ALPM] installed foo (1.0-1)
    [2024-02-01T09:12:44+0000] [ALPM] upgraded foo (1.0-1 -> 1.1-1)

Everything else in the log (hooks, scriptlet output, pacman commands) is
skipped without complaint.
"""

import logging
import re
from concurrent.futures import ProcessPoolExecutor
from datetime import datetime
from typing import Optional, Union

from .models import PackageEvent, PackageStatus

logger = logging.getLogger(__name__)

ALPM_EVENT_PATTERN = re.compile(
    r"\[([0-9T:+-]+)\] \[ALPM\] (installed|upgraded|removed) ([^\s(]+)"
)

ACTION_STATUS: dict[str, PackageStatus] = {
    "installed": PackageStatus.INSTALLED,
    "upgraded": PackageStatus.UPGRADED,
    "removed": PackageStatus.REMOVED,
}

# Length of the shortest line the pattern can match: "[0] [ALPM] removed a"
MIN_LINE_LENGTH = 20


def parse_log_line(line: str) -> Optional[tuple[str, PackageEvent]]:
    """Parse a single log line.

    Returns:
        (package_name, event) for an ALPM install/upgrade/removal line,
        None for anything else.
    """
    if len(line) < MIN_LINE_LENGTH:
        return None

    match = ALPM_EVENT_PATTERN.match(line)
    if not match:
        return None

    timestamp, action, package_name = match.groups()
    status = ACTION_STATUS.get(action)
    if status is None:
        return None

    return package_name, PackageEvent(timestamp=timestamp, status=status)


def _parse_lines(lines: list[str]) -> dict[str, PackageEvent]:
    """Sequential scan; a later line for the same package replaces an earlier one."""
    events: dict[str, PackageEvent] = {}
    for line in lines:
        parsed = parse_log_line(line)
        if parsed is not None:
            package_name, event = parsed
            events[package_name] = event
    return events


def _split_chunks(lines: list[str], count: int) -> list[list[str]]:
    """Split lines into at most ``count`` contiguous chunks, preserving order."""
    size = -(-len(lines) // count)
    return [lines[i : i + size] for i in range(0, len(lines), size)]


def parse_log(content: Union[bytes, str], workers: int = 1) -> dict[str, PackageEvent]:
    """Build the package -> latest event map from the full log.

    Args:
        content: Raw log content; bytes are decoded as UTF-8 with replacement
        workers: Number of processes to scan with. Chunks are contiguous and
            merged in log order, so the result never depends on this value.

    Returns:
        Mapping of package name to the last event logged for it.
    """
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")

    # Only "\n" ends a line; str.splitlines() would also break on form feeds
    # and other separators that scriptlet output may contain
    lines = [line.removesuffix("\r") for line in content.split("\n")]
    if workers <= 1 or len(lines) < workers:
        return _parse_lines(lines)

    events: dict[str, PackageEvent] = {}
    try:
        with ProcessPoolExecutor(max_workers=workers) as executor:
            # map() yields in submission order, i.e. log order
            for chunk_events in executor.map(_parse_lines, _split_chunks(lines, workers)):
                events.update(chunk_events)
    except OSError as e:
        logger.debug("Process pool unavailable (%s), parsing sequentially", e)
        return _parse_lines(lines)
    return events


def parse_timestamp(timestamp_str: str) -> Optional[datetime]:
    """Parse a pacman log timestamp (e.g. 2024-01-01T10:00:00+0000)."""
    try:
        return datetime.strptime(timestamp_str, "%Y-%m-%dT%H:%M:%S%z")
    except (ValueError, TypeError):
        return None
