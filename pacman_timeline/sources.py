"""Access to the live system: the pacman log and the installed package list.

Every function here is fail-soft and returns ``None`` (or ``0``) instead of
raising, leaving the fallback value to the caller.
"""

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_LOG_PATH = Path("/var/log/pacman.log")

# Explicitly installed packages, one name per line
INSTALLED_PACKAGES_COMMAND = ("pacman", "-Qeq")


def get_log_size(log_path: Path) -> int:
    """Return the size of the log in bytes, or 0 if it cannot be stat'ed."""
    try:
        return log_path.stat().st_size
    except OSError as e:
        logger.debug("Cannot stat %s: %s", log_path, e)
        return 0


def read_log(log_path: Path) -> Optional[bytes]:
    """Read the whole pacman log.

    Returns:
        The raw bytes, or None if the file is missing or unreadable.
    """
    try:
        return log_path.read_bytes()
    except OSError as e:
        logger.debug("Cannot read %s: %s", log_path, e)
        return None


def query_installed_packages(
    command: Sequence[str] = INSTALLED_PACKAGES_COMMAND,
) -> Optional[list[str]]:
    """Ask pacman for the explicitly installed packages.

    Args:
        command: Command line printing one package name per line

    Returns:
        Package names in the order pacman reports them, or None if the
        command is missing or fails.
    """
    try:
        result = subprocess.run(
            list(command),
            capture_output=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as e:
        logger.debug("Installed package query %s failed: %s", command, e)
        return None

    output = result.stdout.decode("utf-8", errors="replace")
    return [line.strip() for line in output.splitlines() if line.strip()]
