#!/usr/bin/env python3
"""JSON cache of the parsed pacman log for pacman-timeline."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from packaging import version
from pydantic import ValidationError

from .models import CacheRecord

logger = logging.getLogger(__name__)


# ========== Helper Functions ==========


def get_library_version() -> str:
    """Get the current library version from package metadata or pyproject.toml."""
    # First try to get version from installed package metadata
    try:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as get_version

        return get_version("pacman-timeline")
    except PackageNotFoundError:
        pass

    # Running from a source checkout: read pyproject.toml next to the package
    try:
        import toml

        pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            with open(pyproject_path, "r", encoding="utf-8") as f:
                pyproject_data = toml.load(f)
            return pyproject_data.get("project", {}).get("version", "unknown")
    except (OSError, toml.TomlDecodeError):
        pass

    return "unknown"


# ========== Cache Path Configuration ==========


def get_cache_path() -> Path:
    """Get cache file path, respecting PACMAN_TIMELINE_CACHE_PATH env var.

    Priority: PACMAN_TIMELINE_CACHE_PATH env var > $XDG_CACHE_HOME > ~/.cache.

    Returns:
        Path to the JSON cache file.
    """
    env_path = os.getenv("PACMAN_TIMELINE_CACHE_PATH")
    if env_path:
        return Path(env_path)

    cache_home = os.getenv("XDG_CACHE_HOME")
    base_dir = Path(cache_home) if cache_home else Path.home() / ".cache"
    return base_dir / "pacman-timeline" / "timeline-cache.json"


# ========== Staleness ==========


def is_stale(
    record: Optional[CacheRecord], fingerprint: int, log_byte_length: int
) -> bool:
    """Decide whether a cached record must be rebuilt.

    Any difference in the installed package fingerprint or in the log length
    invalidates the whole record.
    """
    return (
        record is None
        or record.fingerprint != fingerprint
        or record.log_byte_length != log_byte_length
    )


# ========== Cache Store ==========


class CacheStore:
    """Load and atomically persist a single CacheRecord."""

    def __init__(self, cache_path: Path, library_version: str):
        """Initialise the store.

        Args:
            cache_path: Location of the JSON cache file
            library_version: Current version of the library for cache invalidation
        """
        self.cache_path = cache_path
        self.library_version = library_version

    def load(self) -> Optional[CacheRecord]:
        """Load the cached record.

        Returns:
            The record, or None if the file is missing, unreadable, corrupt
            or written by an incompatible version. All of these mean the
            same thing to the caller: there is no usable cache.
        """
        try:
            raw = self.cache_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Cannot read cache %s: %s", self.cache_path, e)
            return None

        try:
            record = CacheRecord.model_validate_json(raw)
        except ValidationError as e:
            logger.debug("Ignoring undecodable cache %s: %s", self.cache_path, e)
            return None

        if not self._is_cache_version_compatible(record.version):
            logger.debug(
                "Cache version incompatible: %s -> %s, invalidating cache",
                record.version,
                self.library_version,
            )
            return None

        return record

    def save(self, record: CacheRecord) -> None:
        """Persist the record by writing a sibling temp file and renaming it.

        Readers see either the previous file or the new one, never a partial
        write. Concurrent writers race on the rename and the last one wins.

        Raises:
            OSError: If the directory cannot be created or the file written.
        """
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        payload = record.model_dump_json(by_alias=True, indent=2)

        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=self.cache_path.parent,
            prefix=f".{self.cache_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp_file:
            tmp_path = Path(tmp_file.name)
            try:
                tmp_file.write(payload)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            except OSError:
                tmp_file.close()
                tmp_path.unlink(missing_ok=True)
                raise

        try:
            os.replace(tmp_path, self.cache_path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

        logger.debug(
            "Saved %d events to %s", len(record.events), self.cache_path
        )

    def _is_cache_version_compatible(self, cache_version: str) -> bool:
        """Check if a cache version is compatible with the current library version.

        Versions are compatible when they share a major version, or the same
        major and minor version while still on 0.x.
        """
        if cache_version == self.library_version:
            return True

        try:
            cache_ver = version.parse(cache_version)
            current_ver = version.parse(self.library_version)
        except version.InvalidVersion:
            return False

        if cache_ver.major != current_ver.major:
            return False
        if current_ver.major == 0:
            return cache_ver.minor == current_ver.minor
        return True
