"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from pacman_timeline.cache import CacheStore

SAMPLE_LOG = """\
[2024-01-01T10:00:00+0000] [PACMAN] Running 'pacman -S foo'
[2024-01-01T10:00:00+0000] [ALPM] transaction started
[2024-01-01T10:00:00+0000] [ALPM] installed foo (1.0-1)
[2024-01-01T10:00:01+0000] [ALPM] installed bar (2.0-1)
[2024-01-01T10:00:02+0000] [ALPM] transaction completed
[2024-01-01T10:00:02+0000] [ALPM-SCRIPTLET] ==> Remember to configure foo
[2024-02-15T08:30:00+0000] [ALPM] upgraded foo (1.0-1 -> 1.1-1)
[2024-03-01T12:00:00+0000] [ALPM] installed baz (0.1-1)
[2024-03-20T18:45:10+0000] [ALPM] removed baz (0.1-1)
[2024-03-21T09:00:00+0000] [ALPM] running 'texinfo-install.hook'...
"""


@pytest.fixture
def sample_log(tmp_path: Path) -> Path:
    """Write a small pacman log and return its path."""
    log_path = tmp_path / "pacman.log"
    log_path.write_text(SAMPLE_LOG, encoding="utf-8")
    return log_path


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    return tmp_path / "cache" / "timeline-cache.json"


@pytest.fixture
def mock_version() -> str:
    """Library version for consistent testing."""
    return "1.0.0-test"


@pytest.fixture
def cache_store(cache_path: Path, mock_version: str) -> CacheStore:
    return CacheStore(cache_path, mock_version)


@pytest.fixture
def sample_log_content() -> str:
    return SAMPLE_LOG
