"""Pydantic models for pacman history and the persisted timeline cache."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Lexically smallest timestamp, used for installed packages with no logged history
SENTINEL_TIMESTAMP = "0000-00-00T00:00:00+0000"


class PackageStatus(str, Enum):
    """Lifecycle status of a package.

    The value doubles as the persisted string and the display tag.
    """

    INSTALLED = "INS"
    UPGRADED = "UPG"
    REMOVED = "REM"
    UNKNOWN = "ERR"


class PackageEvent(BaseModel):
    """Most recent logged action for a single package."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: str = Field(alias="date")
    status: PackageStatus


class CacheRecord(BaseModel):
    """Parsed pacman log plus the state it was derived from.

    A record is valid only while both ``fingerprint`` and ``log_byte_length``
    match the live system. ``events`` is always rebuilt as a whole.
    """

    version: str = "unknown"
    fingerprint: int = Field(ge=0, lt=2**64)
    log_byte_length: int = Field(ge=0)
    events: dict[str, PackageEvent] = {}


@dataclass(frozen=True)
class ReconciledEntry:
    """One line of the rendered timeline."""

    package_name: str
    timestamp: str
    status: PackageStatus

    @property
    def has_history(self) -> bool:
        return self.timestamp != SENTINEL_TIMESTAMP
