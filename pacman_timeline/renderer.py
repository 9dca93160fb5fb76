"""Render timeline entries as terminal lines.

Each entry becomes ``<timestamp> :: <tag> :: <package>``. Colour is purely
cosmetic: with ``color=False`` the output is plain text suitable for piping.
"""

from typing import Iterable

import click

from .models import PackageStatus, ReconciledEntry

STATUS_TAGS: dict[PackageStatus, str] = {
    PackageStatus.INSTALLED: "INS",
    PackageStatus.UPGRADED: "UPG",
    PackageStatus.REMOVED: "REM",
    PackageStatus.UNKNOWN: "ERR",
}

# Catppuccin Mocha
DATE_COLOR = (203, 166, 247)
PACKAGE_COLOR = (137, 180, 250)
STATUS_COLORS: dict[PackageStatus, tuple[int, int, int]] = {
    PackageStatus.INSTALLED: (166, 227, 161),
    PackageStatus.UPGRADED: (249, 226, 175),
    PackageStatus.REMOVED: (250, 179, 135),
    PackageStatus.UNKNOWN: (243, 139, 168),
}

SEPARATOR = " :: "


def format_entry(entry: ReconciledEntry, color: bool = False) -> str:
    """Format one timeline entry, optionally with ANSI colours."""
    tag = STATUS_TAGS.get(entry.status, STATUS_TAGS[PackageStatus.UNKNOWN])
    if not color:
        return SEPARATOR.join((entry.timestamp, tag, entry.package_name))

    status_color = STATUS_COLORS.get(
        entry.status, STATUS_COLORS[PackageStatus.UNKNOWN]
    )
    return SEPARATOR.join(
        (
            click.style(entry.timestamp, fg=DATE_COLOR),
            click.style(tag, fg=status_color),
            click.style(entry.package_name, fg=PACKAGE_COLOR),
        )
    )


def render_timeline(entries: Iterable[ReconciledEntry], color: bool = False) -> list[str]:
    return [format_entry(entry, color) for entry in entries]
