#!/usr/bin/env python3
"""CLI interface for pacman-timeline."""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click

from .cache import CacheStore, get_cache_path, get_library_version
from .renderer import render_timeline
from .sources import DEFAULT_LOG_PATH
from .timeline import DateRangeError, build_timeline


@click.command()
@click.option(
    "--log-file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=DEFAULT_LOG_PATH,
    show_default=True,
    help="pacman log to read history from.",
)
@click.option(
    "--cache-file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Cache file (default: $PACMAN_TIMELINE_CACHE_PATH or ~/.cache/pacman-timeline/timeline-cache.json).",
)
@click.option(
    "--no-cache",
    is_flag=True,
    help="Disable caching and always re-parse the log",
)
@click.option(
    "--from-date",
    type=str,
    help='Only show events from this date/time (e.g., "2 weeks ago", "yesterday", "2025-06-08")',
)
@click.option(
    "--to-date",
    type=str,
    help='Only show events up to this date/time (e.g., "1 hour ago", "today", "2025-06-08 15:00")',
)
@click.option(
    "--color/--no-color",
    default=None,
    help="Force coloured output on or off (default: colour only on a terminal).",
)
@click.option(
    "-j",
    "--jobs",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Number of processes used to parse the log.",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Show debug logging and full traceback on errors.",
)
def main(
    log_file: Path,
    cache_file: Optional[Path],
    no_cache: bool,
    from_date: Optional[str],
    to_date: Optional[str],
    color: Optional[bool],
    jobs: int,
    debug: bool,
) -> None:
    """Show when explicitly installed pacman packages were installed, upgraded or removed.

    Packages without any logged history are listed first with a zero date.
    Removed packages stay in the timeline.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        cache_store = None
        if not no_cache:
            cache_store = CacheStore(
                cache_file or get_cache_path(), get_library_version()
            )

        entries = build_timeline(
            cache_store,
            log_path=log_file,
            from_date=from_date,
            to_date=to_date,
            workers=jobs,
        )

        for line in render_timeline(entries, color=color is not False):
            click.echo(line, color=color)

    except BrokenPipeError:
        # Reader went away (e.g. piped into head); drop the rest of the output
        devnull = os.open(os.devnull, os.O_WRONLY)
        try:
            os.dup2(devnull, sys.stdout.fileno())
        except (OSError, ValueError):
            # No real descriptor behind stdout, e.g. captured output
            pass
        finally:
            os.close(devnull)
        sys.exit(0)
    except DateRangeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Error building timeline: {e}", err=True)
        if debug:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
