"""pacman-timeline: chronological history of pacman package operations."""
