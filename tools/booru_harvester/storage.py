"""Local disk layout – one fresh output directory per run."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from .models import DownloadTarget

logger = logging.getLogger("harvester.storage")


def next_available_name(base: str, exists: Callable[[str], bool]) -> str:
    """Return *base*, or *base* + the smallest positive integer not taken."""
    name = base
    n = 1
    while exists(name):
        name = f"{base}{n}"
        n += 1
    return name


class DiskStorage:
    """Writes downloaded images into a directory created at start-up."""

    def __init__(self, root: Path, base: str = "output") -> None:
        name = next_available_name(base, lambda candidate: (root / candidate).exists())
        self.path = root / name
        self.path.mkdir(parents=True)
        logger.info("Writing images to %s", self.path)

    def path_for(self, target: DownloadTarget) -> Path:
        return self.path / target.filename

    def discard(self, path: Path) -> None:
        """Remove a partially written file, if any."""
        path.unlink(missing_ok=True)
