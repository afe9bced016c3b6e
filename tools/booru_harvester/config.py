"""Configuration and environment settings for the harvester."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

# Hard cap on how many ranked posts are downloaded per run.
TOP_N = 100


@dataclass(frozen=True)
class BooruConfig:
    """Image-board site configuration.  Listing pages hold 42 thumbnails each."""
    base_url: str = "https://rule34.xxx"
    page_stride: int = 42
    max_retries: int = 4  # attempts after the first one
    backoff_unit: float = 1.0  # seconds
    timeout: float = 30.0
    user_agent: str = "booru-harvester/1.0"

    @classmethod
    def from_env(cls) -> BooruConfig:
        return cls(
            base_url=os.getenv("BOORU_BASE_URL", "https://rule34.xxx").rstrip("/"),
            max_retries=int(os.getenv("BOORU_MAX_RETRIES", "4")),
            backoff_unit=float(os.getenv("BOORU_BACKOFF_UNIT", "1.0")),
            timeout=float(os.getenv("BOORU_TIMEOUT", "30.0")),
        )


@dataclass
class HarvesterConfig:
    booru: BooruConfig = field(default_factory=BooruConfig.from_env)
    output_root: Path = field(default_factory=Path.cwd)
    output_base: str = "output"
    max_workers: int = field(default_factory=lambda: int(os.getenv("BOORU_MAX_WORKERS", "8")))
