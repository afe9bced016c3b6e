"""Image-board HTTP client – retrying fetcher with jittered backoff."""

from __future__ import annotations

import logging
import random
import time
from pathlib import Path
from typing import Callable, TypeVar

import httpx

from .config import BooruConfig
from .errors import FetchError

logger = logging.getLogger("harvester.api")

T = TypeVar("T")

CHUNK_SIZE = 64 * 1024


class BooruAPI:
    """Thin wrapper around an httpx client that retries transient failures.

    The client is shared between worker threads; retry state lives on the
    stack of each call.
    """

    def __init__(self, cfg: BooruConfig | None = None) -> None:
        self.cfg = cfg or BooruConfig()
        self._client = httpx.Client(
            timeout=self.cfg.timeout,
            headers={"User-Agent": self.cfg.user_agent},
            follow_redirects=True,
        )

    # ── retry ────────────────────────────────────────────────────

    def backoff_delay(self, retry: int) -> float:
        """Seconds to wait before the *retry*-th retry (1-indexed)."""
        return (2 ** retry + random.uniform(0, 1)) * self.cfg.backoff_unit

    def _with_retries(self, url: str, call: Callable[[], T]) -> T:
        attempts = self.cfg.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return call()
            except httpx.HTTPError as exc:
                # Callers log the stage-tagged warning once retries run out
                logger.debug("Attempt %d/%d failed for %s: %s", attempt, attempts, url, exc)
                if attempt == attempts:
                    raise FetchError(url, exc) from exc
                time.sleep(self.backoff_delay(attempt))
        raise FetchError(url)  # unreachable but keeps mypy happy

    # ── public API ───────────────────────────────────────────────

    def get_text(self, url: str) -> str:
        """GET *url* and return the decoded body."""
        def call() -> str:
            resp = self._client.get(url)
            resp.raise_for_status()
            return resp.text

        return self._with_retries(url, call)

    def head(self, url: str) -> httpx.Headers:
        """Fetch only the response headers of *url*."""
        def call() -> httpx.Headers:
            resp = self._client.head(url)
            resp.raise_for_status()
            return resp.headers

        return self._with_retries(url, call)

    def download_to(self, url: str, dest: Path) -> int:
        """Stream *url* into *dest*, returning the number of bytes written.

        A failed attempt truncates the file on the next one.  ``OSError``
        from the write side is not retried.
        """
        def call() -> int:
            written = 0
            with self._client.stream("GET", url) as resp:
                resp.raise_for_status()
                with dest.open("wb") as fh:
                    for chunk in resp.iter_bytes(CHUNK_SIZE):
                        fh.write(chunk)
                        written += len(chunk)
            return written

        return self._with_retries(url, call)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> BooruAPI:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
