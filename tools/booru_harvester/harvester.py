"""Core harvesting logic – orchestrates listing → ranking → download."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, Protocol

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn, TimeElapsedColumn

from .api import BooruAPI
from .config import TOP_N, HarvesterConfig
from .downloader import ImageDownloader
from .errors import FetchError, MalformedContentError
from .models import CandidatePost, RankedPost
from .parsers import PostDetailParser, SearchResultParser
from .storage import DiskStorage
from .tags import join_tags

logger = logging.getLogger("harvester.core")


class ListingParser(Protocol):
    def parse(self, html: str) -> list[CandidatePost]: ...


class DetailParser(Protocol):
    def parse(self, html: str) -> str: ...


def rank_candidates(candidates: Iterable[CandidatePost], limit: int = TOP_N) -> list[RankedPost]:
    """Sort by score (highest first, stable) and keep the first *limit*."""
    ordered = sorted(candidates, key=lambda p: p.score, reverse=True)[:limit]
    return [RankedPost(rank=i, post=post) for i, post in enumerate(ordered)]


class Harvester:
    """Orchestrates the two-phase search → top-N download pipeline."""

    def __init__(
        self,
        cfg: HarvesterConfig | None = None,
        *,
        api: BooruAPI | None = None,
        storage: DiskStorage | None = None,
        listing_parser: ListingParser | None = None,
        detail_parser: DetailParser | None = None,
        console: Console | None = None,
    ) -> None:
        self.cfg = cfg or HarvesterConfig()
        base_url = self.cfg.booru.base_url
        # Storage first: it holds no resources if the client fails to build
        self.storage = storage or DiskStorage(self.cfg.output_root, self.cfg.output_base)
        self.api = api or BooruAPI(self.cfg.booru)
        self.console = console
        self.listing_parser = listing_parser or SearchResultParser(base_url)
        self.detail_parser = detail_parser or PostDetailParser(base_url)
        self.downloader = ImageDownloader(self.api, self.storage)
        # Stats
        self.stats = {"pages": 0, "failed_pages": 0, "candidates": 0, "ranked": 0, "images": 0, "errors": 0}
        self._stats_lock = threading.Lock()

    def _count(self, key: str) -> None:
        with self._stats_lock:
            self.stats[key] += 1

    def listing_url(self, page_index: int, tags: list[str]) -> str:
        pid = page_index * self.cfg.booru.page_stride
        return f"{self.cfg.booru.base_url}/index.php?page=post&s=list&pid={pid}&tags={join_tags(tags)}"

    # ── phase 1: listing pages ───────────────────────────────────

    def fetch_listing(self, page_index: int, tags: list[str]) -> list[CandidatePost]:
        html = self.api.get_text(self.listing_url(page_index, tags))
        return self.listing_parser.parse(html)

    def collect_candidates(self, page_count: int, tags: list[str]) -> list[RankedPost]:
        """Fetch every listing page concurrently and rank the merged results.

        Failed pages are logged and left out.  Pages are merged in index
        order so equal scores keep a deterministic order.
        """
        pages: dict[int, list[CandidatePost]] = {}
        with ThreadPoolExecutor(max_workers=self.cfg.max_workers) as pool:
            future_to_page = {
                pool.submit(self.fetch_listing, i, tags): i for i in range(page_count)
            }
            for future in as_completed(future_to_page):
                index = future_to_page[future]
                try:
                    pages[index] = future.result()
                    self._count("pages")
                except FetchError as exc:
                    logger.warning("PAGE: %s", exc.url)
                    logger.debug("Page %d failed: %s", index, exc)
                    self._count("failed_pages")
                except Exception as exc:
                    logger.warning("PAGE: %s: %s", self.listing_url(index, tags), exc)
                    self._count("failed_pages")

        merged = [post for i in sorted(pages) for post in pages[i]]
        self.stats["candidates"] = len(merged)
        ranked = rank_candidates(merged)
        self.stats["ranked"] = len(ranked)
        logger.info("Kept %d of %d candidates from %d page(s)", len(ranked), len(merged), len(pages))
        return ranked

    # ── phase 2: post details + images ───────────────────────────

    def harvest_post(self, ranked: RankedPost) -> bool:
        """Resolve and download one post.  Never raises for site failures."""
        try:
            html = self.api.get_text(ranked.link)
            image_url = self.detail_parser.parse(html)
        except (FetchError, MalformedContentError) as exc:
            logger.warning("POST: %s", ranked.link)
            logger.debug("Post rank %d failed: %s", ranked.rank, exc)
            self._count("errors")
            return False

        if self.downloader.download(ranked, image_url) is None:
            self._count("errors")
            return False
        self._count("images")
        return True

    def download_all(self, ranked: list[RankedPost]) -> int:
        """Download every ranked post concurrently; returns how many succeeded."""
        succeeded = 0
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=self.console,
        ) as progress:
            task = progress.add_task("images", total=len(ranked))
            with ThreadPoolExecutor(max_workers=self.cfg.max_workers) as pool:
                future_to_post = {pool.submit(self.harvest_post, post): post for post in ranked}
                for future in as_completed(future_to_post):
                    try:
                        if future.result():
                            succeeded += 1
                    except Exception as exc:
                        logger.warning("POST: %s: %s", future_to_post[future].link, exc)
                        self._count("errors")
                    progress.advance(task)
        return succeeded

    # ── run ──────────────────────────────────────────────────────

    def run(self, page_count: int, tags: list[str]) -> dict[str, int]:
        ranked = self.collect_candidates(page_count, tags)
        if not ranked:
            logger.info("No posts found, nothing to download")
            return self.stats
        self.download_all(ranked)
        logger.info("Harvest complete: %d/%d images", self.stats["images"], len(ranked))
        return self.stats

    # ── lifecycle ────────────────────────────────────────────────

    def close(self) -> None:
        self.api.close()

    def __enter__(self) -> Harvester:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
