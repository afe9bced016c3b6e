"""Image download handler."""

from __future__ import annotations

import logging
from pathlib import Path

from .api import BooruAPI
from .errors import FetchError, MalformedContentError
from .models import DownloadTarget, RankedPost
from .storage import DiskStorage

logger = logging.getLogger("harvester.download")


def extension_from_content_type(content_type: str | None) -> str:
    """``image/png; charset=binary`` -> ``png``."""
    if not content_type:
        raise MalformedContentError("response has no Content-Type")
    parts = content_type.split(";")[0].strip().split("/")
    if len(parts) != 2 or not parts[1]:
        raise MalformedContentError(f"unusable Content-Type {content_type!r}")
    return parts[1].lower()


class ImageDownloader:
    """Probes an image's content type, then streams it to disk."""

    def __init__(self, api: BooruAPI, storage: DiskStorage) -> None:
        self.api = api
        self.storage = storage

    def resolve(self, ranked: RankedPost, image_url: str) -> DownloadTarget:
        headers = self.api.head(image_url)
        return DownloadTarget(
            rank=ranked.rank,
            post_id=ranked.post_id,
            image_url=image_url,
            extension=extension_from_content_type(headers.get("content-type")),
        )

    def download(self, ranked: RankedPost, image_url: str) -> Path | None:
        """Download one ranked post's image.

        Returns the written path, or None when any step failed.
        """
        try:
            target = self.resolve(ranked, image_url)
        except (FetchError, MalformedContentError) as exc:
            logger.warning("IMAGE: %s: %s", image_url, exc)
            return None

        dest = self.storage.path_for(target)
        try:
            size = self.api.download_to(target.image_url, dest)
        except (FetchError, OSError) as exc:
            logger.warning("IMAGE: %s -> %s: %s", target.image_url, dest.name, exc)
            try:
                self.storage.discard(dest)
            except OSError:
                logger.debug("Could not remove partial file %s", dest)
            return None

        logger.debug("Saved %s (%d bytes)", dest.name, size)
        return dest
