"""Data models passed between the pipeline stages."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import MalformedContentError

_POST_ID_RE = re.compile(r"id=(\d+)")


@dataclass(frozen=True)
class CandidatePost:
    """A thumbnail found on a listing page."""

    link: str
    score: int


@dataclass(frozen=True)
class RankedPost:
    """A candidate with its zero-based position in the global top list."""

    rank: int
    post: CandidatePost

    @property
    def link(self) -> str:
        return self.post.link

    @property
    def score(self) -> int:
        return self.post.score

    @property
    def post_id(self) -> str:
        """Numeric post identifier taken from the detail-page link."""
        match = _POST_ID_RE.search(self.post.link)
        if not match:
            raise MalformedContentError(f"no post id in {self.post.link}")
        return match.group(1)


@dataclass(frozen=True)
class DownloadTarget:
    rank: int
    post_id: str
    image_url: str
    extension: str

    @property
    def filename(self) -> str:
        return f"{self.rank}-{self.post_id}.{self.extension}"
