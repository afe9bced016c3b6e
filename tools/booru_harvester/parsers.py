"""Markup parsers for listing and post-detail pages.

Everything that knows about the site's HTML lives here so the pipeline can
be driven with fake parsers in tests.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup

from .errors import MalformedContentError
from .models import CandidatePost

logger = logging.getLogger("harvester.parser")

SELECTORS = {
    "thumb_anchor": "span.thumb > a",
    "main_image": "img#image",
}

POST_URL_TEMPLATE = "{base}/index.php?page=post&s=view&id={post_id}"

_SCORE_RE = re.compile(r"score:(\d+)")


def _qualify(base_url: str, href: str) -> str:
    if href.startswith(("http://", "https://")):
        return href
    if href.startswith("//"):
        return "https:" + href
    if href.startswith("/"):
        href = href[1:]
    return f"{base_url}/{href}"


def _parse_score(title: str) -> int | None:
    for token in title.split():
        match = _SCORE_RE.fullmatch(token)
        if match:
            return int(match.group(1))
    return None


class SearchResultParser:
    """Extract (link, score) pairs from one search listing page."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url

    def parse(self, html: str) -> list[CandidatePost]:
        soup = BeautifulSoup(html, "html.parser")
        posts: list[CandidatePost] = []

        for anchor in soup.select(SELECTORS["thumb_anchor"]):
            # The id is enough to rebuild a missing link
            post_id = anchor.get("id")
            if not post_id:
                logger.warning("IMAGE: found a post item without an id, skipping")
                continue

            href = anchor.get("href")
            if href:
                link = _qualify(self.base_url, href)
            else:
                link = POST_URL_TEMPLATE.format(base=self.base_url, post_id=post_id)

            img = anchor.find("img")
            score = _parse_score(img.get("title", "")) if img else None
            if score is None:
                logger.warning("IMAGE: post %s has no score, skipping", post_id)
                continue

            posts.append(CandidatePost(link=link, score=score))

        posts.sort(key=lambda p: p.score, reverse=True)
        return posts


class PostDetailParser:
    """Locate the full-size image URL on a post-detail page."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url

    def parse(self, html: str) -> str:
        soup = BeautifulSoup(html, "html.parser")
        img = soup.select_one(SELECTORS["main_image"])
        # Video posts have no img#image and fail here
        if img is None or not img.get("src"):
            raise MalformedContentError("post page has no main image")
        return _qualify(self.base_url, img["src"])
