"""Shared fixtures: HTML builders and a harvester wired to a temp directory."""

from __future__ import annotations

from pathlib import Path

import pytest

from booru_harvester.api import BooruAPI
from booru_harvester.config import BooruConfig, HarvesterConfig
from booru_harvester.harvester import Harvester
from booru_harvester.storage import DiskStorage

BASE = "https://booru.test"


def thumb(post_id: str | None, score: int | None, href: str | None = "") -> str:
    """One ``span.thumb`` entry as the listing page renders it."""
    id_attr = f' id="{post_id}"' if post_id is not None else ""
    if href == "":
        href = f"index.php?page=post&amp;s=view&amp;id={post_id}"
    href_attr = f' href="{href}"' if href is not None else ""
    title = f"rating:safe score:{score} tag_a" if score is not None else "rating:safe tag_a"
    return (
        f'<span class="thumb"><a{id_attr}{href_attr}>'
        f'<img src="/thumbs/{post_id}.jpg" title=" {title} " alt="x"/></a></span>'
    )


def listing_page(*thumbs: str) -> str:
    return f"<html><body><div class=\"image-list\">{''.join(thumbs)}</div></body></html>"


def detail_page(src: str | None) -> str:
    img = f'<img id="image" src="{src}" alt="post"/>' if src else '<video id="gelcomVideoPlayer"></video>'
    return f"<html><body><div class=\"content\">{img}</div></body></html>"


@pytest.fixture
def booru_cfg() -> BooruConfig:
    return BooruConfig(base_url=BASE, backoff_unit=0.0, timeout=5.0)


@pytest.fixture
def harvester(tmp_path: Path, booru_cfg: BooruConfig):
    cfg = HarvesterConfig(booru=booru_cfg, output_root=tmp_path, max_workers=4)
    h = Harvester(cfg, api=BooruAPI(booru_cfg), storage=DiskStorage(tmp_path))
    yield h
    h.close()
