"""Search tag normalisation."""

from __future__ import annotations

import re
from typing import Iterable

_WHITESPACE_RE = re.compile(r"\s+")


def sanitize_tags(args: Iterable[str]) -> list[str]:
    """Replace every whitespace run in each tag with a single underscore.

    Tags are **not** URL encoded and none are dropped, so the result has
    the same length and order as *args*.
    """
    return [_WHITESPACE_RE.sub("_", arg) for arg in args]


def join_tags(tags: Iterable[str]) -> str:
    return "+".join(tags)
