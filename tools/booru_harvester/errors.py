"""Exceptions raised by the harvester."""

from __future__ import annotations


class HarvesterError(Exception):
    """Base class for harvester failures."""


class FetchError(HarvesterError):
    """A request kept failing after every retry."""

    def __init__(self, url: str, cause: BaseException | None = None) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"{url}: {cause}" if cause else url)


class MalformedContentError(HarvesterError):
    """Expected markup or response metadata is missing or unparsable."""


class UsageError(HarvesterError):
    """Invalid command-line invocation."""
