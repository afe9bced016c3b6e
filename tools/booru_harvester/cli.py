"""CLI entry-point for the booru harvester."""

from __future__ import annotations

import logging
import os
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import HarvesterConfig
from .errors import UsageError
from .harvester import Harvester
from .tags import sanitize_tags

console = Console()
err_console = Console(stderr=True)

USAGE = "Usage: booru-harvester run <number of pages to crawl> <tag1> [tag2] ... [tagN]"


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=err_console)],
    )
    # Suppress noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _print_stats(stats: dict) -> None:
    table = Table(title="Harvest Summary", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="bold")
    table.add_column("Count", justify="right")
    for key, val in stats.items():
        table.add_row(key.replace("_", " ").capitalize(), str(val))
    console.print(table)


def parse_page_count(value: str | None) -> int:
    if value is None:
        raise UsageError(USAGE)
    try:
        page_count = int(value)
    except ValueError:
        raise UsageError(f"{value} is not an integer") from None
    if page_count < 1:
        raise UsageError("Page count should be positive")
    return page_count


@click.group()
def cli() -> None:
    """Booru Harvester – Download the top-scored images for a tag search.

    Crawls the search listing, ranks every post by score and saves the
    best 100 images into a new output directory.
    """


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("page_count", required=False)
@click.argument("tags", nargs=-1)
def run(page_count: str | None, tags: tuple[str, ...]) -> None:
    """Crawl PAGE_COUNT listing pages for TAGS and download the top posts.

    Example: booru-harvester run 3 cat "long hair"
    """
    try:
        if not tags:
            raise UsageError(USAGE)
        pages = parse_page_count(page_count)
    except UsageError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)

    _setup_logging(verbose=bool(os.getenv("BOORU_DEBUG")))
    clean_tags = sanitize_tags(tags)
    # Progress shares the log handler's console so warnings don't tear the bar
    with Harvester(HarvesterConfig(), console=err_console) as h:
        console.print(f"[bold]Harvesting {pages} page(s) for [cyan]{escape(' '.join(clean_tags))}[/cyan]...[/bold]")
        h.run(pages, clean_tags)
        _print_stats(h.stats)
    console.print("Finished")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
