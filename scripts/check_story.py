"""Compile a story document and report what it contains.

Usage:
    python scripts/check_story.py stories/cave.json
    python scripts/check_story.py https://example.com/story.json

Exits with status 1 when the document does not compile.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sources import FileSource, HttpSource, is_url
from story import NodeKind, StoryError, compile_graph


async def _load(story: str, timeout: float) -> str:
    if is_url(story):
        async with HttpSource(timeout=timeout) as http:
            return await http.fetch(story)
    return await FileSource().fetch(story)


@click.command()
@click.argument("story")
@click.option("--timeout", default=30.0, show_default=True, help="Seconds to wait for a URL")
def check(story: str, timeout: float) -> None:
    """Check that STORY compiles into a fully resolved graph."""

    try:
        graph = compile_graph(asyncio.run(_load(story, timeout)), source=story)
    except StoryError as e:
        click.echo(f"{story}: {e}", err=True)
        sys.exit(1)

    counts = graph.count_kinds()
    click.echo(f"{story}: OK, {len(graph)} nodes")
    for kind in NodeKind:
        if counts.get(kind):
            click.echo(f"  {kind.value:<5} {counts[kind]}")

    locators = graph.external_locators()
    if locators:
        click.echo("Linked documents (fetched at play time):")
        for locator in locators:
            click.echo(f"  {locator}")


if __name__ == "__main__":
    check()
