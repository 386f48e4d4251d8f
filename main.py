"""Entry point: play a story document in the terminal.

Usage:
    python main.py stories/cave.json                 # Play from a file
    python main.py https://example.com/story.json    # Play from a URL
    python main.py stories/cave.json --start intro   # Begin somewhere else
    python main.py stories/cave.json --pace          # Press a key after each passage
    python main.py stories/cave.json --verbose       # Debug logging
"""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from player.config import load_config
from player.display import ConsoleDisplay
from player.engine import StoryEngine
from player.journal import PlayJournal
from sources import FileSource, HttpSource, is_url
from story import StoryError, compile_graph


def _setup_logging(verbose: bool = False, log_file: str | None = None) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    fmt = "%(asctime)s — %(name)s — %(levelname)s — %(message)s"

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=fmt, handlers=handlers)

    # Quiet down noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


async def _play(story: str, start: str, cfg: dict, pace: bool) -> None:
    fetch_cfg = cfg["fetch"]
    files = FileSource(fetch_cfg.get("base_dir") or ".")

    async with HttpSource(
        timeout=float(fetch_cfg.get("timeout", 30.0)),
        token=cfg["_secrets"]["story_token"],
        user_agent=fetch_cfg.get("user_agent", "adventure/0.1"),
    ) as http:
        text = await (http if is_url(story) else files).fetch(story)
        graph = compile_graph(text, source=story)

        journal_db = cfg["storage"].get("journal_db")
        journal = PlayJournal(journal_db) if journal_db else None
        if journal:
            await journal.open()

        display = ConsoleDisplay(prompt=cfg["player"].get("prompt", "Choice"))
        try:
            async with StoryEngine(
                display,
                url_source=http,
                file_source=files,
                pace_text=pace,
                journal=journal,
            ) as engine:
                play = engine.start(graph, start)
                finished = asyncio.ensure_future(play.wait())
                aborted = asyncio.ensure_future(display.aborted.wait())
                await asyncio.wait({finished, aborted}, return_when=asyncio.FIRST_COMPLETED)
                if not finished.done():
                    finished.cancel()
                    click.echo("\nInput closed. Leaving the story.")
                    return
                aborted.cancel()
                finished.result()
        finally:
            if journal:
                await journal.close()


@click.command()
@click.argument("story")
@click.option("--start", default=None, help="Entry node identifier")
@click.option("--pace/--no-pace", default=None, help="Wait for a key press after each passage")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.option("--config-dir", type=click.Path(), default=None, help="Config directory")
def main(story: str, start: str | None, pace: bool | None, verbose: bool, config_dir: str | None) -> None:
    """Play the branching story at STORY (a file path or http(s) URL)."""

    cfg = load_config(config_dir)
    _setup_logging(verbose=verbose, log_file=cfg["storage"].get("log_file"))

    player_cfg = cfg["player"]
    start = start or player_cfg.get("start", "start")
    pace = bool(player_cfg.get("pace_text", False)) if pace is None else pace

    try:
        asyncio.run(_play(story, start, cfg, pace))
    except StoryError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nStory abandoned.")


if __name__ == "__main__":
    main()
