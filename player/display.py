"""Display/input boundary between the engine and the player.

The engine owns nothing about presentation: it calls out to a ``Display``
and is called back when the player has chosen or acknowledged.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

import click

logger = logging.getLogger(__name__)


class Display(Protocol):
    """Capabilities the playback engine needs from a front end."""

    def show_text(self, text: str) -> None: ...

    def show_prompt(self, text: str) -> None: ...

    def show_option(self, key: str, text: str) -> None: ...

    def request_choice(self, on_choice: Callable[[str], None]) -> None:
        """Ask for a choice; call ``on_choice(key)`` once it is made."""
        ...

    def reject_choice(self, key: str) -> None:
        """Tell the player ``key`` is not one of the offered options."""
        ...

    def request_acknowledgement(self, on_ack: Callable[[], None]) -> None:
        """Only used when text pacing is on."""
        ...

    def on_end(self) -> None: ...


class ConsoleDisplay:
    """Terminal front end built on click.

    Prompts block on stdin, so they run in a worker thread and hand the
    answer back on the event loop.
    """

    def __init__(self, prompt: str = "Choice", end_message: str = "The End."):
        self._prompt = prompt
        self._end_message = end_message
        self._tasks: set[asyncio.Task] = set()
        self.aborted = asyncio.Event()

    def show_text(self, text: str) -> None:
        click.echo(text)
        click.echo()

    def show_prompt(self, text: str) -> None:
        click.echo(text)

    def show_option(self, key: str, text: str) -> None:
        click.echo(f"  {key}) {text}")

    def request_choice(self, on_choice: Callable[[str], None]) -> None:
        self._spawn(self._read_choice(on_choice))

    def reject_choice(self, key: str) -> None:
        click.echo(f"'{key}' is not one of the choices.", err=True)

    def request_acknowledgement(self, on_ack: Callable[[], None]) -> None:
        self._spawn(self._read_ack(on_ack))

    def on_end(self) -> None:
        click.echo(self._end_message)

    # ── Helpers ─────────────────────────────────────────────────

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _read_choice(self, on_choice: Callable[[str], None]) -> None:
        try:
            answer = await asyncio.to_thread(
                click.prompt, self._prompt, default="", show_default=False
            )
        except (click.Abort, EOFError):
            logger.info("Input closed while waiting for a choice")
            self.aborted.set()
            return
        on_choice(str(answer).strip())

    async def _read_ack(self, on_ack: Callable[[], None]) -> None:
        try:
            await asyncio.to_thread(click.pause)
        except (click.Abort, EOFError):
            self.aborted.set()
            return
        on_ack()
