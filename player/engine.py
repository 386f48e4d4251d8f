"""Playback engine — drives a compiled story graph one node at a time.

Every execution request (a new play, a road's successor, a resolved
choice, a finished fetch) goes through one FIFO queue drained by a single
worker task, and each node runs under the engine's execution permit. A
node that suspends (waiting for a choice or a fetch) keeps the permit, so
anything enqueued meanwhile stays buffered until it finishes.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any, NamedTuple

from sources import StorySource
from story.compiler import compile_graph
from story.errors import FetchError, StoryError, UnknownChoiceError, UnknownNodeError
from story.nodes import Dead, File, Fork, Graph, Link, Node, NodeKind, Road

from .display import Display
from .journal import PlayJournal

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    AWAITING_CHOICE = "awaiting_choice"
    AWAITING_FETCH = "awaiting_fetch"
    TERMINATED = "terminated"


class PlayStatus(str, Enum):
    RUNNING = "running"
    FINISHED = "finished"
    FAILED = "failed"


class Step(NamedTuple):
    """A node to execute, together with the graph it belongs to."""

    node: Node
    graph: Graph


class Play:
    """Handle on one run through a story, from its entry node to the end."""

    def __init__(self, play_id: int, graph: Graph, entry: str, done: asyncio.Future):
        self.id = play_id
        self.graph = graph
        self.entry = entry
        self.error: BaseException | None = None
        self.started = False
        self._done = done

    def __repr__(self) -> str:
        return f"Play(id={self.id}, entry={self.entry!r}, status={self.status.value})"

    @property
    def status(self) -> PlayStatus:
        if not self._done.done():
            return PlayStatus.RUNNING
        if self._done.cancelled() or self.error is not None:
            return PlayStatus.FAILED
        return PlayStatus.FINISHED

    def done(self) -> bool:
        return self._done.done()

    async def wait(self) -> None:
        """Wait for the story to end; re-raise whatever terminated it."""
        await self._done

    def _finish(self) -> None:
        if not self._done.done():
            self._done.set_result(None)

    def _fail(self, exc: BaseException) -> None:
        if not self._done.done():
            self.error = exc
            self._done.set_exception(exc)

    def _cancel(self) -> None:
        self._done.cancel()


class StoryEngine:
    """Plays story graphs against a display, one node execution at a time.

    Usage::

        async with StoryEngine(display, url_source=HttpSource()) as engine:
            await engine.play(graph, "start")
    """

    def __init__(
        self,
        display: Display,
        *,
        url_source: StorySource | None = None,
        file_source: StorySource | None = None,
        pace_text: bool = False,
        journal: PlayJournal | None = None,
    ):
        self._display = display
        self._sources: dict[NodeKind, StorySource | None] = {
            NodeKind.LINK: url_source,
            NodeKind.FILE: file_source,
        }
        self._pace_text = pace_text
        self._journal = journal

        self._queue: asyncio.Queue[tuple[Play, Step]] = asyncio.Queue()
        self._permit = asyncio.Lock()
        self._worker: asyncio.Task | None = None
        self._plays: dict[int, Play] = {}
        self._ids = itertools.count(1)
        self._closed = False

        self._handlers: dict[NodeKind, Callable[..., Any]] = {
            NodeKind.ROAD: self._play_road,
            NodeKind.FORK: self._play_fork,
            NodeKind.LINK: self._play_linked,
            NodeKind.FILE: self._play_linked,
            NodeKind.DEAD: self._play_dead,
        }

        self.state = EngineState.IDLE
        self.current: Node | None = None

    async def __aenter__(self) -> StoryEngine:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ── Public API ──────────────────────────────────────────────

    def start(self, graph: Graph, entry: str) -> Play:
        """Queue a new play of ``graph`` beginning at ``entry``.

        Must be called while the event loop is running.
        """
        if self._closed:
            raise RuntimeError("StoryEngine is closed")
        node = graph.get(entry)
        if node is None:
            raise UnknownNodeError(entry, graph.source)

        play = Play(next(self._ids), graph, entry, asyncio.get_running_loop().create_future())
        self._plays[play.id] = play
        logger.info("Play %d queued at '%s' (%s)", play.id, entry, graph.source or "<document>")
        self._enqueue(play, Step(node, graph))
        return play

    async def play(self, graph: Graph, entry: str) -> Play:
        """Start a play and wait for it to end."""
        play = self.start(graph, entry)
        await play.wait()
        return play

    async def run(self, play: Play, step: Step) -> Step | None:
        """Execute exactly one node and return what should run next.

        ``None`` means the play reached its end.
        """
        async with self._permit:
            node = step.node
            self.current = node
            self.state = EngineState.RUNNING
            logger.debug("Play %d running %s node", play.id, node.kind.value)
            await self._record(play, "node", node.kind)
            return await self._handlers[node.kind](node, play, step.graph)

    async def close(self) -> None:
        """Tear the engine down; unfinished plays are cancelled."""
        self._closed = True
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        for play in self._plays.values():
            play._cancel()
        self._plays.clear()
        self.current = None
        self.state = EngineState.TERMINATED

    @property
    def pending(self) -> int:
        """Number of executions waiting behind the current one."""
        return self._queue.qsize()

    # ── Queue ───────────────────────────────────────────────────

    def _enqueue(self, play: Play, step: Step) -> None:
        self._queue.put_nowait((play, step))
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        while True:
            play, step = await self._queue.get()
            try:
                await self._execute(play, step)
            finally:
                self._queue.task_done()
            if self._queue.empty() and self.state is not EngineState.TERMINATED:
                self.current = None
                self.state = EngineState.IDLE

    async def _execute(self, play: Play, step: Step) -> None:
        if play.done():
            return
        if not play.started:
            play.started = True
            await self._record(play, "start", step.node.kind, {"entry": play.entry})

        try:
            successor = await self.run(play, step)
        except StoryError as exc:
            logger.warning("Play %d failed: %s", play.id, exc)
            await self._terminate(play, exc)
            return
        except Exception as exc:
            logger.error("Play %d crashed in %s node", play.id, step.node.kind.value, exc_info=True)
            await self._terminate(play, exc)
            return

        if successor is None:
            await self._terminate(play)
        else:
            self._enqueue(play, successor)

    async def _terminate(self, play: Play, exc: BaseException | None = None) -> None:
        self.state = EngineState.TERMINATED
        self.current = None
        self._plays.pop(play.id, None)
        if exc is None:
            logger.info("Play %d reached the end", play.id)
            await self._record(play, "end", NodeKind.DEAD)
            play._finish()
        else:
            await self._record(play, "error", "", {"error": type(exc).__name__, "message": str(exc)})
            play._fail(exc)

    # ── Node behaviour ──────────────────────────────────────────

    async def _play_road(self, road: Road, play: Play, graph: Graph) -> Step:
        self._display.show_text(road.text)
        if self._pace_text:
            await self._wait_for(self._display.request_acknowledgement)
        return Step(road.next, graph)

    async def _play_fork(self, fork: Fork, play: Play, graph: Graph) -> Step:
        self._display.show_prompt(fork.text)
        for option in fork.options:
            self._display.show_option(option.key, option.text)

        while True:
            self.state = EngineState.AWAITING_CHOICE
            key = await self._wait_for(self._display.request_choice)
            option = fork.option(key)
            if option is not None:
                self.state = EngineState.RUNNING
                await self._record(play, "choice", fork.kind, {"key": key})
                return Step(option.next, graph)

            error = UnknownChoiceError(key, fork.keys)
            logger.info("Play %d: %s", play.id, error)
            await self._record(play, "rejected_choice", fork.kind, {"key": key})
            self._display.reject_choice(key)

    async def _play_linked(self, node: Link | File, play: Play, graph: Graph) -> Step:
        source = self._sources.get(node.kind)
        if source is None:
            raise FetchError(node.locator, f"no source configured for {node.kind.value} nodes")

        self.state = EngineState.AWAITING_FETCH
        await self._record(play, "fetch", node.kind, {"locator": node.locator})
        text = await source.fetch(node.locator)
        self.state = EngineState.RUNNING

        linked = compile_graph(text, source=node.locator)
        entry = linked.get(node.entry_key)
        if entry is None:
            raise UnknownNodeError(node.entry_key, node.locator)
        logger.info("Play %d entering '%s' from %s", play.id, node.entry_key, node.locator)
        return Step(entry, linked)

    async def _play_dead(self, node: Dead, play: Play, graph: Graph) -> None:
        self._display.on_end()
        return None

    # ── Helpers ─────────────────────────────────────────────────

    async def _wait_for(self, request: Callable[[Callable[..., None]], None]) -> Any:
        """Hand ``request`` a one-shot callback and wait until it is called.

        Calls after the first are ignored. The callback must be invoked on
        the event loop thread.
        """
        future = asyncio.get_running_loop().create_future()

        def resolve(*value: Any) -> None:
            if future.done():
                logger.debug("Ignoring callback for an already resolved suspension")
                return
            future.set_result(value[0] if value else None)

        request(resolve)
        return await future

    async def _record(
        self,
        play: Play,
        event_type: str,
        kind: NodeKind | str,
        detail: dict | None = None,
    ) -> None:
        if self._journal is None:
            return
        kind_name = kind.value if isinstance(kind, NodeKind) else kind
        try:
            await self._journal.log_event(play.id, event_type, kind_name, detail)
        except Exception as exc:
            logger.warning("Failed to journal %s event for play %d: %s", event_type, play.id, exc)
