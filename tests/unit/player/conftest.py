"""Shared doubles for playback tests."""

from __future__ import annotations

import asyncio
import json
from collections import deque
from collections.abc import Callable

import pytest

from story import FetchError


class RecordingDisplay:
    """Records every boundary call; answers choices from a script."""

    def __init__(self, answers=()):
        self.calls: list[tuple] = []
        self.answers = deque(answers)
        self.waiting: Callable[[str], None] | None = None

    def show_text(self, text: str) -> None:
        self.calls.append(("text", text))

    def show_prompt(self, text: str) -> None:
        self.calls.append(("prompt", text))

    def show_option(self, key: str, text: str) -> None:
        self.calls.append(("option", key, text))

    def request_choice(self, on_choice: Callable[[str], None]) -> None:
        self.calls.append(("choose",))
        if self.answers:
            on_choice(self.answers.popleft())
        else:
            self.waiting = on_choice

    def reject_choice(self, key: str) -> None:
        self.calls.append(("reject", key))

    def request_acknowledgement(self, on_ack: Callable[[], None]) -> None:
        self.calls.append(("ack",))
        on_ack()

    def on_end(self) -> None:
        self.calls.append(("end",))


class StaticSource:
    """Serves documents from a dict; unknown locators fail."""

    def __init__(self, documents: dict):
        self.documents = documents
        self.fetched: list[str] = []

    async def fetch(self, locator: str) -> str:
        self.fetched.append(locator)
        if locator not in self.documents:
            raise FetchError(locator, "not found", status_code=404)
        doc = self.documents[locator]
        return doc if isinstance(doc, str) else json.dumps(doc)


class GatedSource(StaticSource):
    """Holds every fetch until the test opens that locator's gate."""

    def __init__(self, documents: dict):
        super().__init__(documents)
        self.gates = {locator: asyncio.Event() for locator in documents}
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, locator: str) -> str:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await self.gates[locator].wait()
            return await super().fetch(locator)
        finally:
            self.in_flight -= 1


@pytest.fixture
def display_factory():
    return RecordingDisplay


@pytest.fixture
def static_source():
    return StaticSource


@pytest.fixture
def gated_source():
    return GatedSource
