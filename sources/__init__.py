"""Fetch transports for linked story documents."""

from __future__ import annotations

from typing import Protocol

from .client import HttpSource
from .files import FileSource


class StorySource(Protocol):
    """Anything that can fetch a story document by locator."""

    async def fetch(self, locator: str) -> str:
        ...


def is_url(locator: str) -> bool:
    return locator.startswith(("http://", "https://"))


__all__ = ["FileSource", "HttpSource", "StorySource", "is_url"]
