"""Async HTTP source for linked story documents."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from story.errors import FetchError

logger = logging.getLogger(__name__)


class HttpSource:
    """Fetch story documents over HTTP(S).

    Usage::

        async with HttpSource(timeout=10.0) as source:
            text = await source.fetch("https://example.com/story.json")
    """

    def __init__(
        self,
        timeout: float = 30.0,
        token: str = "",
        user_agent: str = "adventure/0.1",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"User-Agent": user_agent, "Accept": "application/json, text/plain, */*"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> HttpSource:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch(self, locator: str) -> str:
        """GET ``locator`` and return the body as text."""
        if not locator.startswith(("http://", "https://")):
            raise FetchError(locator, "only http:// and https:// URLs are supported")

        logger.debug("GET %s", locator)
        try:
            resp = await self._client.get(locator)
        except httpx.HTTPError as exc:
            raise FetchError(locator, str(exc) or type(exc).__name__) from exc

        if resp.status_code >= 400:
            raise FetchError(locator, f"HTTP {resp.status_code}", status_code=resp.status_code)

        logger.debug("Fetched %d bytes from %s", len(resp.content), locator)
        return resp.text
