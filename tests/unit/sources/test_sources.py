"""Tests for the HTTP and file story sources."""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import pytest

from sources import FileSource, HttpSource, is_url
from story import FetchError, compile_graph


def _fetch(source: HttpSource, locator: str) -> str:
    async def _run() -> str:
        async with source:
            return await source.fetch(locator)

    return asyncio.run(_run())


class TestHttpSource:
    def test_returns_body_text(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text='{"start": {"type": "road", "text": "hi", "next": null}}')

        source = HttpSource(token="secret", user_agent="tests/1.0", transport=httpx.MockTransport(handler))
        text = _fetch(source, "https://example.com/story.json")

        assert '"hi"' in text
        assert seen[0].headers["Authorization"] == "Bearer secret"
        assert seen[0].headers["User-Agent"] == "tests/1.0"

    def test_no_token_no_auth_header(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="{}")

        _fetch(HttpSource(transport=httpx.MockTransport(handler)), "https://example.com/s.json")
        assert "Authorization" not in seen[0].headers

    def test_http_error_status(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404, text="missing"))
        with pytest.raises(FetchError) as info:
            _fetch(HttpSource(transport=transport), "https://example.com/gone.json")
        assert info.value.status_code == 404
        assert info.value.locator == "https://example.com/gone.json"

    def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(FetchError, match="connection refused"):
            _fetch(HttpSource(transport=httpx.MockTransport(handler)), "https://example.com/s.json")

    def test_rejects_non_http_locator(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="{}"))
        with pytest.raises(FetchError, match="only http"):
            _fetch(HttpSource(transport=transport), "ftp://example.com/s.json")


class TestFileSource:
    def test_reads_relative_to_base_dir(self, tmp_path: Path):
        (tmp_path / "more.json").write_text('{"a": 1}', encoding="utf-8")
        text = asyncio.run(FileSource(tmp_path).fetch("more.json"))
        assert text == '{"a": 1}'

    def test_absolute_path_ignores_base_dir(self, tmp_path: Path):
        story = tmp_path / "abs.json"
        story.write_text("{}", encoding="utf-8")
        assert asyncio.run(FileSource("/nonexistent").fetch(str(story))) == "{}"

    def test_byte_order_mark_is_dropped(self, tmp_path: Path):
        (tmp_path / "bom.json").write_bytes(
            b'\xef\xbb\xbf{"start": {"type": "road", "text": "hi", "next": null}}'
        )
        text = asyncio.run(FileSource(tmp_path).fetch("bom.json"))
        assert text.startswith("{")
        assert compile_graph(text, source="bom.json")["start"].text == "hi"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FetchError, match="no such file"):
            asyncio.run(FileSource(tmp_path).fetch("nope.json"))


def test_is_url():
    assert is_url("https://example.com/a.json")
    assert is_url("http://localhost:8000/a.json")
    assert not is_url("stories/a.json")
