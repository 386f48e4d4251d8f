"""Local-file source for linked story documents."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from story.errors import FetchError

logger = logging.getLogger(__name__)


class FileSource:
    """Read story documents from disk, relative to ``base_dir``."""

    def __init__(self, base_dir: str | Path = "."):
        self._base_dir = Path(base_dir)

    def resolve(self, locator: str) -> Path:
        path = Path(locator).expanduser()
        return path if path.is_absolute() else self._base_dir / path

    async def fetch(self, locator: str) -> str:
        path = self.resolve(locator)
        logger.debug("Reading %s", path)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8-sig")
        except FileNotFoundError as exc:
            raise FetchError(locator, f"no such file: {path}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise FetchError(locator, str(exc)) from exc
