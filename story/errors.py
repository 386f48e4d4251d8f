"""Errors raised while compiling and playing stories."""

from __future__ import annotations

from collections.abc import Iterable


class StoryError(Exception):
    """Base class for every story compilation or playback error."""


class SchemaError(StoryError):
    """Raised when a node declaration is unknown or malformed."""

    def __init__(self, message: str, node: str | None = None):
        self.node = node
        if node is not None:
            message = f"node '{node}': {message}"
        super().__init__(message)


class UnresolvedReferenceError(StoryError):
    """Raised when a node refers to an identifier missing from its document."""

    def __init__(self, identifier: str, missing: Iterable[str] = ()):
        self.identifier = identifier
        self.missing = list(missing) or [identifier]
        names = ", ".join(f"'{name}'" for name in self.missing)
        super().__init__(f"Unresolved node reference(s): {names}")


class UnknownNodeError(StoryError):
    """Raised when an entry identifier is absent from a graph."""

    def __init__(self, identifier: str, source: str | None = None):
        self.identifier = identifier
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"Node '{identifier}' does not exist{where}")


class FetchError(StoryError):
    """Raised when a linked document cannot be fetched."""

    def __init__(self, locator: str, message: str, status_code: int = 0):
        self.locator = locator
        self.status_code = status_code
        super().__init__(f"Failed to fetch {locator}: {message}")


class UnknownChoiceError(StoryError):
    """A player picked a key the active fork does not offer.

    Recoverable: the engine reports it and asks again.
    """

    def __init__(self, key: str, options: Iterable[str] = ()):
        self.key = key
        self.options = list(options)
        super().__init__(f"Choice '{key}' does not exist")
