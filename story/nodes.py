"""Story graph node model.

A node is one of a closed set of variants, each tagged with a ``NodeKind``.
Callers dispatch on ``node.kind`` rather than on the concrete class.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union


class NodeKind(str, Enum):
    ROAD = "road"
    FORK = "fork"
    LINK = "link"
    FILE = "file"
    DEAD = "dead"


@dataclass(frozen=True)
class Dead:
    """End of the story. Stateless: every ``Dead()`` is the same terminal."""

    kind: ClassVar[NodeKind] = NodeKind.DEAD


DEAD = Dead()


@dataclass(frozen=True, eq=False)
class Road:
    """A spot on the story line with exactly one successor."""

    kind: ClassVar[NodeKind] = NodeKind.ROAD

    text: str
    next: Node = DEAD


@dataclass(frozen=True, eq=False)
class Option:
    """One keyed branch of a fork."""

    key: str
    text: str
    next: Node = DEAD


@dataclass(frozen=True, eq=False)
class Fork:
    """A split in the story line. Options keep their declaration order."""

    kind: ClassVar[NodeKind] = NodeKind.FORK

    text: str
    options: tuple[Option, ...] = ()
    _by_key: dict[str, Option] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", tuple(self.options))
        object.__setattr__(self, "_by_key", {opt.key: opt for opt in self.options})

    def option(self, key: str) -> Option | None:
        """Exact, case-sensitive lookup of an option by key."""
        return self._by_key.get(key)

    @property
    def keys(self) -> list[str]:
        return [opt.key for opt in self.options]


@dataclass(frozen=True)
class Link:
    """Defers to a node inside a document hosted at a URL."""

    kind: ClassVar[NodeKind] = NodeKind.LINK

    url: str
    entry_key: str

    @property
    def locator(self) -> str:
        return self.url


@dataclass(frozen=True)
class File:
    """Defers to a node inside a document on local storage."""

    kind: ClassVar[NodeKind] = NodeKind.FILE

    path: str
    entry_key: str

    @property
    def locator(self) -> str:
        return self.path


Node = Union[Road, Fork, Link, File, Dead]

# Names used by older story documents and tools
TextNode = Road
PlotNode = Fork


class Graph(Mapping[str, Node]):
    """Read-only mapping of node identifiers to compiled nodes."""

    def __init__(self, nodes: Mapping[str, Node], source: str | None = None):
        self._nodes = dict(nodes)
        self.source = source

    def __getitem__(self, identifier: str) -> Node:
        return self._nodes[identifier]

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"Graph(source={self.source!r}, nodes={len(self._nodes)})"

    def count_kinds(self) -> dict[NodeKind, int]:
        counts: dict[NodeKind, int] = {}
        for node in self._nodes.values():
            counts[node.kind] = counts.get(node.kind, 0) + 1
        return counts

    def external_locators(self) -> list[str]:
        """Locators of every link/file node, in declaration order."""
        return [
            node.locator
            for node in self._nodes.values()
            if node.kind in (NodeKind.LINK, NodeKind.FILE)
        ]
