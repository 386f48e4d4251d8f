"""Compile story documents into resolved graphs.

Compilation runs in two passes because a node may refer to a sibling
declared later in the same document:

1. every entry becomes a raw node whose references are ``Pending``
   placeholders (or ``DEAD`` for ``null``);
2. every placeholder is swapped for the compiled node it names.

Placeholders never leave this module: a dangling identifier aborts the
whole compilation with ``UnresolvedReferenceError``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

import yaml

from .errors import SchemaError, UnresolvedReferenceError
from .nodes import DEAD, Dead, File, Fork, Graph, Link, Node, Option, Road

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = (".yaml", ".yml")


@dataclass(frozen=True)
class Pending:
    """A reference to a node that has not been resolved yet."""

    identifier: str


Ref = Union[Pending, Dead]


@dataclass
class _RawOption:
    key: str
    text: str
    next: Ref


@dataclass
class _RawRoad:
    text: str
    next: Ref


@dataclass
class _RawFork:
    text: str
    options: list[_RawOption] = field(default_factory=list)


_RawNode = Union[_RawRoad, _RawFork, Link, File]


# ── Decoding ────────────────────────────────────────────────────


def load_document(text: str, source: str | None = None) -> Mapping[str, Any]:
    """Decode document text into a mapping of identifiers to declarations."""
    is_yaml = bool(source) and source.lower().endswith(_YAML_SUFFIXES)
    try:
        data = yaml.safe_load(text) if is_yaml else json.loads(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise SchemaError(f"Document {source or '<text>'} is not valid: {exc}") from exc

    return _require_mapping(data, source)


def _require_mapping(data: Any, source: str | None) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise SchemaError(f"Document {source or '<text>'} must be a mapping of node identifiers")
    return data


# ── Pass 1: construction ────────────────────────────────────────


def _require_str(body: Mapping[str, Any], name: str, node: str) -> str:
    value = body.get(name)
    if not isinstance(value, str):
        raise SchemaError(f"field '{name}' must be a string", node=node)
    return value


def _ref(value: Any, where: str, node: str) -> Ref:
    if value is None:
        return DEAD
    if not isinstance(value, str):
        raise SchemaError(f"{where} must be a node identifier or null", node=node)
    return Pending(value)


def _build_options(raw: Any, node: str) -> list[_RawOption]:
    if not isinstance(raw, list):
        raise SchemaError("field 'options' must be a list", node=node)
    if not raw:
        raise SchemaError("field 'options' must not be empty", node=node)

    options: list[_RawOption] = []
    seen: set[str] = set()
    for idx, entry in enumerate(raw):
        if not isinstance(entry, (list, tuple)) or len(entry) != 3:
            raise SchemaError(f"options[{idx}] must be [key, text, next]", node=node)
        key, text, target = entry
        if not isinstance(key, str) or not isinstance(text, str):
            raise SchemaError(f"options[{idx}] key and text must be strings", node=node)
        if key in seen:
            raise SchemaError(f"duplicate option key '{key}'", node=node)
        seen.add(key)
        options.append(_RawOption(key, text, _ref(target, f"options[{idx}] next", node)))
    return options


def _build_raw(identifier: str, body: Any) -> _RawNode:
    if not isinstance(body, Mapping):
        raise SchemaError("declaration must be a mapping", node=identifier)

    node_type = body.get("type")
    if node_type == "road":
        return _RawRoad(
            text=_require_str(body, "text", identifier),
            next=_ref(body.get("next"), "field 'next'", identifier),
        )
    if node_type == "fork":
        return _RawFork(
            text=_require_str(body, "text", identifier),
            options=_build_options(body.get("options"), identifier),
        )
    if node_type == "link":
        return Link(
            url=_require_str(body, "url", identifier),
            entry_key=_require_str(body, "next", identifier),
        )
    if node_type == "file":
        return File(
            path=_require_str(body, "path", identifier),
            entry_key=_require_str(body, "next", identifier),
        )
    raise SchemaError(f"node type '{node_type}' does not exist", node=identifier)


# ── Pass 2: resolution ──────────────────────────────────────────


def _pending_refs(raw: _RawNode) -> list[Pending]:
    if isinstance(raw, _RawRoad):
        refs = [raw.next]
    elif isinstance(raw, _RawFork):
        refs = [opt.next for opt in raw.options]
    else:
        refs = []
    return [ref for ref in refs if isinstance(ref, Pending)]


def _resolve(raw_nodes: dict[str, _RawNode]) -> dict[str, Node]:
    missing: list[str] = []
    for raw in raw_nodes.values():
        for ref in _pending_refs(raw):
            if ref.identifier not in raw_nodes and ref.identifier not in missing:
                missing.append(ref.identifier)
    if missing:
        raise UnresolvedReferenceError(missing[0], missing)

    # Allocate first so cycles and forward references can be wired up
    nodes: dict[str, Node] = {}
    for identifier, raw in raw_nodes.items():
        if isinstance(raw, _RawRoad):
            nodes[identifier] = Road(raw.text)
        elif isinstance(raw, _RawFork):
            nodes[identifier] = Fork(
                raw.text, tuple(Option(opt.key, opt.text) for opt in raw.options)
            )
        else:
            nodes[identifier] = raw

    def target(ref: Ref) -> Node:
        return nodes[ref.identifier] if isinstance(ref, Pending) else ref

    # Nodes are frozen; successors are set here and nowhere else
    for identifier, raw in raw_nodes.items():
        node = nodes[identifier]
        if isinstance(raw, _RawRoad):
            object.__setattr__(node, "next", target(raw.next))
        elif isinstance(raw, _RawFork):
            for option, raw_option in zip(node.options, raw.options):
                object.__setattr__(option, "next", target(raw_option.next))
    return nodes


def compile_graph(document: str | Mapping[str, Any], source: str | None = None) -> Graph:
    """Compile a story document into a fully resolved ``Graph``.

    ``document`` is either already decoded or the raw document text.
    Raises ``SchemaError`` or ``UnresolvedReferenceError``; a graph is
    only returned when every reference resolved.
    """
    if isinstance(document, str):
        data = load_document(document, source)
    else:
        data = _require_mapping(document, source)

    raw_nodes: dict[str, _RawNode] = {}
    for identifier, body in data.items():
        if not isinstance(identifier, str):
            raise SchemaError(f"node identifier {identifier!r} must be a string")
        raw_nodes[identifier] = _build_raw(identifier, body)

    graph = Graph(_resolve(raw_nodes), source=source)
    logger.debug("Compiled %d nodes from %s", len(graph), source or "<document>")
    return graph
