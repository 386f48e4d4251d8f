"""Story graph — node model, compiler and error taxonomy."""

from .compiler import compile_graph, load_document
from .errors import (
    FetchError,
    SchemaError,
    StoryError,
    UnknownChoiceError,
    UnknownNodeError,
    UnresolvedReferenceError,
)
from .nodes import DEAD, Dead, File, Fork, Graph, Link, Node, NodeKind, Option, PlotNode, Road, TextNode

__all__ = [
    "DEAD",
    "Dead",
    "FetchError",
    "File",
    "Fork",
    "Graph",
    "Link",
    "Node",
    "NodeKind",
    "Option",
    "PlotNode",
    "Road",
    "SchemaError",
    "StoryError",
    "TextNode",
    "UnknownChoiceError",
    "UnknownNodeError",
    "UnresolvedReferenceError",
    "compile_graph",
    "load_document",
]
