"""Body nodes produced by the fragment assembler."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for body nodes.

    All nodes track their source location for error reporting.
    Nodes are immutable so a compiled body can be reused across renders.
    """

    lineno: int
    col_offset: int


@dataclass(frozen=True, slots=True)
class Emit(Node):
    """Literal text written to the output unchanged."""

    text: str


@dataclass(frozen=True, slots=True)
class Code(Node):
    """A code fragment inserted verbatim into the executable body."""

    fragment: str
