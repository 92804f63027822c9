"""Token types produced by the notpl lexer.

The lexer only distinguishes two kinds of runs: literal text that is emitted
as-is, and code fragments that are executed. EOF marks the end of the stream.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    """Kinds of runs captured by the delimiter state machine."""

    DATA = "data"
    CODE = "code"
    EOF = "eof"


@dataclass(frozen=True, slots=True)
class Token:
    """A maximal run of source captured under one lexer mode.

    Attributes:
        type: DATA for literal text, CODE for a fragment, EOF at the end
        value: Run content with delimiters removed
        lineno: 1-based line of the first character of the run
        col_offset: 0-based column of the first character of the run
        terminated: False for a CODE run that hit end of input before
            its stop delimiter
    """

    type: TokenType
    value: str
    lineno: int
    col_offset: int
    terminated: bool = True

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.lineno}:{self.col_offset})"


@dataclass(frozen=True, slots=True)
class Delimiters:
    """Start/stop marker pair enclosing a code fragment."""

    start: str = "<$"
    stop: str = "$>"

    def __post_init__(self) -> None:
        if not self.start or not self.stop:
            raise ValueError("Delimiters must be non-empty strings")
        if self.start == self.stop:
            raise ValueError(f"Start and stop delimiters must differ, both are {self.start!r}")


DEFAULT_DELIMITERS = Delimiters()
