"""Character scanner for notpl template sources.

The Scanner owns an immutable source string and a movable cursor. It knows
nothing about delimiters; the lexer drives it one position at a time.

Cursor Model:
    The cursor is clamped to ``[0, len(source)]``. Position ``len(source)``
    is the end-of-input sentinel: ``eof()`` is True there, and ``peek()``
    keeps returning the last real character so callers that look at the
    current character after a final ``advance()`` never see an IndexError.

Line/Column Resolution:
    Newline offsets are indexed once at construction, so ``line_col()`` is a
    binary search rather than a rescan of the source.

Example:
    >>> s = Scanner("ab\\ncd")
    >>> s.advance(3)
    >>> s.peek(), s.line_col()
    ('c', (2, 0))

"""

from __future__ import annotations

from bisect import bisect_right


class Scanner:
    """Cursor over a template source with bounded lookahead/lookbehind."""

    __slots__ = ("_length", "_newlines", "_pos", "_source")

    def __init__(self, source: str):
        if not isinstance(source, str):
            raise TypeError(f"Scanner source must be str, got {type(source).__name__}")
        self._source = source
        self._length = len(source)
        self._pos = 0
        self._newlines = [i for i, ch in enumerate(source) if ch == "\n"]

    @property
    def source(self) -> str:
        return self._source

    @property
    def position(self) -> int:
        """Current cursor position."""
        return self._pos

    def __len__(self) -> int:
        return self._length

    def eof(self) -> bool:
        """True when the cursor sits on the end-of-input sentinel."""
        return self._pos >= self._length

    def peek(self) -> str:
        """Character under the cursor.

        At end of input this is the last real character; for an empty
        source it is the empty string.
        """
        if self._length == 0:
            return ""
        if self._pos >= self._length:
            return self._source[-1]
        return self._source[self._pos]

    def lookahead(self, count: int) -> str:
        """Return ``count`` characters starting at the cursor (fewer near the end)."""
        if count <= 0:
            return ""
        return self._source[self._pos : self._pos + count]

    def lookbehind(self, count: int) -> str:
        """Return up to ``count`` characters immediately before the cursor."""
        if count <= 0:
            return ""
        return self._source[max(0, self._pos - count) : self._pos]

    def advance(self, steps: int = 1) -> None:
        """Move the cursor forward, clamped at end of input.

        Raises:
            TypeError: If steps is not an int
            ValueError: If steps is negative (use ``retreat()`` instead)
        """
        if not isinstance(steps, int) or isinstance(steps, bool):
            raise TypeError(f"advance() steps must be int, got {type(steps).__name__}")
        if steps < 0:
            raise ValueError(f"advance() steps must be >= 0, got {steps}; use retreat()")
        self._pos = min(self._length, self._pos + steps)

    def retreat(self, steps: int = 1) -> None:
        """Move the cursor backward, clamped at the start."""
        if not isinstance(steps, int) or isinstance(steps, bool):
            raise TypeError(f"retreat() steps must be int, got {type(steps).__name__}")
        if steps < 0:
            raise ValueError(f"retreat() steps must be >= 0, got {steps}; use advance()")
        self._pos = max(0, self._pos - steps)

    def seek(self, position: int) -> None:
        """Place the cursor at an absolute position, clamped to bounds."""
        self._pos = max(0, min(self._length, position))

    def reset(self) -> None:
        self._pos = 0

    def rest(self) -> str:
        """Unconsumed remainder of the source."""
        return self._source[self._pos :]

    def line_col(self, position: int | None = None) -> tuple[int, int]:
        """Resolve a position (default: cursor) to a 1-based line and 0-based column."""
        pos = self._pos if position is None else max(0, min(self._length, position))
        line_index = bisect_right(self._newlines, pos - 1)
        line_start = self._newlines[line_index - 1] + 1 if line_index else 0
        return line_index + 1, pos - line_start
