"""Delimiter state machine for notpl templates.

Splits a template source into literal runs (DATA) and code runs (CODE) by
walking a Scanner one position at a time.

Modes:
    LITERAL: text is collected verbatim. A start delimiter switches to CODE.
    CODE: text is collected as a fragment. Single and double quotes are
        tracked so a stop delimiter inside a string literal is not
        structural. A ``#`` outside quotes starts a comment up to the end of
        the line; quotes in it are not tracked, but a stop delimiter still
        ends the fragment. A stop delimiter outside quotes switches back to
        LITERAL.

Escaping:
    A delimiter or quote preceded by an odd number of backslashes is never
    structural. Outside string literals the escaping backslash is dropped,
    so ``\\<$`` in literal text renders as ``<$``.

Diagnostics:
    - A stop delimiter in LITERAL mode is reported as dangling (non-fatal).
    - A start delimiter inside a CODE run (outside quotes) is reported as an
      unexpected opening (non-fatal).
    - End of input inside a CODE run raises TemplateSyntaxError pointing at
      the start delimiter that was never closed.

Back-to-back fragments (``$><$``) are handled by stepping the state machine
again at the new cursor position after every transition, so no character is
consumed between two delimiters.

Example:
    >>> [t.type.name for t in tokenize("<p><$ print('hi') $></p>")]
    ['DATA', 'CODE', 'DATA', 'EOF']

"""

from __future__ import annotations

from enum import Enum, auto

from notpl._types import DEFAULT_DELIMITERS, Delimiters, Token, TokenType
from notpl.environment.exceptions import ErrorCode, TemplateSyntaxError
from notpl.environment.reporting import Reporter
from notpl.scanner import Scanner


class LexerMode(Enum):
    """Current region of the source."""

    LITERAL = auto()
    CODE = auto()


class Lexer:
    """Delimiter-recognition state machine over a Scanner.

    A Lexer is single-use: ``tokenize()`` consumes the scanner. Construct a
    new one per full render.
    """

    __slots__ = (
        "_buffer",
        "_delimiters",
        "_filename",
        "_in_comment",
        "_in_double",
        "_in_single",
        "_mode",
        "_name",
        "_open_pos",
        "_reporter",
        "_run_start",
        "_scanner",
        "_tokens",
    )

    def __init__(
        self,
        source: str | Scanner,
        delimiters: Delimiters = DEFAULT_DELIMITERS,
        reporter: Reporter | None = None,
        *,
        name: str | None = None,
        filename: str | None = None,
    ):
        self._scanner = source if isinstance(source, Scanner) else Scanner(source)
        self._delimiters = delimiters
        self._reporter = reporter or Reporter()
        self._name = name
        self._filename = filename
        self._mode = LexerMode.LITERAL
        self._in_single = False
        self._in_double = False
        self._in_comment = False
        self._buffer: list[str] = []
        self._run_start = 0
        self._open_pos = 0
        self._tokens: list[Token] = []

    @property
    def mode(self) -> LexerMode:
        return self._mode

    @property
    def in_quotes(self) -> bool:
        return self._in_single or self._in_double

    def tokenize(self) -> list[Token]:
        """Consume the scanner and return DATA/CODE runs followed by EOF.

        Raises:
            TemplateSyntaxError: If input ends inside a code fragment
        """
        scanner = self._scanner
        while not scanner.eof():
            while self._step():
                if scanner.eof():
                    break
            if scanner.eof():
                break
            self._buffer.append(scanner.peek())
            scanner.advance()

        if self._mode is LexerMode.CODE:
            self._fail_unterminated()

        self._flush(TokenType.DATA)
        lineno, col = scanner.line_col()
        self._tokens.append(Token(TokenType.EOF, "", lineno, col))
        return self._tokens

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _step(self) -> bool:
        """Examine the cursor position; return True if a delimiter was consumed."""
        if self._mode is LexerMode.LITERAL:
            return self._step_literal()
        return self._step_code()

    def _step_literal(self) -> bool:
        scanner = self._scanner
        start, stop = self._delimiters.start, self._delimiters.stop
        escaped = self._escaped()
        at_start = scanner.lookahead(len(start)) == start

        if scanner.lookahead(len(stop)) == stop:
            if escaped:
                if not at_start:
                    self._drop_escape()
            else:
                lineno, col = scanner.line_col()
                self._reporter.error(
                    f"Stop delimiter {stop!r} without a matching {start!r} at line {lineno}, "
                    f"column {col}",
                    ErrorCode.DANGLING_STOP,
                )

        if not at_start:
            return False
        if escaped:
            self._drop_escape()
            return False

        self._flush(TokenType.DATA)
        self._open_pos = scanner.position
        self._mode = LexerMode.CODE
        self._in_single = self._in_double = self._in_comment = False
        scanner.advance(len(start))
        self._run_start = scanner.position
        return True

    def _step_code(self) -> bool:
        scanner = self._scanner
        start, stop = self._delimiters.start, self._delimiters.stop
        escaped = self._escaped()

        if not self.in_quotes and not escaped and scanner.lookahead(len(start)) == start:
            lineno, col = scanner.line_col()
            self._reporter.error(
                f"Start delimiter {start!r} inside an open code fragment at line {lineno}, "
                f"column {col}; is a {stop!r} missing?",
                ErrorCode.UNEXPECTED_START,
            )

        char = scanner.peek()
        if char == "\n":
            self._in_comment = False
        elif not escaped and not self._in_comment:
            if char == "#" and not self.in_quotes:
                self._in_comment = True
            elif char == "'" and not self._in_double:
                self._in_single = not self._in_single
            elif char == '"' and not self._in_single:
                self._in_double = not self._in_double

        if self.in_quotes or scanner.lookahead(len(stop)) != stop:
            return False
        if escaped:
            self._drop_escape()
            return False

        self._flush(TokenType.CODE)
        self._mode = LexerMode.LITERAL
        scanner.advance(len(stop))
        self._run_start = scanner.position
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _escaped(self) -> bool:
        """True if the cursor is preceded by an odd number of backslashes."""
        scanner = self._scanner
        pos = scanner.position
        count = 0
        while pos - count > 0 and scanner.source[pos - count - 1] == "\\":
            count += 1
        return count % 2 == 1

    def _drop_escape(self) -> None:
        if self._buffer and self._buffer[-1] == "\\":
            self._buffer.pop()

    def _flush(self, token_type: TokenType) -> None:
        """Emit the buffered run. Empty DATA runs are skipped, empty CODE runs kept."""
        value = "".join(self._buffer)
        self._buffer.clear()
        if not value and token_type is TokenType.DATA:
            return
        lineno, col = self._scanner.line_col(self._run_start)
        self._tokens.append(Token(token_type, value, lineno, col))

    def _fail_unterminated(self) -> None:
        lineno, col = self._scanner.line_col(self._open_pos)
        message = (
            f"Unterminated code fragment: {self._delimiters.start!r} opened at line "
            f"{lineno}, column {col} has no matching {self._delimiters.stop!r}"
        )
        self._reporter.error(message, ErrorCode.UNTERMINATED_FRAGMENT)
        raise TemplateSyntaxError(
            message,
            lineno=lineno,
            name=self._name,
            filename=self._filename,
            source=self._scanner.source,
            col_offset=col,
        )


def tokenize(
    source: str,
    delimiters: Delimiters = DEFAULT_DELIMITERS,
    reporter: Reporter | None = None,
) -> list[Token]:
    """Convenience wrapper: tokenize a source string with a fresh Lexer."""
    return Lexer(source, delimiters, reporter).tokenize()
