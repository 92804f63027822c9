"""Tests for the delimiter state machine."""

from __future__ import annotations

import pytest

from notpl import Delimiters, TemplateSyntaxError, TokenType, tokenize
from notpl.environment import Reporter
from notpl.lexer import Lexer, LexerMode
from notpl.scanner import Scanner

from ..conftest import messages


def runs(source: str, delimiters: Delimiters | None = None) -> list[tuple[str, str]]:
    """(type, value) pairs without the EOF token."""
    tokens = tokenize(source, delimiters) if delimiters else tokenize(source)
    return [(t.type.name, t.value) for t in tokens if t.type is not TokenType.EOF]


class TestRuns:
    """Splitting sources into DATA and CODE runs."""

    def test_literal_only(self) -> None:
        assert runs("<div>hello world</div>") == [("DATA", "<div>hello world</div>")]

    def test_fragment_between_literals(self) -> None:
        assert runs("<p><$ print(1) $></p>") == [
            ("DATA", "<p>"),
            ("CODE", " print(1) "),
            ("DATA", "</p>"),
        ]

    def test_empty_source(self) -> None:
        tokens = tokenize("")
        assert [t.type for t in tokens] == [TokenType.EOF]

    def test_fragment_at_start_and_end(self) -> None:
        assert runs("<$a$>") == [("CODE", "a")]

    def test_back_to_back_fragments(self) -> None:
        """No character is lost between a stop and the next start delimiter."""
        assert runs("<$a$><$b$>") == [("CODE", "a"), ("CODE", "b")]

    def test_empty_fragment_is_kept(self) -> None:
        assert runs("x<$$>y") == [("DATA", "x"), ("CODE", ""), ("DATA", "y")]

    def test_multiline_fragment(self) -> None:
        assert runs("<$\nif x:\n  y\n$>") == [("CODE", "\nif x:\n  y\n")]

    def test_ends_with_eof_token(self) -> None:
        tokens = tokenize("abc")
        assert tokens[-1].type is TokenType.EOF

    def test_custom_delimiters(self) -> None:
        delimiters = Delimiters("{%", "%}")
        assert runs("a{% print(1) %}b<$c$>", delimiters) == [
            ("DATA", "a"),
            ("CODE", " print(1) "),
            ("DATA", "b<$c$>"),
        ]

    def test_single_character_delimiters(self) -> None:
        assert runs("a[x]b", Delimiters("[", "]")) == [
            ("DATA", "a"),
            ("CODE", "x"),
            ("DATA", "b"),
        ]

    def test_accepts_scanner(self) -> None:
        tokens = Lexer(Scanner("a<$b$>")).tokenize()
        assert [t.value for t in tokens[:-1]] == ["a", "b"]


class TestQuotes:
    """Stop delimiters inside string literals are not structural."""

    def test_stop_inside_single_quotes(self) -> None:
        assert runs("<$ print('$>') $>") == [("CODE", " print('$>') ")]

    def test_stop_inside_double_quotes(self) -> None:
        assert runs('<$ print("a $> b") $>!') == [("CODE", ' print("a $> b") '), ("DATA", "!")]

    def test_double_quote_inside_single_quotes(self) -> None:
        assert runs("<$ print('\"') $>x") == [("CODE", " print('\"') "), ("DATA", "x")]

    def test_escaped_quote_does_not_close(self) -> None:
        assert runs("<$ print('it\\'s $>') $>") == [("CODE", " print('it\\'s $>') ")]

    def test_quotes_reset_between_fragments(self) -> None:
        """Quote state never leaks from one fragment into literal text or the next fragment."""
        assert runs("<$ a = '' $>'<$ b $>") == [
            ("CODE", " a = '' "),
            ("DATA", "'"),
            ("CODE", " b "),
        ]

    def test_quote_in_comment_is_not_tracked(self) -> None:
        assert runs("<$ x = 1  # don't $>ok") == [("CODE", " x = 1  # don't "), ("DATA", "ok")]

    def test_comment_ends_at_newline(self) -> None:
        assert runs("<$ # it's\nprint('$>') $>!") == [
            ("CODE", " # it's\nprint('$>') "),
            ("DATA", "!"),
        ]

    def test_hash_inside_string_is_not_a_comment(self) -> None:
        assert runs("<$ print('#', '$>') $>") == [("CODE", " print('#', '$>') ")]


class TestEscapes:
    """Backslash-escaped delimiters."""

    def test_escaped_start_is_literal(self) -> None:
        assert runs("a \\<$ b") == [("DATA", "a <$ b")]

    def test_double_backslash_does_not_escape(self) -> None:
        assert runs("\\\\<$x$>") == [("DATA", "\\\\"), ("CODE", "x")]

    def test_escaped_stop_in_literal(self, caplog) -> None:
        assert runs("a \\$> b") == [("DATA", "a $> b")]
        assert messages(caplog, "N-LEX-002") == []

    def test_escaped_stop_in_code(self) -> None:
        assert runs("<$ x \\$> y $>") == [("CODE", " x $> y ")]


class TestDiagnostics:
    """Dangling and unterminated delimiters."""

    def test_unterminated_fragment_raises(self) -> None:
        with pytest.raises(TemplateSyntaxError) as exc_info:
            tokenize("line one\nab <$ print(1)")
        err = exc_info.value
        assert err.lineno == 2
        assert err.col_offset == 3
        assert "Unterminated code fragment" in str(err)
        assert err.code is not None and err.code.value == "N-TPL-002"

    def test_unterminated_reports_error(self, caplog) -> None:
        with pytest.raises(TemplateSyntaxError):
            tokenize("<$ x")
        assert messages(caplog, "N-LEX-001")

    def test_dangling_stop_is_reported_not_raised(self, caplog) -> None:
        assert runs("a $> b") == [("DATA", "a $> b")]
        assert messages(caplog, "N-LEX-002")

    def test_unexpected_start_is_reported(self, caplog) -> None:
        assert runs("<$ a <$ b $>") == [("CODE", " a <$ b ")]
        assert messages(caplog, "N-LEX-003")

    def test_start_inside_quotes_is_not_reported(self, caplog) -> None:
        runs("<$ print('<$') $>")
        assert messages(caplog, "N-LEX-003") == []

    def test_reporting_level_zero_is_silent(self, caplog) -> None:
        tokenize("a $> b", reporter=Reporter(level=0))
        assert messages(caplog) == []


class TestPositions:
    """Line and column bookkeeping."""

    def test_token_positions(self) -> None:
        tokens = tokenize("ab\ncd<$ x $>")
        data, code = tokens[0], tokens[1]
        assert (data.lineno, data.col_offset) == (1, 0)
        assert (code.lineno, code.col_offset) == (2, 4)

    def test_mode_returns_to_literal(self) -> None:
        lexer = Lexer("<$ a $>b")
        lexer.tokenize()
        assert lexer.mode is LexerMode.LITERAL
