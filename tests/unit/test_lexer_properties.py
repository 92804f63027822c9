"""Property-based tests for the notpl lexer and render pipeline.

Uses hypothesis to verify invariants that must hold for *all* inputs:

- Literal text round-trips through tokenization unchanged
- Arbitrary input never causes an unexpected exception
- ``start print('X'); stop`` renders ``X`` for any surrounding literal
  and any valid delimiter pair
"""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from notpl import Environment, TemplateSyntaxError, TokenType, tokenize
from notpl.environment import Reporter

from ..strategies import (
    arbitrary_template_source,
    delimiter_pairs,
    plain_text,
    print_argument,
    safe_literal,
)

_QUIET = Reporter(level=0)


class TestLexerProperties:
    """Property-based lexer invariants."""

    @given(source=plain_text)
    @settings(max_examples=200)
    def test_plain_text_roundtrip(self, source: str) -> None:
        """Text without delimiters produces one DATA token with the original content."""
        tokens = tokenize(source, reporter=_QUIET)
        data = [t for t in tokens if t.type is TokenType.DATA]
        assert len(data) == 1
        assert data[0].value == source

    @given(source=arbitrary_template_source)
    @settings(max_examples=300)
    def test_no_unhandled_crash(self, source: str) -> None:
        """The lexer only ever raises TemplateSyntaxError for bad input."""
        try:
            tokens = tokenize(source, reporter=_QUIET)
        except TemplateSyntaxError:
            return
        assert tokens[-1].type is TokenType.EOF

    @given(before=safe_literal, after=safe_literal, delimiters=delimiter_pairs)
    @settings(max_examples=150, deadline=None)
    def test_fragment_is_captured(self, before: str, after: str, delimiters) -> None:
        source = f"{before}{delimiters.start} x {delimiters.stop}{after}"
        tokens = tokenize(source, delimiters, reporter=_QUIET)
        assert [t.value for t in tokens if t.type is TokenType.CODE] == [" x "]


class TestRenderProperties:
    """Property-based render invariants."""

    @given(
        before=safe_literal,
        after=safe_literal,
        delimiters=delimiter_pairs,
        value=print_argument,
    )
    @settings(max_examples=100, deadline=None)
    def test_print_renders_value(self, before: str, after: str, delimiters, value: str) -> None:
        env = Environment(style="none", reporting=0)
        source = f"{before}{delimiters.start} print('{value}'); {delimiters.stop}{after}"
        template = env.from_string(
            source,
            delimiter_start=delimiters.start,
            delimiter_stop=delimiters.stop,
        )
        assert template.render() == f"{before}{value}{after}"

    @given(source=st.text(alphabet="abc <>/\n", max_size=80))
    @settings(max_examples=100, deadline=None)
    def test_literal_only_sources_render_unchanged(self, source: str) -> None:
        env = Environment(style="none", reporting=0)
        assert env.from_string(source).render() == source
