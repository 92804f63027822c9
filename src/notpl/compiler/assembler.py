"""Fragment assembler: token stream to executable script.

Literal runs become ``print('<escaped>');`` calls and code runs are inserted
verbatim, each preceded by a ``_line(N);`` marker so runtime failures can be
traced back to a template line. A multi-line fragment written as indented
Python is wrapped in a ``_notpl_suite('<escaped>')`` marker instead, which the
compiler expands back into a native suite. The script is rebuilt only on a
full render; partial renders reuse the compiled result.

Example:
    >>> body = assemble(tokenize("<b><$ print(1) $></b>"))
    >>> build_script(body)
    "print('<b>');_line(1); print(1) \\n;print('</b>');"
"""

from __future__ import annotations

import textwrap
from collections.abc import Iterable

from notpl._types import Token, TokenType
from notpl.compiler.core import SUITE_FUNCTION
from notpl.nodes import Code, Emit, Node

_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def escape_literal(text: str) -> str:
    """Escape text for embedding in a single-quoted string literal."""
    out: list[str] = []
    for char in text:
        escaped = _ESCAPES.get(char)
        if escaped is not None:
            out.append(escaped)
        elif char < " " or char == "\x7f":
            out.append(f"\\x{ord(char):02x}")
        else:
            out.append(char)
    return "".join(out)


def assemble(tokens: Iterable[Token]) -> tuple[Node, ...]:
    """Build the ordered body from DATA and CODE tokens."""
    body: list[Node] = []
    for token in tokens:
        if token.type is TokenType.DATA:
            body.append(Emit(token.lineno, token.col_offset, token.value))
        elif token.type is TokenType.CODE:
            body.append(Code(token.lineno, token.col_offset, token.value))
    return tuple(body)


def python_suite(fragment: str) -> str | None:
    """Dedented source if ``fragment`` is an indentation-structured Python suite.

    Only multi-line fragments with at least one indented line that compile
    on their own as a function body qualify. Everything else (one-liners,
    brace or keyword-style blocks that span fragments) returns None and goes
    through the normalizer.
    """
    # Code on the delimiter line carries the delimiter padding, not indentation.
    if fragment.split("\n", 1)[0].strip():
        fragment = fragment.lstrip(" \t")
    source = textwrap.dedent(fragment).strip("\n")
    lines = source.splitlines()
    if len(lines) < 2 or not any(line[:1] in (" ", "\t") for line in lines if line.strip()):
        return None
    try:
        compile(f"def _suite():\n{textwrap.indent(source, '    ')}\n", "<fragment>", "exec")
    except (SyntaxError, ValueError):
        return None
    return source


def build_script(body: Iterable[Node]) -> str:
    """Render a body as script text.

    Each code fragment is followed by a newline and a terminator so a
    trailing line comment in the fragment cannot swallow the next statement.
    """
    parts: list[str] = []
    for node in body:
        if isinstance(node, Emit):
            parts.append(f"print('{escape_literal(node.text)}');")
        elif isinstance(node, Code):
            suite = python_suite(node.fragment)
            if suite is not None:
                parts.append(f"_line({node.lineno});{SUITE_FUNCTION}('{escape_literal(suite)}');")
            else:
                parts.append(f"_line({node.lineno});{node.fragment}\n;")
    return "".join(parts)
