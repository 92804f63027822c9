"""notpl Compiler — lowers a normalized brace-syntax script to Python.

The normalized script is a sequence of statements separated by ``;`` or
newlines, with ``{``/``}`` delimiting blocks after an ``if``, ``else if``,
``else``, ``for`` or ``while`` head. The compiler turns it into an indented
Python function and compiles it to a code object ready for ``exec()``::

    print('<ul>');_line(1);for (item in items){print('<li>');print(item);}print('</ul>');

becomes::

    def _notpl_body():
        print('<ul>')
        _line(1)
        for item in items:
            print('<li>')
            print(item)
        print('</ul>')

Lowering Rules:
    - ``if (c) {`` → ``if c:``, ``else if (c) {`` → ``elif c:``,
      ``else {`` → ``else:``, ``for (x in xs) {`` → ``for x in xs:``,
      ``while (c) {`` → ``while c:``
    - ``===``/``!==`` → ``==``/``!=``, ``&&``/``||``/``!`` → ``and``/``or``/``not``
    - A ``{`` is a block only when it directly follows a head; any other
      brace (dict or set displays) belongs to the expression.
    - An empty block gets ``pass``; blocks still open at the end of the
      script are closed there.
    - ``_notpl_suite('...')`` holds an indented Python suite taken verbatim
      from one fragment; its lines are emitted at the current indentation
      with their own relative indentation kept.

Any problem surfaces as a plain ``SyntaxError`` from ``compile()`` (or from
an unmatched ``}``); the template treats it like any other execution failure
and runs the repair pass.

"""

from __future__ import annotations

import ast
import re
import types
from dataclasses import dataclass

from notpl.compiler.literals import mask_strings, unmask

BODY_FUNCTION = "_notpl_body"
SUITE_FUNCTION = "_notpl_suite"

_SUITE_STATEMENT = re.compile(rf"{SUITE_FUNCTION}\(\x00(\d+)\x00\)")

_HEAD_STATEMENT = re.compile(r"(?P<kw>else\s*if|elif|if|for|while)\b\s*(?P<rest>.*)", re.DOTALL)

_OPERATORS = (
    (re.compile(r"!=="), "!="),
    (re.compile(r"==="), "=="),
    (re.compile(r"&&"), " and "),
    (re.compile(r"\|\|"), " or "),
    (re.compile(r"!(?!=)"), " not "),
)


class _SourceBuilder:
    """Collects indented lines of Python source."""

    INDENT_STEP = 4

    __slots__ = ("_block_sizes", "indent_level", "lines")

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.indent_level = 0
        # Statements emitted into each open block, innermost last.
        self._block_sizes: list[int] = []

    def add_line(self, line: str) -> None:
        self.lines.append(" " * self.indent_level + line)
        if self._block_sizes:
            self._block_sizes[-1] += 1

    def open_block(self, head: str) -> None:
        self.add_line(head)
        self.indent_level += self.INDENT_STEP
        self._block_sizes.append(0)

    def close_block(self) -> None:
        if not self._block_sizes:
            raise SyntaxError("unmatched '}' in template script")
        if self._block_sizes[-1] == 0:
            self.add_line("pass")
        self._block_sizes.pop()
        self.indent_level -= self.INDENT_STEP

    @property
    def open_blocks(self) -> int:
        return len(self._block_sizes)

    def __str__(self) -> str:
        return "\n".join(self.lines) + "\n"


def _outer_group(text: str) -> str | None:
    """Inner text if ``text`` is entirely wrapped in one pair of parentheses."""
    if not (text.startswith("(") and text.endswith(")")):
        return None
    depth = 0
    for index, char in enumerate(text):
        if char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
            if depth == 0 and index != len(text) - 1:
                return None
    return text[1:-1]


def translate_operators(statement: str) -> str:
    """Replace C-style operators with Python ones (expects masked text)."""
    for pattern, replacement in _OPERATORS:
        statement = pattern.sub(replacement, statement)
    return statement


def lower_head(head: str) -> str | None:
    """Lower a block head such as ``if (x)`` to ``if x:``; None if not a head."""
    head = head.strip()
    if head == "else":
        return "else:"
    match = _HEAD_STATEMENT.fullmatch(head)
    if match is None:
        return None
    rest = match.group("rest").strip()
    if not (rest.startswith("(") and rest.endswith(")")):
        return None
    inner = _outer_group(rest)
    condition = (inner if inner is not None else rest).strip()
    if not condition:
        return None
    keyword = re.sub(r"\s+", " ", match.group("kw"))
    if keyword in ("else if", "elseif"):
        keyword = "elif"
    return f"{keyword} {translate_operators(condition).strip()}:"


@dataclass(frozen=True, slots=True)
class CompiledScript:
    """A normalized script together with its Python lowering.

    Attributes:
        script: Normalized brace-syntax script that was compiled
        python_source: Generated Python source (for debugging)
        code: Code object defining ``_notpl_body()``
    """

    script: str
    python_source: str
    code: types.CodeType


class Compiler:
    """Compile normalized scripts to Python code objects.

    Example:
        >>> compiled = Compiler(name="hello").compile("print('hi');")
        >>> namespace = {"print": out.append}
        >>> exec(compiled.code, namespace)
        >>> namespace["_notpl_body"]()
    """

    __slots__ = ("_filename", "_name")

    def __init__(self, name: str | None = None, filename: str | None = None):
        self._name = name
        self._filename = filename

    def to_python(self, script: str) -> str:
        """Lower a normalized script to Python source defining ``_notpl_body``."""
        masked, strings = mask_strings(script)
        builder = _SourceBuilder()
        builder.open_block(f"def {BODY_FUNCTION}():")

        # True for a block brace, False for a brace inside an expression.
        braces: list[bool] = []
        paren_depth = 0
        buffer: list[str] = []

        def flush() -> None:
            statement = "".join(buffer).strip()
            buffer.clear()
            suite = _SUITE_STATEMENT.fullmatch(statement)
            if suite is not None:
                for line in ast.literal_eval(strings[int(suite.group(1))]).splitlines():
                    builder.add_line(line)
            elif statement:
                builder.add_line(unmask(translate_operators(statement), strings).strip())

        for char in masked:
            in_expression = bool(braces) and not braces[-1]
            if char in "([":
                paren_depth += 1
                buffer.append(char)
            elif char in ")]":
                paren_depth = max(0, paren_depth - 1)
                buffer.append(char)
            elif paren_depth or in_expression and char not in "{}":
                buffer.append(char)
            elif char == "{":
                head = None if in_expression else lower_head("".join(buffer))
                if head is None:
                    braces.append(False)
                    buffer.append(char)
                else:
                    buffer.clear()
                    builder.open_block(unmask(head, strings))
                    braces.append(True)
            elif char == "}":
                if braces and not braces[-1]:
                    braces.pop()
                    buffer.append(char)
                else:
                    flush()
                    if not braces:
                        raise SyntaxError(
                            f"unmatched '}}' in template script ({self._name or '<template>'})"
                        )
                    braces.pop()
                    builder.close_block()
            elif char in ";\n":
                flush()
            else:
                buffer.append(char)

        flush()
        while builder.open_blocks:
            builder.close_block()
        return str(builder)

    def compile(self, script: str) -> CompiledScript:
        """Lower and compile a normalized script.

        Raises:
            SyntaxError: If the script does not form valid Python
        """
        source = self.to_python(script)
        filename = f"<notpl:{self._name or self._filename or 'template'}>"
        code = compile(source, filename, "exec")
        return CompiledScript(script=script, python_source=source, code=code)
