"""Exceptions for the notpl template system.

Exception Hierarchy:
TemplateError (base)
├── TemplateNotFoundError     # Template not found by loader or on disk
├── TemplateSyntaxError       # Unterminated code fragment (fatal parse error)
└── TemplateRuntimeError      # Fragment execution failed after repair

Dangling delimiters, bad configuration values and include cycles are not
exceptions: they are reported through the environment's Reporter and the
render carries on.

Error Messages:
All exceptions provide:
- Source location (template name, line number, column when known)
- Source snippets showing the offending template line
- The template stack for failures inside nested renders

Example:
    ```
    Runtime Error: name 'usr' is not defined
      Location: page.html:5
       |
     5 | <p><$ print(usr.name) $></p>
       |
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from notpl.environment import terminal

# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------


class ErrorCode(Enum):
    """Searchable error codes for notpl diagnostics.

    Format: N-{CATEGORY}-{NUMBER}
    Categories: LEX (delimiter scanning), RUN (execution), CFG (options),
    TPL (template loading)
    """

    # Lexer diagnostics (N-LEX-xxx)
    UNTERMINATED_FRAGMENT = "N-LEX-001"
    DANGLING_STOP = "N-LEX-002"
    UNEXPECTED_START = "N-LEX-003"

    # Runtime errors (N-RUN-xxx)
    RUNTIME_ERROR = "N-RUN-001"
    REPAIR_FAILED = "N-RUN-002"
    INCLUDE_DEPTH = "N-RUN-003"
    CIRCULAR_INCLUDE = "N-RUN-004"

    # Configuration diagnostics (N-CFG-xxx)
    INVALID_OPTION = "N-CFG-001"
    UNKNOWN_OPTION = "N-CFG-002"
    RISKY_DELIMITER = "N-CFG-003"

    # Template loading errors (N-TPL-xxx)
    TEMPLATE_NOT_FOUND = "N-TPL-001"
    SYNTAX_ERROR = "N-TPL-002"

    @property
    def category(self) -> str:
        """Error category (e.g., 'runtime', 'lexer', 'config', 'template')."""
        prefix = self.value.split("-")[1]
        return {
            "LEX": "lexer",
            "RUN": "runtime",
            "CFG": "config",
            "TPL": "template",
        }.get(prefix, "unknown")


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------


def format_template_stack(stack: list[tuple[str, int]] | None) -> str:
    """Format the nested-render chain for error messages.

    Example:
        >>> print(format_template_stack([("page.html", 4), ("nav.html", 2)]))
        Template stack:
          • page.html:4
          • nav.html:2
    """
    if not stack:
        return ""

    lines = [terminal.dim_text("Template stack:")]
    for template_name, line_num in stack:
        lines.append(f"  • {terminal.location(f'{template_name}:{line_num}')}")
    return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Template source context around an error line.

    Attributes:
        lines: Tuple of (line_number, line_content) pairs around the error.
        error_line: The 1-based line number where the error occurred.
        column: Optional column offset for caret pointer.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int
    column: int | None = None

    def format(self) -> str:
        """Format snippet with line numbers and the error line highlighted."""
        parts: list[str] = [terminal.dim_text("   |")]
        for lineno, content in self.lines:
            parts.append(
                terminal.format_source_line(lineno, content, is_error=lineno == self.error_line)
            )
        if self.column is not None:
            caret = " " * self.column + "^"
            parts.append(f"{terminal.dim_text('   |')} {terminal.error_line(caret)}")
        parts.append(terminal.dim_text("   |"))
        return "\n".join(parts)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 2,
    column: int | None = None,
) -> SourceSnippet:
    """Build a SourceSnippet from template source.

    Args:
        source: Full template source text.
        error_line: 1-based line number of the error.
        context_lines: Number of lines to show before/after the error line.
        column: Optional column offset for caret pointer.
    """
    all_lines = source.splitlines()
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line, column=column)


class TemplateError(Exception):
    """Base exception for all notpl template errors.

    All template-related exceptions inherit from this class, enabling
    broad exception handling:

        >>> try:
        ...     template.render(scope)
        ... except TemplateError as e:
        ...     log.error(e.format_compact())

    Attributes:
        code: Optional ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format error as a single-header summary without traceback noise."""
        header = str(self)
        if self.code and self.code.value not in header:
            header = f"{self.code.value}: {header}"
        return header


class TemplateNotFoundError(TemplateError):
    """Template source could not be located.

    Raised by loaders and by ``Environment.from_file()`` when the path does
    not resolve to a readable file.
    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND


class TemplateSyntaxError(TemplateError):
    """Fatal parse error in template source.

    The only fatal scanning condition is reaching end of input while inside
    a code fragment. ``lineno``/``col_offset`` point at the start delimiter
    that was never closed.
    """

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
        col_offset: int | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.name = name
        self.filename = filename
        self.source = source
        self.col_offset = col_offset
        super().__init__(self._format_message())

    def _location(self, *, with_column: bool) -> str:
        location = self.filename or self.name or "<template>"
        if self.lineno:
            location += f":{self.lineno}"
            if with_column and self.col_offset is not None:
                location += f":{self.col_offset}"
        return location

    def _snippet_lines(self) -> list[str]:
        if not (self.source and self.lineno):
            return []
        lines = self.source.splitlines()
        if not 0 < self.lineno <= len(lines):
            return []
        parts = ["   |", f"{self.lineno:>3} | {lines[self.lineno - 1]}"]
        if self.col_offset is not None:
            parts.append(f"   | {' ' * self.col_offset}^")
        return parts

    def _format_message(self) -> str:
        header = f"Syntax Error: {self.message}\n  --> {self._location(with_column=True)}"
        snippet = self._snippet_lines()
        if snippet:
            return header + "\n" + "\n".join(snippet)
        return header

    def format_compact(self) -> str:
        """Format syntax error as structured terminal diagnostic."""
        code_prefix = f"{self.code.value}: " if self.code else ""
        parts = [f"{code_prefix}{self.message}", f"  --> {self._location(with_column=False)}"]
        snippet = self._snippet_lines()
        if snippet:
            parts.extend(snippet)
            parts.append("   |")
        return "\n".join(parts)


class TemplateRuntimeError(TemplateError):
    """Fragment execution failed.

    Raised when the executed body fails, the one-shot repair pass could not
    fix it, and ``halt_on_error`` is set. Also raised when nested renders
    exceed the include depth limit.

    Output Format:
            ```
            Runtime Error: division by zero
              Location: invoice.html:12
               |
            >12 | <td><$ print(total / count) $></td>
               |
              Suggestion: ...
            ```

    Attributes:
        message: Error description
        template_name: Name of the template
        lineno: Line number in template source
        suggestion: Actionable fix suggestion
        repairs: Descriptions of repairs attempted before giving up
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        template_name: str | None = None,
        lineno: int | None = None,
        suggestion: str | None = None,
        source_snippet: SourceSnippet | None = None,
        template_stack: list[tuple[str, int]] | None = None,
        repairs: tuple[str, ...] = (),
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.template_name = template_name
        self.lineno = lineno
        self.suggestion = suggestion
        self.source_snippet = source_snippet
        self.template_stack = template_stack or []
        self.repairs = repairs
        if code is not None:
            self.code = code
        super().__init__(self._format_message())

    def _location(self) -> str:
        loc = self.template_name or "<template>"
        if self.lineno:
            loc += f":{self.lineno}"
        return loc

    def _format_message(self) -> str:
        parts = [f"Runtime Error: {self.message}"]

        if self.template_name or self.lineno:
            parts.append(f"  Location: {terminal.location(self._location())}")

        if self.source_snippet:
            parts.append(self.source_snippet.format())

        if self.template_stack:
            parts.append("")
            parts.append(format_template_stack(self.template_stack))

        if self.repairs:
            parts.append("  Repairs attempted:")
            parts.extend(f"    - {repair}" for repair in self.repairs)

        if self.suggestion:
            parts.append(f"\n  {terminal.hint('Suggestion:')} {self.suggestion}")

        return "\n".join(parts)

    def format_compact(self) -> str:
        """Format runtime error as structured terminal diagnostic."""
        parts: list[str] = [
            terminal.format_error_header(self.code.value if self.code else None, self.message),
            f"  Location: {terminal.location(self._location())}",
        ]

        if self.source_snippet:
            parts.append(self.source_snippet.format())

        if self.template_stack:
            parts.append("")
            parts.append(format_template_stack(self.template_stack))

        if self.suggestion:
            parts.append(f"  {terminal.hint('Hint:')} {self.suggestion}")

        return "\n".join(parts)
