"""ANSI styling for notpl diagnostics and error messages.

Diagnostics are styled by role (error code, location, hint, ...) rather than
by raw color, so every message renders consistently. Styling is decided once
at import time: ``FORCE_COLOR`` turns it on, ``NO_COLOR`` turns it off,
otherwise it follows whether stdout is a TTY.
"""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Mapping
from typing import Literal, TextIO

ColorName = Literal[
    "bold", "dim",
    "red", "yellow", "cyan", "green",
    "bright_red", "bright_yellow", "bright_blue",
]

_SGR: dict[str, str] = {
    "bold": "1",
    "dim": "2",
    "red": "31",
    "green": "32",
    "yellow": "33",
    "cyan": "36",
    "bright_red": "91",
    "bright_yellow": "93",
    "bright_blue": "94",
}

_RESET = "\033[0m"

# Role → colors applied to it
_ROLES: dict[str, tuple[ColorName, ...]] = {
    "code": ("bright_red", "bold"),
    "location": ("cyan",),
    "line_number": ("yellow",),
    "error_line": ("bright_red",),
    "hint": ("green",),
    "muted": ("dim",),
    "severity.error": ("bright_red", "bold"),
    "severity.warning": ("bright_yellow", "bold"),
    "severity.notice": ("bright_blue",),
}

_ESCAPE_SEQUENCE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def _should_use_colors(
    environ: Mapping[str, str] | None = None,
    stream: TextIO | None = None,
) -> bool:
    """Decide whether diagnostics get ANSI styling."""
    environ = os.environ if environ is None else environ
    if environ.get("FORCE_COLOR"):
        return True
    if environ.get("NO_COLOR"):
        return False
    stream = sys.stdout if stream is None else stream
    return stream.isatty()


_USE_COLORS = _should_use_colors()


def supports_color() -> bool:
    return _USE_COLORS


def colorize(text: str, *colors: ColorName) -> str:
    """Wrap ``text`` in the SGR sequences for ``colors``.

    Unknown names are skipped; with styling off (or nothing to apply) the
    text comes back untouched.

    Example:
        >>> colorize("Warning", "yellow", "bold")
        '\033[33m\033[1mWarning\033[0m'  # when styling is on
    """
    if not _USE_COLORS:
        return text
    prefix = "".join(f"\033[{_SGR[color]}m" for color in colors if color in _SGR)
    return f"{prefix}{text}{_RESET}" if prefix else text


def strip_colors(text: str) -> str:
    """Remove ANSI escape sequences."""
    return _ESCAPE_SEQUENCE.sub("", text)


def paint(role: str, text: str) -> str:
    """Style ``text`` for a diagnostic role (see ``_ROLES``)."""
    return colorize(text, *_ROLES.get(role, ()))


def error_code(text: str) -> str:
    return paint("code", text)


def location(text: str) -> str:
    """Style a ``file:line`` location."""
    return paint("location", text)


def line_number(text: str) -> str:
    return paint("line_number", text)


def error_line(text: str) -> str:
    return paint("error_line", text)


def hint(text: str) -> str:
    return paint("hint", text)


def dim_text(text: str) -> str:
    return paint("muted", text)


def severity(label: str) -> str:
    """Style a ``[Error]`` / ``[Warning]`` / ``[Notice]`` label."""
    name = label.strip("[]").lower()
    return paint(f"severity.{name}", label)


def format_error_header(code: str | None, message: str) -> str:
    """``CODE: message``, or just the message when there is no code."""
    return f"{error_code(code)}: {message}" if code else message


def format_source_line(lineno: int, content: str, is_error: bool = False) -> str:
    """One gutter line of a source snippet; the error line gets a ``>`` marker."""
    gutter = line_number(f"{'>' if is_error else ' '}{lineno:>3}")
    return f"{gutter} | {error_line(content) if is_error else dim_text(content)}"
