"""Diagnostic reporting for notpl.

Non-fatal problems (dangling delimiters, rejected options, repairs, include
cycles) are reported here instead of raised. Messages go to the standard
``logging`` hierarchy under ``notpl`` and are gated by the ``reporting``
option:

    0: nothing
    1: errors
    2: warnings and errors (default)
    3: everything, including render notices

Example:
    >>> reporter = Reporter(level=3, template="page.html")
    >>> reporter.notice("Full render finished in 1.2ms")
    # logs "[Notice] Template [page.html]: Full render finished in 1.2ms"

"""

from __future__ import annotations

import logging
from enum import IntEnum

from notpl.environment import terminal
from notpl.environment.exceptions import ErrorCode

logger = logging.getLogger(__name__)


class Severity(IntEnum):
    """Diagnostic severity; the value is the lowest reporting level that shows it."""

    ERROR = 1
    WARNING = 2
    NOTICE = 3


_LABELS = {
    Severity.ERROR: "[Error]",
    Severity.WARNING: "[Warning]",
    Severity.NOTICE: "[Notice]",
}

_LOG_LEVELS = {
    Severity.ERROR: logging.ERROR,
    Severity.WARNING: logging.WARNING,
    Severity.NOTICE: logging.INFO,
}


class Reporter:
    """Verbosity-gated diagnostic sink bound to one template label."""

    __slots__ = ("level", "template")

    def __init__(self, level: int = 2, template: str | None = None):
        self.level = level
        self.template = template

    def for_template(self, template: str | None, level: int | None = None) -> Reporter:
        return Reporter(self.level if level is None else level, template)

    def enabled(self, severity: Severity) -> bool:
        return self.level >= severity

    def report(self, severity: Severity, message: str, code: ErrorCode | None = None) -> None:
        if not self.enabled(severity):
            return
        parts = [terminal.severity(_LABELS[severity])]
        if code is not None:
            parts.append(terminal.error_code(code.value))
        if self.template:
            parts.append(f"Template [{terminal.location(self.template)}]:")
        parts.append(message)
        logger.log(_LOG_LEVELS[severity], " ".join(parts))

    def error(self, message: str, code: ErrorCode | None = None) -> None:
        self.report(Severity.ERROR, message, code)

    def warning(self, message: str, code: ErrorCode | None = None) -> None:
        self.report(Severity.WARNING, message, code)

    def notice(self, message: str, code: ErrorCode | None = None) -> None:
        self.report(Severity.NOTICE, message, code)
