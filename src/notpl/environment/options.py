"""Render options for notpl templates.

``RenderOptions`` is an immutable snapshot. Every render call takes the
template's current snapshot, merges the caller's overrides on top and
renders with the result; invalid overrides never raise. They are reported
through the Reporter and the previous value is kept.

Validation Rules:
    - Each option must have the declared type (bool options reject ints,
      TTLs accept int or float but not bool).
    - ``reporting`` must be 0-3; TTLs must be >= 0.
    - ``full_cache_ttl`` may only grow across updates. A full TTL above
      600000 ms (10 minutes) is accepted with a warning: output will look
      static for that long.
    - Delimiters must be non-empty and differ from each other. Delimiters
      shorter than 2 characters, containing sequences that also occur in
      code (``((``, ``==``, ``+=`` ...), or equal to a Python keyword are
      accepted with a warning.
    - ``output_format`` entries must be known filename tokens.
    - String values are stripped of surrounding whitespace.

Example:
    >>> opts = RenderOptions().merge({"full_cache_ttl": 5000, "style": "compact"})
    >>> opts.full_cache_ttl, opts.style
    (5000, 'compact')

"""

from __future__ import annotations

import keyword
import re
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

from notpl._types import Delimiters
from notpl.environment.exceptions import ErrorCode
from notpl.environment.reporting import Reporter

STYLES = frozenset({"compressed", "compact", "none"})
OUTPUT_TOKENS = frozenset({"tid", "atid", "time", "filename", "type", "ext"})
LONG_FULL_TTL_MS = 600_000

_RISKY_DELIMITER = re.compile(
    r"\{{2,}|\}{2,}|\({2,}|\){2,}|;{2,}|={2,}|\+{2,}|-{2,}"
    r"|<=|=>|\+=|-=|\*=|/=|%=|\"\"|''"
)

_BOOL_OPTIONS = frozenset(
    {"halt_on_error", "output", "force_full_render", "use_absolute_paths", "auto_repair"}
)
_TTL_OPTIONS = frozenset({"full_cache_ttl", "partial_cache_ttl"})


@dataclass(frozen=True, slots=True)
class RenderOptions:
    """Configuration snapshot used for one render.

    Attributes:
        delimiter_start: Marker opening a code fragment
        delimiter_stop: Marker closing a code fragment
        reporting: Diagnostic verbosity (0 none, 1 errors, 2 +warnings, 3 all)
        style: Output style; ``compressed`` collapses whitespace, inter-tag gaps,
            attribute padding and HTML comments, anything else leaves output as-is
        halt_on_error: Raise when execution still fails after repair
            (never at reporting 0, which silences errors entirely)
        full_cache_ttl: Milliseconds a full render stays valid for static renders
            (0 disables static renders)
        partial_cache_ttl: Milliseconds a full render stays valid for partial
            renders (0 disables partial renders)
        output: Write every render result to a file
        output_format: Filename tokens joined with ``-``
        output_ext: Extension appended by the ``ext`` token
        output_dir: Directory output files are written to
        force_full_render: Skip the caches for the next render only
        name: Display name for inline templates
        use_absolute_paths: Show absolute paths when describing file templates
        auto_repair: Run the one-shot syntax repair after a failed execution
    """

    delimiter_start: str = "<$"
    delimiter_stop: str = "$>"
    reporting: int = 2
    style: str = "compressed"
    halt_on_error: bool = True
    full_cache_ttl: float = 0
    partial_cache_ttl: float = 30000
    output: bool = False
    output_format: tuple[str, ...] = ("atid", "type", "filename", "ext")
    output_ext: str = "html"
    output_dir: str = "."
    force_full_render: bool = False
    name: str | None = None
    use_absolute_paths: bool = False
    auto_repair: bool = True

    @property
    def delimiters(self) -> Delimiters:
        return Delimiters(self.delimiter_start, self.delimiter_stop)

    @classmethod
    def option_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))

    def merge(
        self,
        overrides: Mapping[str, Any] | None,
        reporter: Reporter | None = None,
    ) -> RenderOptions:
        """Return a new snapshot with valid overrides applied.

        Invalid values are reported and ignored; the current value is kept.
        """
        if not overrides:
            return self
        reporter = reporter or Reporter(self.reporting)
        known = self.option_names()
        accepted: dict[str, Any] = {}

        for key, value in overrides.items():
            if key not in known:
                reporter.warning(
                    f"Unknown option {key!r} has been ignored", ErrorCode.UNKNOWN_OPTION
                )
                continue
            if isinstance(value, str):
                value = value.strip()
            problem = self._check(key, value)
            if problem is not None:
                reporter.warning(
                    f"Option {key!r}: {problem}. This option has been ignored.",
                    ErrorCode.INVALID_OPTION,
                )
                continue
            if key == "output_format":
                value = tuple(value)
            accepted[key] = value

        start = accepted.get("delimiter_start", self.delimiter_start)
        stop = accepted.get("delimiter_stop", self.delimiter_stop)
        if start == stop:
            reporter.warning(
                f"Start and stop delimiters cannot both be {start!r}. "
                "The delimiter options have been ignored.",
                ErrorCode.INVALID_OPTION,
            )
            accepted.pop("delimiter_start", None)
            accepted.pop("delimiter_stop", None)
        else:
            for key in ("delimiter_start", "delimiter_stop"):
                if key in accepted:
                    _warn_risky_delimiter(accepted[key], reporter)

        if accepted.get("full_cache_ttl", 0) > LONG_FULL_TTL_MS:
            reporter.warning(
                f"The full cache lifetime is > {LONG_FULL_TTL_MS}ms (10 minutes). "
                "Output will appear static for this duration."
            )

        return replace(self, **accepted) if accepted else self

    def _check(self, key: str, value: Any) -> str | None:
        """Describe why ``value`` is invalid for ``key``, or None if it is fine."""
        if key in _BOOL_OPTIONS:
            if not isinstance(value, bool):
                return f"should be a bool, not {value!r}"
        elif key in _TTL_OPTIONS:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return f"should be a number of milliseconds, not {value!r}"
            if value < 0:
                return f"must be >= 0, got {value!r}"
            if key == "full_cache_ttl" and value < self.full_cache_ttl:
                return f"the full cache lifetime must be >= {self.full_cache_ttl}ms"
        elif key == "reporting":
            if isinstance(value, bool) or not isinstance(value, int):
                return f"should be an integer, not {value!r}"
            if not 0 <= value <= 3:
                return f"must be between 0 and 3, got {value}"
        elif key == "style":
            if not isinstance(value, str):
                return f"should be a string, not {value!r}"
            if value not in STYLES:
                return f"must be one of {', '.join(sorted(STYLES))}, got {value!r}"
        elif key in ("delimiter_start", "delimiter_stop"):
            if not isinstance(value, str):
                return f"should be a string, not {value!r}"
            if not value:
                return "must not be empty"
        elif key == "output_format":
            if isinstance(value, str) or not isinstance(value, (list, tuple)):
                return f"should be a list of filename tokens, not {value!r}"
            unknown = [token for token in value if token not in OUTPUT_TOKENS]
            if unknown:
                return f"unknown filename tokens {unknown!r}"
        elif key in ("output_ext", "output_dir"):
            if not isinstance(value, str):
                return f"should be a string, not {value!r}"
        elif key == "name":
            if value is not None and not isinstance(value, str):
                return f"should be a string, not {value!r}"
        return None


def _warn_risky_delimiter(delimiter: str, reporter: Reporter) -> None:
    if len(delimiter) < 2:
        reporter.warning(
            f"Delimiter {delimiter!r} is shorter than 2 characters and will likely "
            "collide with template text or code",
            ErrorCode.RISKY_DELIMITER,
        )
    if _RISKY_DELIMITER.search(delimiter) or keyword.iskeyword(delimiter):
        reporter.warning(
            f"Delimiter {delimiter!r} contains a sequence that also appears in code "
            "and could break templates",
            ErrorCode.RISKY_DELIMITER,
        )
