"""HTML entity helpers exposed to template fragments as ``escape``/``unescape``."""

from __future__ import annotations

import html
from typing import Any


def html_escape(value: Any, quote: bool = True) -> str:
    """Encode ``&``, ``<``, ``>`` (and quotes) as HTML entities.

    Example:
        >>> html_escape('<a href="x">')
        '&lt;a href=&quot;x&quot;&gt;'
    """
    return html.escape(str(value), quote=quote)


def html_unescape(value: Any) -> str:
    """Decode named and numeric HTML entities."""
    return html.unescape(str(value))
