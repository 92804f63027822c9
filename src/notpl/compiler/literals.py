"""String-literal masking for text rewrites over assembled scripts.

The normalizer and compiler rewrite script text with regular expressions.
Masking replaces every quoted string with an opaque placeholder first, so no
rule can match a keyword, comment marker, brace or semicolon that lives
inside a string. Placeholders are ``\\x00<n>\\x00`` and contain none of the
characters the rewrite rules look for.

Example:
    >>> masked, strings = mask_strings("print('a; b') # note")
    >>> masked
    'print(\\x000\\x00) # note'
    >>> unmask(masked, strings)
    "print('a; b') # note"
"""

from __future__ import annotations

import re

_PLACEHOLDER = re.compile(r"\x00(\d+)\x00")


def _string_end(text: str, start: int) -> int:
    """Return the index just past the string literal opening at ``start``.

    Triple-quoted strings may span lines; single-quoted strings stop at an
    unescaped newline. An unterminated literal runs to the end of its line
    (or of the text, for triple quotes).
    """
    quote = text[start]
    triple = text.startswith(quote * 3, start)
    delimiter = quote * 3 if triple else quote
    pos = start + len(delimiter)
    length = len(text)
    while pos < length:
        char = text[pos]
        if char == "\\":
            pos += 2
            continue
        if not triple and char == "\n":
            return pos
        if text.startswith(delimiter, pos):
            return pos + len(delimiter)
        pos += 1
    return length


def mask_strings(text: str) -> tuple[str, list[str]]:
    """Replace string literals with placeholders.

    Returns:
        The masked text and the list of original literals, indexed by the
        number inside each placeholder.
    """
    strings: list[str] = []
    out: list[str] = []
    pos = 0
    length = len(text)
    while pos < length:
        char = text[pos]
        if char in "'\"":
            end = _string_end(text, pos)
            out.append(f"\x00{len(strings)}\x00")
            strings.append(text[pos:end])
            pos = end
            continue
        if char == "#":
            # Comment text is not code; a quote inside it must not open a string.
            end = text.find("\n", pos)
            end = length if end == -1 else end
            out.append(text[pos:end])
            pos = end
            continue
        out.append(char)
        pos += 1
    return "".join(out), strings


def unmask(text: str, strings: list[str]) -> str:
    """Restore the literals replaced by ``mask_strings``."""
    if not strings:
        return text
    return _PLACEHOLDER.sub(lambda m: strings[int(m.group(1))], text)
