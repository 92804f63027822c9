"""Syntax normalizer: permissive block syntax to brace syntax.

Templates may open blocks either with braces or with a colon, and close
them either with ``}`` or with an ``end*`` keyword::

    <$ if (user): $>Hi <$ print(user) $><$ else: $>Hi stranger<$ endif $>

``normalize()`` rewrites the script assembled from such a template into
brace syntax in three steps:

1. Strip comments: ``/* ... */`` blocks, ``#`` line comments, and ``//``
   comments that begin a statement (``//`` elsewhere is floor division).
2. Rewrite block syntax at statement start:
   ``else if (c):`` / ``elif (c):`` → ``} else if (c) {``,
   ``if|for|while (c):`` → ``if|for|while (c) {``,
   ``else`` / ``else:`` → ``} else {``, ``endif|endfor|endwhile`` → ``}``.
   A head without parentheses is accepted when its colon ends the
   statement (``for item in items:``); Python one-liners such as
   ``if x: print(x)`` are left alone.
3. Collapse whitespace around braces and terminators, collapse repeated
   terminators and drop empty print calls.

Every rule runs over string-masked text, so string contents are never
touched. A script already in brace syntax keeps its structure; only steps 1
and 3 apply to it (``if (x) {a;} else {b;}`` becomes
``if (x){a;}else{b;}``); a script already in that collapsed form comes
back unchanged, so ``normalize(normalize(s)) == normalize(s)``.

Repair:
    ``SyntaxRepairer`` is applied once, only after the normalized script
    failed to execute. It inserts the ``{`` a conditional head is missing
    (``if (x) print('y');`` → ``if (x) {print('y');``), prefixing ``}``
    for an ``else if`` that lacks it, and returns a description of every
    change so the caller can report it.

"""

from __future__ import annotations

import re
from dataclasses import dataclass

from notpl.compiler.literals import mask_strings, unmask

_OPENERS = "([{"
_CLOSERS = ")]}"

# A statement starts at the beginning of the script or right after a
# terminator, a brace or a newline.
_HEAD = re.compile(
    r"(?:\A|(?<=[;{}\n]))(?P<ws>\s*)(?P<close>\}\s*)?"
    r"(?P<kw>else\s*if|elif|if|for|while|end\s?(?:if|for|while)|else)\b"
)
_COLON = re.compile(r"\s*:(?!=)")
_OPTIONAL_COLON = re.compile(r"\s*(:(?!=))?")
_END_TAIL = re.compile(r"\s*;?")

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_HASH_COMMENT = re.compile(r"#[^\n]*")
_SLASH_COMMENT = re.compile(r"(?:\A|(?<=[;{}\n]))([ \t]*)//[^\n]*")

_AROUND_TERMINATOR = re.compile(r"\s*;\s*")
_REPEATED_TERMINATOR = re.compile(r";{2,}")
_AROUND_OPEN = re.compile(r"[ \t]*\{\s*")
_AROUND_CLOSE = re.compile(r"\s*\}[ \t]*")
_OPEN_THEN_TERMINATOR = re.compile(r"\{;")
_EMPTY_PRINT = re.compile(r"(?:\A|(?<=[;{}\n]))print\(\x00(\d+)\x00\);?")


def matching_close(text: str, open_pos: int) -> int:
    """Index of the bracket closing the one at ``open_pos``, or -1.

    Expects string-masked text.
    """
    depth = 0
    for pos in range(open_pos, len(text)):
        char = text[pos]
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
            if depth == 0:
                return pos
    return -1


def _statement_end(text: str, pos: int) -> int:
    """Index of the next ``;`` or newline at bracket depth 0 (or len(text))."""
    depth = 0
    for index in range(pos, len(text)):
        char = text[index]
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
            if depth < 0:
                return index
        elif depth == 0 and char in ";\n":
            return index
    return len(text)


def _paren_depths(text: str) -> list[int]:
    """Parenthesis/bracket depth at each index (braces are blocks, not counted)."""
    depths = []
    depth = 0
    for char in text:
        depths.append(depth)
        if char in "([":
            depth += 1
        elif char in ")]" and depth:
            depth -= 1
    return depths


@dataclass(frozen=True, slots=True)
class _Head:
    """A block keyword found at statement start."""

    start: int
    kw_start: int
    kw_end: int
    keyword: str  # "if", "for", "while", "else if", "else" or "end"
    ws: str
    has_close: bool  # "}" written between statement start and keyword
    after_close: bool  # statement starts right after a "}"

    @property
    def closed(self) -> bool:
        return self.has_close or self.after_close


def _canonical_keyword(raw: str) -> str:
    raw = re.sub(r"\s+", " ", raw)
    if raw in ("elif", "else if", "elseif"):
        return "else if"
    if raw.startswith("end"):
        return "end"
    return raw


def _find_heads(text: str) -> list[_Head]:
    depths = _paren_depths(text)
    heads = []
    for match in _HEAD.finditer(text):
        if depths[match.start("kw")] != 0:
            continue
        heads.append(
            _Head(
                start=match.start(),
                kw_start=match.start("kw"),
                kw_end=match.end("kw"),
                keyword=_canonical_keyword(match.group("kw")),
                ws=match.group("ws"),
                has_close=match.group("close") is not None,
                after_close=match.start() > 0 and text[match.start() - 1] == "}",
            )
        )
    return heads


def _opening(head: _Head) -> str:
    """Text preceding the keyword in a rewritten head."""
    if head.keyword == "else if":
        return "" if head.after_close and not head.has_close else "} "
    return "} " if head.has_close else ""


def _rewrite_head(text: str, head: _Head) -> tuple[str, int] | None:
    """Rewrite one colon-form head. Returns (replacement, end index) or None."""
    after = head.kw_end

    if head.keyword == "end":
        tail = _END_TAIL.match(text, after)
        return f"{head.ws}{'} ' if head.has_close else ''}}}", tail.end()

    if head.keyword == "else":
        colon = _OPTIONAL_COLON.match(text, after)
        following = text[colon.end() :].lstrip()
        if colon.group(1) is None and (following.startswith("{") or re.match(r"if\b", following)):
            return None
        opening = "" if head.after_close and not head.has_close else "} "
        return f"{head.ws}{opening}else {{", colon.end()

    keyword = head.keyword
    offset = after + len(text[after:]) - len(text[after:].lstrip())
    if text.startswith("(", offset):
        close_pos = matching_close(text, offset)
        if close_pos != -1:
            colon = _COLON.match(text, close_pos + 1)
            if colon:
                condition = text[offset + 1 : close_pos]
                return f"{head.ws}{_opening(head)}{keyword} ({condition}) {{", colon.end()

    # Parenthesis-free head: only when the colon ends the statement.
    if text[after : after + 1] not in (" ", "\t", "("):
        return None
    end = _statement_end(text, after)
    statement = text[after:end].rstrip()
    if not statement.endswith(":") or statement.endswith(":="):
        return None
    condition = statement[:-1].strip()
    if not condition:
        return None
    return f"{head.ws}{_opening(head)}{keyword} ({condition}) {{", after + len(statement)


def _rewrite_blocks(text: str) -> str:
    out: list[str] = []
    pos = 0
    for head in _find_heads(text):
        if head.start < pos:
            continue
        rewritten = _rewrite_head(text, head)
        if rewritten is None:
            continue
        replacement, end = rewritten
        out.append(text[pos : head.start])
        out.append(replacement)
        pos = end
    out.append(text[pos:])
    return "".join(out)


def _strip_comments(text: str) -> str:
    text = _BLOCK_COMMENT.sub("", text)
    text = _HASH_COMMENT.sub("", text)
    return _SLASH_COMMENT.sub(r"\1", text)


def _collapse(text: str, strings: list[str]) -> str:
    text = _AROUND_TERMINATOR.sub(";", text)
    text = _REPEATED_TERMINATOR.sub(";", text)
    text = _AROUND_OPEN.sub("{", text)
    text = _AROUND_CLOSE.sub("}", text)
    text = _OPEN_THEN_TERMINATOR.sub("{", text)
    return _EMPTY_PRINT.sub(
        lambda m: "" if strings[int(m.group(1))] in ("''", '""') else m.group(0), text
    )


def normalize(script: str) -> str:
    """Rewrite a script into canonical brace syntax.

    Brace-syntax input keeps its structure and only loses comments, empty
    prints and the whitespace around braces and terminators; canonical
    input is returned unchanged.
    """
    masked, strings = mask_strings(script)
    masked = _strip_comments(masked)
    masked = _rewrite_blocks(masked)
    masked = _collapse(masked, strings)
    return unmask(masked, strings)


def _has_block_opener(text: str, pos: int) -> bool:
    """True if a ``{`` at bracket depth 0 follows ``pos`` within the statement."""
    depth = 0
    for index in range(pos, len(text)):
        char = text[index]
        if char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        elif depth == 0:
            if char == "{":
                return True
            if char in ";\n}":
                return False
    return False


class SyntaxRepairer:
    """One-shot repair pass for scripts that failed to execute.

    Inserts a missing ``{`` after a conditional head at statement start that
    is neither followed by ``{`` nor terminated by ``;``.

    Example:
        >>> script, repairs = SyntaxRepairer().repair("if (x) print('y');")
        >>> script
        "if (x) {print('y');"
        >>> repairs
        ("inserted '{' after 'if (x)'",)
    """

    __slots__ = ()

    def repair(self, script: str) -> tuple[str, tuple[str, ...]]:
        masked, strings = mask_strings(script)
        repairs: list[str] = []
        out: list[str] = []
        pos = 0
        for head in _find_heads(masked):
            if head.keyword in ("else", "end") or head.start < pos:
                continue
            after = masked[head.kw_end :]
            open_pos = head.kw_end + len(after) - len(after.lstrip())
            if not masked.startswith("(", open_pos):
                continue
            close_pos = matching_close(masked, open_pos)
            if close_pos == -1:
                continue
            following = masked[close_pos + 1 :].lstrip()
            if (
                not following
                or following.startswith(";")
                or _has_block_opener(masked, close_pos + 1)
            ):
                continue

            head_text = unmask(masked[head.kw_start : close_pos + 1], strings)
            out.append(masked[pos : head.kw_start])
            if head.keyword == "else if" and not head.closed:
                out.append("} ")
                repairs.append(f"inserted '}}' before and '{{' after {head_text!r}")
            else:
                repairs.append(f"inserted '{{' after {head_text!r}")
            out.append(masked[head.kw_start : close_pos + 1])
            out.append(" {")
            pos = close_pos + 1
            while pos < len(masked) and masked[pos] in " \t":
                pos += 1
        out.append(masked[pos:])
        return unmask("".join(out), strings), tuple(repairs)
