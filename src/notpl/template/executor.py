"""Execution adapter: runs a compiled script with its injected bindings.

Fragments are ordinary Python executed with full builtins; there is no
sandbox. Each execution gets a fresh namespace with these names bound:

    print / echo   Append ``str()`` of each argument to the output
                   (no separator by default; ``sep`` and ``end`` are honoured)
    scope          The scope passed to ``render()``
    render         Nested render: ``render(locator, options=None, scope=None, **overrides)``
    escape         HTML-encode a value
    unescape       Decode HTML entities
    true / false / null
                   Aliases for True / False / None
    _line          Line marker emitted by the assembler

When the scope is a mapping, its keys that are valid identifiers are bound
as names too, so ``print(title)`` and ``print(scope['title'])`` both work.

"""

from __future__ import annotations

import builtins
from collections.abc import Callable, Mapping
from typing import Any

from notpl.compiler.core import BODY_FUNCTION, CompiledScript
from notpl.render_context import get_render_context
from notpl.utils.html import html_escape, html_unescape

_RESERVED = frozenset(
    {"print", "echo", "scope", "render", "escape", "unescape", "true", "false", "null", "_line"}
)


def _set_line(lineno: int) -> None:
    ctx = get_render_context()
    if ctx is not None:
        ctx.line = lineno


def build_namespace(
    output: list[str],
    scope: Any,
    render: Callable[..., None],
) -> dict[str, Any]:
    """Create the globals a compiled body runs in."""
    append = output.append

    def emit(*values: Any, sep: str = "", end: str = "") -> None:
        append(sep.join(str(value) for value in values) + end)

    namespace: dict[str, Any] = {"__builtins__": builtins}
    if isinstance(scope, Mapping):
        namespace.update(
            (key, value)
            for key, value in scope.items()
            if isinstance(key, str) and key.isidentifier() and key not in _RESERVED
        )
    namespace.update(
        {
            "print": emit,
            "echo": emit,
            "scope": scope,
            "render": render,
            "escape": html_escape,
            "unescape": html_unescape,
            "true": True,
            "false": False,
            "null": None,
            "_line": _set_line,
        }
    )
    return namespace


def execute(compiled: CompiledScript, namespace: dict[str, Any]) -> None:
    """Run a compiled body. Output accumulates in the list behind ``print``."""
    exec(compiled.code, namespace)
    namespace[BODY_FUNCTION]()
