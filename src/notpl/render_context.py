"""notpl RenderContext — per-render state kept out of the template scope.

Generated code calls ``_line(N)`` before each fragment; that updates the
current RenderContext instead of writing anything into the user's scope.
Nested renders push a child context, which carries the include depth and
the chain of (template, line) pairs used in error messages.

Thread Safety:
    The context lives in a ContextVar, so every thread (and asyncio task)
    sees its own chain of render contexts.

"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field


@dataclass
class RenderContext:
    """Per-render state isolated from the template scope.

    Attributes:
        template_name: Current template name for error messages
        filename: Source file path for error messages
        source: Template source for runtime error snippets
        fingerprint: Registry key of the template being rendered
        line: Current line number (updated by generated ``_line`` calls)
        include_depth: Current nested-render depth
        max_include_depth: Maximum allowed nested-render depth
        template_stack: Stack of (template_name, line) for error traces
    """

    template_name: str | None = None
    filename: str | None = None
    source: str | None = None
    fingerprint: str | None = None

    line: int = 0

    # Also what stops include cycles longer than two templates.
    include_depth: int = 0
    max_include_depth: int = 50

    template_stack: list[tuple[str, int]] = field(default_factory=list)

    def check_include_depth(self, template_name: str) -> None:
        """Check if the nested-render depth limit is exceeded.

        Raises:
            TemplateRuntimeError: If depth >= max_include_depth
        """
        if self.include_depth >= self.max_include_depth:
            from notpl.environment.exceptions import ErrorCode, TemplateRuntimeError

            raise TemplateRuntimeError(
                f"Maximum include depth exceeded ({self.max_include_depth}) "
                f"when rendering '{template_name}'",
                template_name=self.template_name,
                lineno=self.line or None,
                template_stack=self.template_stack,
                suggestion="Check for circular renders: A → B → C → A",
                code=ErrorCode.INCLUDE_DEPTH,
            )

    def child_context(
        self,
        template_name: str | None = None,
        *,
        filename: str | None = None,
        source: str | None = None,
        fingerprint: str | None = None,
    ) -> RenderContext:
        """Create the context for a nested render with incremented depth.

        Appends the current location to ``template_stack`` for error traces.
        """
        new_stack = self.template_stack.copy()
        if self.template_name and self.line > 0:
            new_stack.append((self.template_name, self.line))

        return RenderContext(
            template_name=template_name or self.template_name,
            filename=filename,
            source=source,
            fingerprint=fingerprint,
            line=0,
            include_depth=self.include_depth + 1,
            max_include_depth=self.max_include_depth,
            template_stack=new_stack,
        )


_render_context: ContextVar[RenderContext | None] = ContextVar(
    "notpl_render_context",
    default=None,
)


def get_render_context() -> RenderContext | None:
    """Get current render context (None if not in render)."""
    return _render_context.get()


@contextmanager
def render_context(
    template_name: str | None = None,
    filename: str | None = None,
    source: str | None = None,
    fingerprint: str | None = None,
) -> Iterator[RenderContext]:
    """Context manager for render-scoped state.

    Inside a render that is already in progress, the new context is a child
    of the current one (depth + 1, location appended to the stack).

    Example:
        with render_context(template_name="page.html") as ctx:
            namespace["_notpl_body"]()
            # ctx.line is updated by _line() calls for error tracking
    """
    parent = _render_context.get()
    if parent is None:
        ctx = RenderContext(
            template_name=template_name,
            filename=filename,
            source=source,
            fingerprint=fingerprint,
        )
    else:
        ctx = parent.child_context(
            template_name, filename=filename, source=source, fingerprint=fingerprint
        )
    token: Token[RenderContext | None] = _render_context.set(ctx)
    try:
        yield ctx
    finally:
        _render_context.reset(token)
