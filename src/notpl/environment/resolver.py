"""Nested render resolution.

Fragments call ``render(locator, options=None, scope=None, **overrides)`` to
render another template into their own output. The resolver loads the
child, links it to the calling template in the registry and decides whether
the child may run normally or whether the two templates include each other.

Cycle Handling:
    When the child is already registered and has the calling template among
    its own children, the pair is a cycle. The child is rendered static-only
    (its last completed output, empty if it has none yet) and a warning is
    reported once per ordered (parent, child) pair. Longer cycles are stopped
    by the include depth limit in RenderContext.

"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any

from notpl.environment.exceptions import ErrorCode
from notpl.environment.reporting import Reporter
from notpl.render_context import get_render_context
from notpl.utils.fingerprint import fingerprint

if TYPE_CHECKING:
    from notpl.environment.core import Environment
    from notpl.environment.options import RenderOptions
    from notpl.template import Template


class NestedRenderResolver:
    """Resolves ``render()`` calls made from inside executing fragments."""

    __slots__ = ("_env",)

    def __init__(self, env: Environment):
        self._env = env

    def render_child(
        self,
        parent: Template,
        parent_options: RenderOptions,
        locator: str,
        overrides: dict[str, Any],
        scope: Any = None,
    ) -> str:
        """Render ``locator`` on behalf of ``parent`` and return its output.

        Args:
            parent: Template whose fragment called ``render()``
            parent_options: Options the parent is rendering with
            locator: File path, loader name, or inline source when ``code`` is set
            overrides: Option overrides for the child, plus the ``code`` flag
            scope: Child scope (None keeps the child's stored scope)

        Raises:
            TemplateNotFoundError: If the child cannot be loaded
            TemplateRuntimeError: If the include depth limit is exceeded
        """
        env = self._env
        overrides = dict(overrides)
        code = bool(overrides.pop("code", False))

        ctx = get_render_context()
        if ctx is not None:
            ctx.check_include_depth(_describe(locator, code))

        source, filename = env.load_source(locator, code=code, relative_to=parent.filename)
        child_fp = fingerprint(source)

        link = env.link(parent.fingerprint, child_fp)
        if link.cyclic:
            child = link.child
            assert child is not None
            if link.first_warning:
                Reporter(parent_options.reporting, str(parent.path)).warning(
                    f"Recursive reference between {parent} and {child}; "
                    f"{child} is rendered from its last output",
                    ErrorCode.CIRCULAR_INCLUDE,
                )
            return child._render(None, {}, static_only=True)

        # Loader templates without a file are named after their locator.
        name = locator if filename is None and not code else None
        base = replace(parent_options, name=name, force_full_render=False)
        child, _ = env.register(
            source, fingerprint=child_fp, filename=filename, options=base, scope=scope
        )
        return child.render(scope, **overrides)


def _describe(locator: str, code: bool) -> str:
    if not code:
        return locator
    first_line = locator.strip().splitlines()[0] if locator.strip() else ""
    return f"<inline: {first_line[:30]}>"
