"""notpl Template — a registered template and its render cache.

Render Strategies:
Every ``render()`` call picks exactly one strategy and records it:

    static   A full render exists, ``full_cache_ttl > 0`` and the last full
             render is younger than it. The previous output is returned
             as-is: no scan, no execution.
    partial  A full render exists, ``partial_cache_ttl > 0`` and the last full
             render is younger than it. The cached compiled body is executed
             again against the current scope.
    full     Otherwise. Scanner → Lexer → Assembler → Normalizer → Compiler,
             then execution.

``force_full_render`` skips both caches for the call it is passed to.
Changing the delimiters always forces a full render. A TTL of 0 disables
its tier.

Execution And Repair:
If executing the body fails, ``SyntaxRepairer`` runs once over the script.
When it changed something, the repaired script is compiled and executed
again and every repair is reported. If that also fails (or nothing could be
repaired) the failure is raised as TemplateRuntimeError when
``halt_on_error`` is set and ``reporting`` is above 0. Otherwise it is
reported and the render returns whatever had been emitted before the
failure. Template errors raised by
nested renders propagate unchanged.

Thread-Safety:
Per-call state (output buffer, namespace) is local to the call. The shared
cache state (compiled body, last output, options, statistics) is read and
committed under a per-template lock, so concurrent renders of the same
template never interleave their updates, and nested renders of the same
template from inside a fragment never block.

"""

from __future__ import annotations

import threading
import weakref
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from notpl.compiler import (
    CompiledScript,
    Compiler,
    SyntaxRepairer,
    assemble,
    build_script,
    normalize,
)
from notpl.environment.exceptions import (
    ErrorCode,
    TemplateError,
    TemplateRuntimeError,
    build_source_snippet,
)
from notpl.environment.options import RenderOptions
from notpl.environment.reporting import Reporter
from notpl.lexer import Lexer
from notpl.render_context import RenderContext, get_render_context, render_context
from notpl.template.executor import build_namespace, execute
from notpl.template.output import apply_style, write_output
from notpl.template.stats import RenderHistory, RenderType, TemplateStats

if TYPE_CHECKING:
    from notpl.environment.core import Environment
    from notpl.nodes import Node


class Template:
    """A compiled-on-demand template registered in an Environment.

    Templates are created through ``Environment.from_string()``,
    ``Environment.from_file()`` or ``Environment.new()``; identical content
    always yields the same Template instance.

    Example:
        >>> env = Environment()
        >>> scope = {"user": "Ada"}
        >>> t = env.from_string("<p>Hi <$ print(user) $></p>", scope=scope)
        >>> t.render()
        '<p>Hi Ada</p>'
        >>> scope["user"] = "Grace"
        >>> t.render()  # partial render: re-executes, no re-scan
        '<p>Hi Grace</p>'
    """

    def __init__(
        self,
        env: Environment,
        source: str,
        *,
        fingerprint: str,
        options: RenderOptions,
        filename: str | None = None,
        scope: Any = None,
        created_at: float = 0.0,
    ):
        self._env_ref = weakref.ref(env)
        self._source = source
        self._fingerprint = fingerprint
        self._filename = filename
        self._options = options
        self._scope = scope
        self._lock = threading.Lock()
        self._history = RenderHistory(created_at=created_at)
        self._last_options = options

        # Cache state, replaced wholesale on every full render
        self._body: tuple[Node, ...] = ()
        self._script: str | None = None
        self._compiled: CompiledScript | None = None
        self._raw_output = ""
        self._repairs: tuple[str, ...] = ()

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def _env(self) -> Environment:
        env = self._env_ref()
        if env is None:
            raise RuntimeError(f"Environment has been garbage collected (template: {self})")
        return env

    @property
    def fingerprint(self) -> str:
        return self._fingerprint

    @property
    def alias(self) -> str:
        """Short form of the fingerprint for log lines."""
        return self._fingerprint[-5:]

    @property
    def source(self) -> str:
        return self._source

    @property
    def filename(self) -> str | None:
        """Source file path, None for inline templates."""
        return self._filename

    @property
    def path(self) -> str:
        """File path, or display name for inline templates."""
        if self._filename is None:
            return self._options.name or "native code"
        if self._options.use_absolute_paths:
            return str(Path(self._filename).resolve())
        return self._filename

    @property
    def name(self) -> str:
        return self._options.name or self.path

    @property
    def options(self) -> RenderOptions:
        return self._options

    @property
    def scope(self) -> Any:
        return self._scope

    @property
    def body(self) -> tuple[Node, ...]:
        """Assembled body from the last full render."""
        return self._body

    @property
    def script(self) -> str | None:
        """Normalized (and, if needed, repaired) script from the last full render."""
        return self._script

    @property
    def python_source(self) -> str | None:
        return self._compiled.python_source if self._compiled else None

    @property
    def repairs(self) -> tuple[str, ...]:
        """Repairs applied during the last execution."""
        return self._repairs

    def __str__(self) -> str:
        return f"Template [{self.path}]"

    def __repr__(self) -> str:
        return f"<Template {self.path!r} {self.alias}>"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(self, scope: Any = None, **overrides: Any) -> str:
        """Render the template.

        Args:
            scope: New scope; replaces the stored one when given
            **overrides: Option overrides (see RenderOptions). They persist
                on the template, except ``force_full_render`` which applies
                to this call only.

        Returns:
            Styled output

        Raises:
            TemplateSyntaxError: If a code fragment is never closed
            TemplateRuntimeError: If execution fails after repair,
                ``halt_on_error`` is set and ``reporting`` is not 0
        """
        return self._render(scope, overrides)

    def update(self, scope: Any = None) -> str:
        """Re-execute the compiled body (partial render) without consulting TTLs."""
        return self._render(scope, {}, forced_type=RenderType.PARTIAL)

    def output(self) -> str:
        """Styled output of the last render."""
        return apply_style(self._raw_output, self._options.style)

    def stats(self) -> TemplateStats:
        """Immutable snapshot of this template's render history."""
        with self._lock:
            return self._history.snapshot(
                path=self.path,
                fingerprint=self._fingerprint,
                now=self._env.now(),
                options=self._last_options,
            )

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _reporter(self, options: RenderOptions) -> Reporter:
        return Reporter(options.reporting, str(self.path))

    def _render(
        self,
        scope: Any,
        overrides: dict[str, Any],
        *,
        static_only: bool = False,
        forced_type: RenderType | None = None,
    ) -> str:
        env = self._env
        top_level = get_render_context() is None

        with self._lock:
            current = self._options
            reporter = self._reporter(current)
            options = current.merge(overrides, reporter)
            reporter = self._reporter(options)
            force = options.force_full_render or (
                options.delimiters != current.delimiters and self._history.has_full_render
            )
            self._options = replace(options, force_full_render=False)
            if scope is not None:
                self._scope = scope
            scope = self._scope

            if static_only:
                render_type = RenderType.STATIC
            elif forced_type is RenderType.PARTIAL and self._compiled is not None:
                render_type = RenderType.PARTIAL
            else:
                render_type = self._select(options, force, env.now())
            compiled = self._compiled
            script = self._script
            previous_output = self._raw_output

        if top_level:
            reporter.notice(f"Render started ({render_type.value})")

        started = env.now()
        body: tuple[Node, ...] | None = None
        repairs: tuple[str, ...] = ()
        if render_type is RenderType.STATIC:
            raw = previous_output
        else:
            with render_context(
                template_name=self.name,
                filename=self._filename,
                source=self._source,
                fingerprint=self._fingerprint,
            ) as ctx:
                if render_type is RenderType.FULL:
                    body, script = self._scan(options, reporter)
                    compiled = None
                assert script is not None
                raw, script, compiled, repairs = self._execute(
                    script, compiled, scope, options, reporter, ctx
                )
        finished = env.now()

        with self._lock:
            if body is not None:
                self._body = body
            if render_type is not RenderType.STATIC:
                self._script = script
                self._compiled = compiled
                self._repairs = repairs
            self._raw_output = raw
            self._last_options = options
            self._history.record(render_type, started, finished)

        output = apply_style(raw, options.style)
        if options.output:
            destination = write_output(
                output,
                options,
                fingerprint=self._fingerprint,
                path=self._filename,
                render_type=render_type,
                rendered_at=finished,
            )
            reporter.notice(f"Output written to {destination}")

        if top_level:
            reporter.notice(
                f"{render_type.value.capitalize()} render finished in {finished - started:.3f}ms"
            )
        return output

    def _select(self, options: RenderOptions, force: bool, now: float) -> RenderType:
        """Choose the cache tier for this call (caller holds the lock)."""
        history = self._history
        if force or not history.has_full_render or history.last_full_render is None:
            return RenderType.FULL
        elapsed = now - history.last_full_render
        if options.full_cache_ttl > 0 and elapsed < options.full_cache_ttl:
            return RenderType.STATIC
        if (
            self._compiled is not None
            and options.partial_cache_ttl > 0
            and elapsed < options.partial_cache_ttl
        ):
            return RenderType.PARTIAL
        return RenderType.FULL

    def _scan(self, options: RenderOptions, reporter: Reporter) -> tuple[tuple[Node, ...], str]:
        """Full-render front half: tokens → body → normalized script."""
        lexer = Lexer(
            self._source,
            options.delimiters,
            reporter,
            name=self.name,
            filename=self._filename,
        )
        body = assemble(lexer.tokenize())
        return body, normalize(build_script(body))

    def _compile(self, script: str) -> CompiledScript:
        return Compiler(name=self.name, filename=self._filename).compile(script)

    def _execute(
        self,
        script: str,
        compiled: CompiledScript | None,
        scope: Any,
        options: RenderOptions,
        reporter: Reporter,
        ctx: RenderContext,
    ) -> tuple[str, str, CompiledScript | None, tuple[str, ...]]:
        """Execute the body, repairing once on failure.

        Returns:
            (raw output, script actually used, compiled script, repairs)
        """
        output: list[str] = []
        try:
            compiled = compiled or self._compile(script)
            execute(compiled, self._namespace(output, scope, options))
            return "".join(output), script, compiled, ()
        except TemplateError:
            raise
        except Exception as first_error:
            failure: Exception = first_error
            repairs: tuple[str, ...] = ()
            if options.auto_repair:
                repaired, repairs = SyntaxRepairer().repair(script)
                if repairs:
                    for repair in repairs:
                        reporter.warning(f"Repaired template script: {repair}")
                    output = []
                    try:
                        repaired_compiled = self._compile(repaired)
                        execute(repaired_compiled, self._namespace(output, scope, options))
                        reporter.notice("Repaired script executed successfully")
                        return "".join(output), repaired, repaired_compiled, repairs
                    except TemplateError:
                        raise
                    except Exception as second_error:
                        failure = second_error
            error = self._enhance_error(failure, ctx, repairs)
            if options.halt_on_error and options.reporting > 0:
                raise error from failure
            reporter.error(error.format_compact(), error.code)
            return "".join(output), script, compiled, repairs

    def _namespace(
        self, output: list[str], scope: Any, options: RenderOptions
    ) -> dict[str, Any]:
        resolver = self._env.resolver

        def render_child(
            locator: str,
            child_options: dict[str, Any] | None = None,
            child_scope: Any = None,
            **child_overrides: Any,
        ) -> None:
            overrides = dict(child_options or {})
            overrides.update(child_overrides)
            output.append(resolver.render_child(self, options, locator, overrides, child_scope))

        return build_namespace(output, scope, render_child)

    def _enhance_error(
        self,
        error: Exception,
        ctx: RenderContext,
        repairs: tuple[str, ...],
    ) -> TemplateRuntimeError:
        """Convert a Python exception into a TemplateRuntimeError with template context."""
        error_str = str(error).strip() or f"{type(error).__name__} (no details available)"
        if not error_str.startswith(type(error).__name__):
            error_str = f"{type(error).__name__}: {error_str}"
        lineno = ctx.line or None
        snippet = build_source_snippet(self._source, lineno) if lineno else None
        return TemplateRuntimeError(
            error_str,
            template_name=self.name,
            lineno=lineno,
            source_snippet=snippet,
            template_stack=ctx.template_stack,
            repairs=repairs,
            suggestion=(
                "The repaired script failed too; check block heads and braces"
                if repairs
                else None
            ),
            code=ErrorCode.REPAIR_FAILED if repairs else None,
        )
