"""notpl Environment — template registry and shared configuration.

The Environment owns every Template it creates, keyed by the fingerprint of
the template's raw source. Identical content (from a file or an inline
string) always maps to the same Template, so its render cache is shared.

Example:
    >>> env = Environment(partial_cache_ttl=10_000)
    >>> page = env.from_string("<h1><$ print(title) $></h1>", scope={"title": "Hi"})
    >>> page.render()
    '<h1>Hi</h1>'
    >>> env.from_string("<h1><$ print(title) $></h1>") is page
    True

Thread-Safety:
    Registry reads and writes (including the child links used for cycle
    detection) happen under one environment lock. Rendering never holds it.

"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, NamedTuple

from notpl.environment.loaders import Loader, read_template_file
from notpl.environment.options import RenderOptions
from notpl.environment.reporting import Reporter
from notpl.environment.resolver import NestedRenderResolver
from notpl.template import Template, TemplateStats
from notpl.utils.fingerprint import fingerprint as compute_fingerprint

logger = logging.getLogger(__name__)


def _wall_clock_ms() -> float:
    return time.time() * 1000


@dataclass(slots=True)
class RegistryEntry:
    """One registered template and its nesting bookkeeping.

    Attributes:
        template: The registered Template
        children: Fingerprints this template has rendered, in first-seen order
        warned: Children for which a cycle warning has already been reported
    """

    template: Template
    children: dict[str, None] = field(default_factory=dict)
    warned: set[str] = field(default_factory=set)


class Link(NamedTuple):
    """Result of recording a parent → child nested render."""

    child: Template | None
    cyclic: bool
    first_warning: bool


class Environment:
    """Registry and shared defaults for notpl templates.

    Args:
        loader: Where named templates come from. Without one, locators are
            file paths read from disk.
        clock: Millisecond clock used for cache TTLs and statistics
            (defaults to wall-clock time)
        **options: Environment-wide RenderOptions defaults

    Example:
        >>> env = Environment(loader=FileSystemLoader("templates/"), style="none")
        >>> env.from_file("index.html").render({"user": user})
    """

    def __init__(
        self,
        loader: Loader | None = None,
        *,
        clock: Callable[[], float] | None = None,
        **options: Any,
    ):
        self.loader = loader
        self._clock = clock or _wall_clock_ms
        # Reporting is validated first; its level gates warnings about the other options.
        defaults = RenderOptions()
        if "reporting" in options:
            defaults = defaults.merge({"reporting": options["reporting"]})
        self.options = defaults.merge({k: v for k, v in options.items() if k != "reporting"})
        self._entries: dict[str, RegistryEntry] = {}
        self._lock = threading.RLock()
        self.resolver = NestedRenderResolver(self)

    def now(self) -> float:
        """Current time in milliseconds on the environment clock."""
        return self._clock()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_source(
        self,
        locator: str,
        *,
        code: bool = False,
        relative_to: str | None = None,
    ) -> tuple[str, str | None]:
        """Resolve a locator to ``(source, filename)``.

        Inline code is returned as-is with no filename. Paths are tried
        relative to ``relative_to``'s directory first, then through the
        loader, then as plain paths on disk.

        Raises:
            TemplateNotFoundError: If the locator resolves nowhere
        """
        if code:
            return locator, None
        if relative_to is not None:
            candidate = Path(relative_to).parent / locator
            if candidate.is_file():
                return read_template_file(candidate)
        if self.loader is not None:
            return self.loader.get_source(locator)
        return read_template_file(locator)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def from_string(
        self,
        source: str,
        *,
        scope: Any = None,
        replace: bool = False,
        **options: Any,
    ) -> Template:
        """Register inline template source, or return its existing Template.

        Options are applied only when the template is created; pass them to
        ``render()`` to change an existing template.
        """
        template, _ = self.register(
            source,
            fingerprint=compute_fingerprint(source),
            filename=None,
            options=self._template_options(options),
            scope=scope,
            replace=replace,
        )
        return template

    def from_file(
        self,
        path: str | Path,
        *,
        scope: Any = None,
        replace: bool = False,
        **options: Any,
    ) -> Template:
        """Register a template file, or return the Template with the same content.

        Raises:
            TemplateNotFoundError: If the file cannot be found
        """
        source, filename = self.load_source(str(path))
        if filename is None:
            options.setdefault("name", str(path))
        template, _ = self.register(
            source,
            fingerprint=compute_fingerprint(source),
            filename=filename,
            options=self._template_options(options),
            scope=scope,
            replace=replace,
        )
        return template

    def new(
        self,
        locator: str | Path,
        *,
        code: bool = False,
        scope: Any = None,
        replace: bool = False,
        **options: Any,
    ) -> Template:
        """Create-or-reuse: inline source when ``code`` is set, otherwise a file."""
        if code:
            return self.from_string(str(locator), scope=scope, replace=replace, **options)
        return self.from_file(locator, scope=scope, replace=replace, **options)

    def render(
        self,
        locator: str | Path,
        scope: Any = None,
        *,
        code: bool = False,
        **options: Any,
    ) -> str:
        """Shortcut for ``env.new(locator, code=code).render(scope, **options)``."""
        return self.new(locator, code=code).render(scope, **options)

    def _template_options(self, overrides: Mapping[str, Any]) -> RenderOptions:
        return self.options.merge(overrides, Reporter(self.options.reporting))

    def register(
        self,
        source: str,
        *,
        fingerprint: str,
        filename: str | None,
        options: RenderOptions,
        scope: Any = None,
        replace: bool = False,
    ) -> tuple[Template, bool]:
        """Get-or-create the Template for ``fingerprint``.

        Returns:
            (template, created)
        """
        with self._lock:
            entry = self._entries.get(fingerprint)
            if entry is not None and not replace:
                return entry.template, False
            template = Template(
                self,
                source,
                fingerprint=fingerprint,
                options=options,
                filename=filename,
                scope=scope,
                created_at=self.now(),
            )
            self._entries[fingerprint] = RegistryEntry(template)
        logger.debug("Registered %s (%s)", template, fingerprint[-7:])
        return template, True

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def get(self, locator: str | Path, *, code: bool = False) -> Template | None:
        """Registered Template for the content behind ``locator``, if any.

        Raises:
            TemplateNotFoundError: If a file locator cannot be read
        """
        source, _ = self.load_source(str(locator), code=code)
        return self.lookup(compute_fingerprint(source))

    def lookup(self, fingerprint: str) -> Template | None:
        with self._lock:
            entry = self._entries.get(fingerprint)
        return entry.template if entry else None

    def remove(self, template: Template | str) -> bool:
        """Drop a template (or fingerprint) from the registry.

        Returns:
            True if something was removed
        """
        key = template if isinstance(template, str) else template.fingerprint
        with self._lock:
            removed = self._entries.pop(key, None) is not None
            for entry in self._entries.values():
                entry.children.pop(key, None)
                entry.warned.discard(key)
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    @property
    def cache(self) -> Mapping[str, Template]:
        """Read-only snapshot of the registry: fingerprint → Template."""
        with self._lock:
            return MappingProxyType({fp: e.template for fp, e in self._entries.items()})

    def stats(self) -> dict[str, TemplateStats]:
        """Statistics snapshot for every registered template."""
        return {fp: template.stats() for fp, template in self.cache.items()}

    def children(self, template: Template | str) -> tuple[str, ...]:
        """Fingerprints a template has rendered, in first-seen order."""
        key = template if isinstance(template, str) else template.fingerprint
        with self._lock:
            entry = self._entries.get(key)
            return tuple(entry.children) if entry else ()

    def link(self, parent: str, child: str) -> Link:
        """Record that ``parent`` renders ``child`` and check for a cycle.

        The pair is cyclic when ``child`` is registered and already lists
        ``parent`` among its children. ``first_warning`` is True only the first
        time a given ordered pair is found cyclic.
        """
        with self._lock:
            parent_entry = self._entries.get(parent)
            if parent_entry is not None:
                parent_entry.children.setdefault(child, None)
            child_entry = self._entries.get(child)
            if child_entry is None or parent not in child_entry.children:
                return Link(child_entry.template if child_entry else None, False, False)
            first = parent_entry is not None and child not in parent_entry.warned
            if first:
                parent_entry.warned.add(child)
            return Link(child_entry.template, True, first)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, fingerprint: object) -> bool:
        with self._lock:
            return fingerprint in self._entries

    def __iter__(self) -> Iterator[Template]:
        return iter(self.cache.values())

    def __repr__(self) -> str:
        return f"<Environment templates={len(self)} loader={type(self.loader).__name__}>"
