"""Render statistics for notpl templates.

A Template keeps a mutable ``RenderHistory`` internally and hands out
immutable ``TemplateStats`` snapshots from ``Template.stats()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from notpl.environment.options import RenderOptions


class RenderType(Enum):
    """Strategy chosen for one render call."""

    FULL = "full"
    PARTIAL = "partial"
    STATIC = "static"

    @property
    def code(self) -> str:
        """Single-letter code used in compact render histories ('f', 'p', 's')."""
        return self.value[0]


@dataclass(frozen=True, slots=True)
class TemplateStats:
    """Snapshot of a template's render history.

    Times are in milliseconds on the environment clock.

    Attributes:
        path: File path, or display name for inline templates
        fingerprint: Registry key
        created_at: When the template was registered
        lifetime_ms: Time since registration when the snapshot was taken
        last_full_render: Time of the last full render (None before the first)
        last_render: Time of the last render of any type
        last_render_type: Strategy used by the last render
        full_renders: Number of full renders
        partial_renders: Number of partial renders
        static_renders: Number of static renders
        render_times: (duration_ms, RenderType) per render, oldest first
        last_render_time: Duration of the last render
        render_options: Options the last render used
    """

    path: str
    fingerprint: str
    created_at: float
    lifetime_ms: float
    last_full_render: float | None
    last_render: float | None
    last_render_type: RenderType | None
    full_renders: int
    partial_renders: int
    static_renders: int
    render_times: tuple[tuple[float, RenderType], ...]
    last_render_time: float | None
    render_options: RenderOptions

    @property
    def render_count(self) -> int:
        return self.full_renders + self.partial_renders + self.static_renders

    @property
    def durations(self) -> tuple[float, ...]:
        return tuple(duration for duration, _ in self.render_times)


@dataclass(slots=True)
class RenderHistory:
    """Mutable render bookkeeping owned by one Template."""

    created_at: float
    last_full_render: float | None = None
    last_render: float | None = None
    last_render_type: RenderType | None = None
    counts: dict[RenderType, int] = field(
        default_factory=lambda: {render_type: 0 for render_type in RenderType}
    )
    render_times: list[tuple[float, RenderType]] = field(default_factory=list)

    @property
    def has_full_render(self) -> bool:
        return self.counts[RenderType.FULL] > 0

    def record(self, render_type: RenderType, started: float, finished: float) -> None:
        if render_type is RenderType.FULL:
            self.last_full_render = finished
        self.last_render = finished
        self.last_render_type = render_type
        self.counts[render_type] += 1
        self.render_times.append((finished - started, render_type))

    def snapshot(
        self,
        *,
        path: str,
        fingerprint: str,
        now: float,
        options: RenderOptions,
    ) -> TemplateStats:
        return TemplateStats(
            path=path,
            fingerprint=fingerprint,
            created_at=self.created_at,
            lifetime_ms=now - self.created_at,
            last_full_render=self.last_full_render,
            last_render=self.last_render,
            last_render_type=self.last_render_type,
            full_renders=self.counts[RenderType.FULL],
            partial_renders=self.counts[RenderType.PARTIAL],
            static_renders=self.counts[RenderType.STATIC],
            render_times=tuple(self.render_times),
            last_render_time=self.render_times[-1][0] if self.render_times else None,
            render_options=options,
        )
