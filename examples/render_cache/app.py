"""Render cache -- static, partial and full renders.

Every template remembers its last full render. Within ``full_cache_ttl``
a render returns the previous output untouched (static). Within
``partial_cache_ttl`` the compiled body is re-executed against the current
scope (partial). After both expire the source is scanned again (full).

A manual clock makes the timeline deterministic.

Run:
    python app.py
"""

from notpl import Environment


class ManualClock:
    """Millisecond clock advanced by hand."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


clock = ManualClock()
env = Environment(clock=clock, full_cache_ttl=1_000, partial_cache_ttl=5_000)

scope = {"items": ["a", "b"]}
template = env.from_string(
    "<ul><$ for (item in scope['items']): $><li><$ print(item) $></li><$ endfor $></ul>",
    scope=scope,
)

# Full render -- scans, compiles and executes
full_output = template.render()

# Static render -- the scope changed but the full render is still fresh
scope["items"].append("c")
static_output = template.render()

# Partial render -- re-executes the compiled body with the mutated scope
clock.now += 2_000
partial_output = template.render()

# Both TTLs expired -- full render again
clock.now += 10_000
refreshed_output = template.render()

stats = template.stats()
codes = "".join(render_type.code for _, render_type in stats.render_times)


def main() -> None:
    print(f"full:    {full_output}")
    print(f"static:  {static_output}")
    print(f"partial: {partial_output}")
    print(f"full:    {refreshed_output}")
    print(
        f"\n{stats.full_renders} full, {stats.partial_renders} partial, "
        f"{stats.static_renders} static ({codes})"
    )


if __name__ == "__main__":
    main()
