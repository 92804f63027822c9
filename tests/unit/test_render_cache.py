"""Tests for the tiered render cache (full / partial / static)."""

from __future__ import annotations

from notpl import RenderType


def last_type(template) -> RenderType:
    return template.stats().last_render_type


class TestTierSelection:
    """Which strategy each render call picks."""

    def test_first_render_is_full(self, env) -> None:
        template = env.from_string("<$ print(1) $>")
        template.render()
        assert last_type(template) is RenderType.FULL

    def test_partial_within_partial_ttl(self, env, clock) -> None:
        template = env.from_string("<$ print(scope['n']) $>", scope={"n": 1})
        template.render()
        clock.advance(1_000)
        assert template.render({"n": 2}) == "2"
        assert last_type(template) is RenderType.PARTIAL

    def test_full_after_partial_ttl(self, env, clock) -> None:
        template = env.from_string("x")
        template.render()
        clock.advance(30_000)
        template.render()
        assert last_type(template) is RenderType.FULL

    def test_static_within_full_ttl(self, env, clock) -> None:
        template = env.from_string("<$ print(scope['n']) $>", scope={"n": 1}, full_cache_ttl=5_000)
        assert template.render() == "1"
        clock.advance(4_999)
        assert template.render({"n": 2}) == "1"
        assert last_type(template) is RenderType.STATIC

    def test_partial_after_full_ttl(self, env, clock) -> None:
        template = env.from_string("<$ print(scope['n']) $>", scope={"n": 1}, full_cache_ttl=5_000)
        template.render()
        clock.advance(5_000)
        assert template.render({"n": 2}) == "2"
        assert last_type(template) is RenderType.PARTIAL

    def test_two_immediate_renders_are_never_both_full(self, env) -> None:
        template = env.from_string("<$ print('x') $>", full_cache_ttl=1_000)
        first = template.render()
        second = template.render()
        assert first == second
        assert last_type(template) is not RenderType.FULL

    def test_zero_partial_ttl_disables_partial(self, env, clock) -> None:
        template = env.from_string("x", partial_cache_ttl=0)
        template.render()
        template.render()
        assert template.stats().full_renders == 2

    def test_partial_ttl_is_measured_from_last_full_render(self, env, clock) -> None:
        template = env.from_string("x")
        template.render()
        clock.advance(20_000)
        template.render()
        clock.advance(20_000)
        template.render()
        stats = template.stats()
        assert [t for _, t in stats.render_times] == [
            RenderType.FULL,
            RenderType.PARTIAL,
            RenderType.FULL,
        ]


class TestForcedRenders:
    """Forced full renders and delimiter changes."""

    def test_force_full_render(self, env) -> None:
        template = env.from_string("x", full_cache_ttl=10_000)
        template.render()
        template.render(force_full_render=True)
        assert last_type(template) is RenderType.FULL

    def test_force_applies_to_one_call(self, env) -> None:
        template = env.from_string("x", full_cache_ttl=10_000)
        template.render(force_full_render=True)
        template.render()
        assert last_type(template) is RenderType.STATIC
        assert template.options.force_full_render is False

    def test_delimiter_change_forces_full_render(self, env) -> None:
        template = env.from_string("<$ print(1) $>{% print(2) %}", full_cache_ttl=10_000)
        assert template.render() == "1{% print(2) %}"
        output = template.render(delimiter_start="{%", delimiter_stop="%}")
        assert output == "<$ print(1) $>2"
        assert last_type(template) is RenderType.FULL

    def test_changed_delimiters_persist(self, env) -> None:
        template = env.from_string("{% print(2) %}")
        template.render(delimiter_start="{%", delimiter_stop="%}")
        assert template.render() == "2"
        assert template.options.delimiter_start == "{%"

    def test_update_reexecutes(self, env) -> None:
        scope = {"n": 1}
        template = env.from_string(
            "<$ print(scope['n']) $>", scope=scope, partial_cache_ttl=0, full_cache_ttl=10_000
        )
        template.render()
        scope["n"] = 3
        assert template.update() == "3"
        assert last_type(template) is RenderType.PARTIAL

    def test_update_before_first_render_is_full(self, env) -> None:
        template = env.from_string("x")
        assert template.update() == "x"
        assert last_type(template) is RenderType.FULL


class TestStats:
    """Render statistics."""

    def test_counts_and_times(self, env, clock) -> None:
        created = clock.now
        template = env.from_string("x", full_cache_ttl=1_000)
        template.render()
        clock.advance(10)
        template.render()
        clock.advance(2_000)
        template.render()
        stats = template.stats()
        assert (stats.full_renders, stats.partial_renders, stats.static_renders) == (1, 1, 1)
        assert stats.render_count == 3
        assert stats.created_at == created
        assert stats.lifetime_ms == 2_010
        assert stats.last_full_render == created
        assert stats.last_render == created + 2_010
        assert stats.last_render_type is RenderType.PARTIAL
        assert stats.durations == (0, 0, 0)
        assert stats.last_render_time == 0

    def test_stats_before_any_render(self, env) -> None:
        stats = env.from_string("x").stats()
        assert stats.render_count == 0
        assert stats.last_render_type is None
        assert stats.last_render_time is None

    def test_stats_record_options_used(self, env) -> None:
        template = env.from_string("x")
        template.render(style="compact")
        assert template.stats().render_options.style == "compact"

    def test_stats_path_for_inline_template(self, env) -> None:
        assert env.from_string("x").stats().path == "native code"
        assert env.from_string("y", name="greeting").stats().path == "greeting"

    def test_render_type_codes(self) -> None:
        assert [t.code for t in RenderType] == ["f", "p", "s"]
