"""Tests for nested renders and include-cycle handling."""

from __future__ import annotations

import pytest

from notpl import (
    DictLoader,
    Environment,
    ErrorCode,
    RenderType,
    TemplateNotFoundError,
    TemplateRuntimeError,
)

from ..conftest import messages


class TestNestedRender:
    """render() called from inside fragments."""

    def test_loader_child_with_scope(self, env_with_loader) -> None:
        page = env_with_loader.new("page.html", scope={"title": "Home"})
        assert page.render() == "<main><nav>Home</nav></main>"

    def test_child_is_registered_and_linked(self, env_with_loader) -> None:
        page = env_with_loader.new("page.html", scope={"title": "Home"})
        page.render()
        nav = env_with_loader.get("nav.html")
        assert nav is not None
        assert str(nav) == "Template [nav.html]"
        assert env_with_loader.children(page) == (nav.fingerprint,)

    def test_inline_child(self, env) -> None:
        template = env.from_string("<$ render(\"<b><$ print(1) $></b>\", {'code': True}) $>")
        assert template.render() == "<b>1</b>"

    def test_code_as_keyword_override(self, env) -> None:
        template = env.from_string("<$ render('<$ print(2) $>', code=True) $>")
        assert template.render() == "2"

    def test_child_inherits_parent_delimiters(self, env) -> None:
        template = env.from_string(
            "{% render(\"{% print(1) %}\", {'code': True}) %}",
            delimiter_start="{%",
            delimiter_stop="%}",
        )
        assert template.render() == "1"

    def test_child_options_override(self, env) -> None:
        template = env.from_string(
            "<$ render(\"<i>\\n  x</i>\", {'code': True, 'style': 'compressed'}) $>"
        )
        assert template.render() == "<i> x</i>"

    def test_render_returns_none(self, env) -> None:
        template = env.from_string("<$ print(render('<$ print(1) $>', code=True)) $>")
        assert template.render() == "1None"

    def test_relative_to_parent_directory(self, tmp_path, clock) -> None:
        pages = tmp_path / "pages"
        pages.mkdir()
        (pages / "part.html").write_text("<p>part</p>")
        (pages / "index.html").write_text("<body><$ render('part.html') $></body>")
        env = Environment(clock=clock, style="none")
        assert env.from_file(pages / "index.html").render() == "<body><p>part</p></body>"

    def test_missing_child_propagates(self, env) -> None:
        template = env.from_string("<$ render('does/not/exist.html') $>")
        with pytest.raises(TemplateNotFoundError):
            template.render()

    def test_child_error_keeps_template_stack(self, clock) -> None:
        loader = DictLoader(
            {
                "page.html": "<main>\n<$ render('broken.html') $></main>",
                "broken.html": "<$ print(missing) $>",
            }
        )
        env = Environment(loader=loader, clock=clock)
        with pytest.raises(TemplateRuntimeError) as exc_info:
            env.new("page.html").render()
        err = exc_info.value
        assert err.template_name == "broken.html"
        assert err.template_stack == [("page.html", 2)]

    def test_existing_child_keeps_its_scope(self, env_with_loader) -> None:
        nav = env_with_loader.new("nav.html", scope={"title": "Own"})
        parent = env_with_loader.from_string("<$ render('nav.html') $>")
        assert parent.render() == "<nav>Own</nav>"
        assert nav.stats().render_count == 1


class TestCycles:
    """Templates that render each other."""

    def test_mutual_inclusion_is_finite(self, env_with_loader, caplog) -> None:
        a = env_with_loader.new("a.html")
        assert a.render() == "A[B[]]"
        assert len(messages(caplog, "N-RUN-004")) == 1

    def test_warning_once_per_ordered_pair(self, env_with_loader, caplog) -> None:
        a = env_with_loader.new("a.html")
        outputs = [a.render() for _ in range(4)]
        assert outputs == ["A[B[]]"] * 4
        assert len(messages(caplog, "N-RUN-004")) == 2

    def test_cycle_child_renders_static(self, env_with_loader) -> None:
        a = env_with_loader.new("a.html")
        a.render()
        b = env_with_loader.get("b.html")
        a.render()
        assert b.stats().last_render_type is RenderType.STATIC

    def test_self_inclusion(self, env_with_loader, caplog) -> None:
        template = env_with_loader.new("self.html")
        assert template.render() == "S"
        assert template.render() == "SS"
        assert len(messages(caplog, "N-RUN-004")) == 1

    def test_longer_cycles_hit_depth_limit(self, clock) -> None:
        loader = DictLoader(
            {
                "x.html": "<$ render('y.html') $>",
                "y.html": "<$ render('z.html') $>",
                "z.html": "<$ render('x.html') $>",
            }
        )
        env = Environment(loader=loader, clock=clock)
        with pytest.raises(TemplateRuntimeError) as exc_info:
            env.new("x.html").render()
        assert exc_info.value.code is ErrorCode.INCLUDE_DEPTH
