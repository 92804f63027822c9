"""Tests for output styles and output files."""

from __future__ import annotations

import pytest

from notpl import RenderOptions, RenderType
from notpl.template.output import apply_style, output_filename

FINGERPRINT = "0123456789abcdef" * 4


def filename(options: RenderOptions, **kwargs) -> str:
    params = {
        "fingerprint": FINGERPRINT,
        "path": "site/page.html",
        "render_type": RenderType.FULL,
        "rendered_at": 1234.9,
    }
    params.update(kwargs)
    return output_filename(options, **params)


class TestApplyStyle:
    """Style post-processing."""

    def test_compressed(self) -> None:
        raw = '<div class=" a ">\n  <!-- note -->\n  <p>x   y</p>\n</div>'
        assert apply_style(raw, "compressed") == '<div class="a"><p>x y</p></div>'

    @pytest.mark.parametrize("style", ["compact", "none"])
    def test_pass_through(self, style: str) -> None:
        raw = "<div>\n  <p>x</p>\n</div>"
        assert apply_style(raw, style) == raw

    def test_multiline_comment(self) -> None:
        assert apply_style("a<!--\nx\n-->b", "compressed") == "ab"


class TestOutputFilename:
    """Output file naming from format tokens."""

    def test_default_format(self) -> None:
        assert filename(RenderOptions()) == "9abcdef-full-page.html"

    def test_all_tokens(self) -> None:
        options = RenderOptions(output_format=("tid", "time", "type", "ext"), output_ext="txt")
        assert filename(options, render_type=RenderType.STATIC) == f"{FINGERPRINT}-1234-static.txt"

    def test_inline_template_uses_name(self) -> None:
        options = RenderOptions(output_format=("filename", "ext"), name="greeting")
        assert filename(options, path=None) == "greeting.html"

    def test_inline_template_without_name(self) -> None:
        options = RenderOptions(output_format=("filename",))
        assert filename(options, path=None) == "template"

    def test_extension_dot_is_not_doubled(self) -> None:
        options = RenderOptions(output_format=("atid", "ext"), output_ext=".htm")
        assert filename(options) == "9abcdef.htm"

    def test_empty_format_falls_back_to_alias(self) -> None:
        assert filename(RenderOptions(output_format=())) == "9abcdef"


class TestOutputFiles:
    """Writing render results to disk."""

    def test_render_writes_file(self, env, tmp_path) -> None:
        template = env.from_string("<p>x</p>", name="hello")
        template.render(output=True, output_dir=str(tmp_path), output_format=["filename", "ext"])
        assert (tmp_path / "hello.html").read_text() == "<p>x</p>"

    def test_one_file_per_render_type(self, env, tmp_path) -> None:
        template = env.from_string("x", full_cache_ttl=1000)
        template.render(output=True, output_dir=str(tmp_path / "out"))
        template.render()
        names = sorted(path.name for path in (tmp_path / "out").iterdir())
        alias = template.fingerprint[-7:]
        assert names == [f"{alias}-full-template.html", f"{alias}-static-template.html"]

    def test_output_disabled_by_default(self, env, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        env.from_string("x").render()
        assert list(tmp_path.iterdir()) == []
