"""Output post-processing: styles and output files.

Styles:
    compressed: Drop whitespace between tags, collapse whitespace runs to one
        space, trim padding inside quoted attribute values and strip HTML
        comments.
    compact / none: Output is returned exactly as rendered.

Output Files:
    When the ``output`` option is on, each render result is written to
    ``output_dir`` under a name built from ``output_format`` tokens joined
    with ``-`` (``ext`` is joined with ``.``):

    ============  ==============================================
    tid           Full template fingerprint
    atid          Last 7 characters of the fingerprint
    time          Render time (milliseconds, environment clock)
    filename      Template file name without extension
    type          Render type (full, partial, static)
    ext           ``output_ext``
    ============  ==============================================

"""

from __future__ import annotations

import re
from pathlib import Path

from notpl.environment.options import RenderOptions
from notpl.template.stats import RenderType

_BETWEEN_TAGS = re.compile(r">\s+<")
_WHITESPACE_RUN = re.compile(r"\s+")
_ATTRIBUTE_PADDING = re.compile(r'=\s*"\s*([^"]*?)\s*"')
_HTML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)


def apply_style(output: str, style: str) -> str:
    """Apply an output style to raw rendered output."""
    if style != "compressed":
        return output
    output = _HTML_COMMENT.sub("", output)
    output = _BETWEEN_TAGS.sub("><", output)
    output = _WHITESPACE_RUN.sub(" ", output)
    return _ATTRIBUTE_PADDING.sub(r'="\1"', output)


def output_filename(
    options: RenderOptions,
    *,
    fingerprint: str,
    path: str | None,
    render_type: RenderType,
    rendered_at: float,
) -> str:
    """Build the output file name from the ``output_format`` tokens."""
    stem = Path(path).stem if path else (options.name or "template")
    values = {
        "tid": fingerprint,
        "atid": fingerprint[-7:],
        "time": str(int(rendered_at)),
        "filename": stem,
        "type": render_type.value,
    }
    parts = [values[token] for token in options.output_format if token != "ext"]
    name = "-".join(parts) or fingerprint[-7:]
    if "ext" in options.output_format and options.output_ext:
        name = f"{name}.{options.output_ext.lstrip('.')}"
    return name


def write_output(
    output: str,
    options: RenderOptions,
    *,
    fingerprint: str,
    path: str | None,
    render_type: RenderType,
    rendered_at: float,
) -> Path:
    """Write a render result to ``options.output_dir`` and return its path."""
    directory = Path(options.output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    destination = directory / output_filename(
        options,
        fingerprint=fingerprint,
        path=path,
        render_type=render_type,
        rendered_at=rendered_at,
    )
    destination.write_text(output, encoding="utf-8")
    return destination
