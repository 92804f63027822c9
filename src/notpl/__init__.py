"""notpl — delimiter-based template engine with embedded Python fragments.

Templates are plain text (usually HTML) with code fragments between a start
and a stop delimiter (``<$`` and ``$>`` by default). Fragments are ordinary
Python; whatever they ``print()`` lands in the output in place of the
fragment.

Quickstart:
    >>> from notpl import Environment
    >>> env = Environment()
    >>> env.from_string("<div>hello <$ print('world') $></div>").render()
    '<div>hello world</div>'

Block syntax:
    Fragments may open a block in one fragment and close it in another.
    Brace, colon and keyword styles are all accepted:

    >>> source = '''<ul>
    ... <$ for (item in scope['items']): $><li><$ print(item) $></li><$ endfor $>
    ... </ul>'''
    >>> env.from_string(source, scope={"items": [1, 2]}).render()
    '<ul><li>1</li><li>2</li></ul>'

Architecture:
Template Source → Scanner → Lexer → Assembler → Normalizer → Compiler → exec()

1. **Scanner**: Cursor over the raw source
2. **Lexer**: Splits the source into literal and code runs (delimiter state machine)
3. **Assembler**: Turns runs into emit/code nodes and one script
4. **Normalizer**: Rewrites block syntax to braces; repairs missing braces on failure
5. **Compiler**: Lowers the brace script to an indented Python function
6. **Template**: Tiered render cache (full / partial / static), statistics, output files

Render cache:
    Every template is registered under the fingerprint of its source. Within
    ``partial_cache_ttl`` of the last full render, renders only re-execute the
    compiled body; within ``full_cache_ttl`` they return the last output.

Nested renders:
    Fragments can call ``render(path_or_code, options, scope)`` to render
    another template into their output. Two templates that render each
    other are detected and cut short with a single warning.

"""

from notpl._types import DEFAULT_DELIMITERS, Delimiters, Token, TokenType
from notpl.environment import (
    DictLoader,
    Environment,
    ErrorCode,
    FileSystemLoader,
    RenderOptions,
    Reporter,
    SourceSnippet,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    build_source_snippet,
)
from notpl.lexer import Lexer, tokenize
from notpl.render_context import (
    RenderContext,
    get_render_context,
    render_context,
)
from notpl.scanner import Scanner
from notpl.template import RenderType, Template, TemplateStats
from notpl.utils.html import html_escape

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_DELIMITERS",
    "Delimiters",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "Lexer",
    "RenderContext",
    "RenderOptions",
    "RenderType",
    "Reporter",
    "Scanner",
    "SourceSnippet",
    "Template",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateStats",
    "TemplateSyntaxError",
    "Token",
    "TokenType",
    "__version__",
    "build_source_snippet",
    "get_render_context",
    "html_escape",
    "render_context",
    "tokenize",
]
