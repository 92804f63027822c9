"""notpl environment: registry, configuration, loaders, diagnostics and errors."""

from notpl.environment.exceptions import (
    ErrorCode,
    SourceSnippet,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    build_source_snippet,
)
from notpl.environment.loaders import DictLoader, FileSystemLoader, Loader
from notpl.environment.options import RenderOptions
from notpl.environment.reporting import Reporter, Severity
from notpl.environment.core import Environment

__all__ = [
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "Loader",
    "RenderOptions",
    "Reporter",
    "Severity",
    "SourceSnippet",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "build_source_snippet",
]
