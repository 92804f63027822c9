"""notpl Template package — registered templates and their render cache.

Re-exports the public symbols so that ``from notpl.template import Template``
works without reaching into submodules.

"""

from notpl.template.core import Template
from notpl.template.stats import RenderType, TemplateStats

__all__ = [
    "RenderType",
    "Template",
    "TemplateStats",
]
