"""Script compilation for notpl.

Token stream → body (assembler) → brace-syntax script (normalizer) →
Python code object (compiler).
"""

from notpl.compiler.assembler import assemble, build_script, escape_literal
from notpl.compiler.core import BODY_FUNCTION, CompiledScript, Compiler
from notpl.compiler.normalizer import SyntaxRepairer, normalize

__all__ = [
    "BODY_FUNCTION",
    "CompiledScript",
    "Compiler",
    "SyntaxRepairer",
    "assemble",
    "build_script",
    "escape_literal",
    "normalize",
]
