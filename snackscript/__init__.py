"""SnackScript: an emoji-keyword language compiled to JavaScript.

Pipeline: tokenize -> parse -> analyze -> optimize -> generate.
"""

from __future__ import annotations

import logging

from . import backend, middleend
from .backend import generate
from .errors import SnackError
from .frontend import analyze, parse, tokenize
from .frontend.tokens import LINE_COMMENT
from .ir import Program
from .middleend import optimize

logger = logging.getLogger(__name__)


def _extract_pragmas(source: str) -> tuple[bool, bool]:
    """Scan leading comment lines for pragmas. Returns (no_optimize, mangle_by_name)."""
    no_optimize = False
    mangle_by_name = False
    for line in source.split("\n"):
        stripped = line.strip()
        if stripped == "":
            continue
        if not stripped.startswith(LINE_COMMENT):
            break
        body = stripped[len(LINE_COMMENT) :].strip()
        if body == "pragma no-optimize":
            no_optimize = True
        elif body == "pragma mangle-by-name":
            mangle_by_name = True
    return no_optimize, mangle_by_name


def compile_program(source: str) -> Program:
    """Parse and analyze SnackScript source into typed IR."""
    return analyze(parse(source))


def compile(source: str, optimize: bool = True, mangle_by_name: bool = False) -> str:
    """Compile SnackScript source to JavaScript. Raises SnackError on failure."""
    no_optimize, by_name = _extract_pragmas(source)
    if no_optimize:
        optimize = False
    if by_name:
        mangle_by_name = True
    program = compile_program(source)
    if optimize:
        program = middleend.optimize(program)
    logger.debug("compiling with optimize=%s mangle_by_name=%s", optimize, mangle_by_name)
    return backend.generate(program, mangle_by_name=mangle_by_name)


__all__ = [
    "SnackError",
    "analyze",
    "compile",
    "compile_program",
    "generate",
    "optimize",
    "parse",
    "tokenize",
]
