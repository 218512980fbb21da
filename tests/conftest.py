"""Pytest configuration for the SnackScript test suite."""

from __future__ import annotations

from snackscript.backend import generate
from snackscript.frontend import analyze, parse
from snackscript.ir import Program
from snackscript.middleend import optimize


def compile_js(source: str, optimized: bool = True, mangle_by_name: bool = False) -> str:
    """Run the full pipeline on source and return the JavaScript text."""
    program = analyze(parse(source))
    if optimized:
        program = optimize(program)
    return generate(program, mangle_by_name=mangle_by_name)


def analyzed(source: str) -> Program:
    return analyze(parse(source))


def contains_normalized(haystack: str, needle: str) -> bool:
    """Check if needle appears in haystack, normalizing line-by-line whitespace."""
    needle_lines = [line.strip() for line in needle.strip().split("\n") if line.strip()]
    haystack_lines = [line.strip() for line in haystack.split("\n") if line.strip()]
    if not needle_lines:
        return True
    for i in range(len(haystack_lines)):
        if haystack_lines[i : i + len(needle_lines)] == needle_lines:
            return True
    return False
