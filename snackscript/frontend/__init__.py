"""Frontend package - converts SnackScript source to typed IR."""

from .analyze import Analyzer, analyze
from .parse import Parser, parse
from .tokens import Token, tokenize

__all__ = [
    "Analyzer",
    "Parser",
    "Token",
    "analyze",
    "parse",
    "tokenize",
]
