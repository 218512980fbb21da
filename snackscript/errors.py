"""SnackScript error taxonomy.

Every stage raises a subclass of SnackError. The first violated rule aborts
compilation; nothing is accumulated.
"""

from __future__ import annotations


class SnackError(Exception):
    """Compilation error with optional source position (0 = unknown)."""

    def __init__(self, msg: str, line: int = 0, col: int = 0):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        if line > 0:
            super().__init__(str(line) + ":" + str(col) + ": " + msg)
        else:
            super().__init__(msg)


class TokenizeError(SnackError):
    """Error during tokenization."""


class ParseError(SnackError):
    """Syntax error."""


# ============================================================
# SEMANTIC ERRORS
# ============================================================


class AnalysisError(SnackError):
    """Base for static semantic errors raised by the analyzer."""


class DuplicateDeclaration(AnalysisError):
    pass


class UndeclaredIdentifier(AnalysisError):
    pass


class TypeMismatch(AnalysisError):
    """Assignability or type-equivalence violation."""


class SnackTypeError(AnalysisError):
    """Operand of the wrong category (numeric, boolean, iterable, struct)."""


class ArityMismatch(AnalysisError):
    pass


class IllegalReturn(AnalysisError):
    pass


class IllegalBreak(AnalysisError):
    pass


class MustReturnValue(AnalysisError):
    pass


class UnknownField(AnalysisError):
    pass


class UnsupportedConstruct(AnalysisError):
    """A node kind with no rule. Indicates a frontend/analyzer mismatch."""
