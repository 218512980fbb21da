"""Code generation backends."""

from .javascript import JavaScriptBackend, generate

__all__ = ["JavaScriptBackend", "generate"]
