"""IR optimization passes (in-place transformations)."""

from .optimize import fold, optimize, optimize_block

__all__ = ["fold", "optimize", "optimize_block"]
