"""Mathematical utilities for the batcher.

This package provides the exact integer primitives used by clearing:
- isqrt: on-chain compatible integer square root
- Fraction: integer price ratios compared by cross-multiplication
"""

from batcher.math.fraction import Fraction, Ordering, cross_compare, invert
from batcher.math.isqrt import isqrt

__all__ = ["Fraction", "Ordering", "cross_compare", "invert", "isqrt"]
