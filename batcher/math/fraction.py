"""Exact rational prices.

Prices are (numerator, denominator) pairs of uint256 integers. They are never
divided: ordering uses cross-multiplication, which is what the on-chain
checker does, so both sides agree on every comparison. A product that does
not fit in uint256 raises ArithmeticOverflow instead of wrapping.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import IntEnum

from batcher.safe_int import U

__all__ = ["Fraction", "Ordering", "cross_compare", "invert"]


class Ordering(IntEnum):
    """Result of comparing two fractions."""

    LT = -1
    EQ = 0
    GT = 1


@dataclass(frozen=True)
class Fraction:
    """A price as an integer ratio.

    Attributes:
        numerator: uint256 numerator
        denominator: uint256 denominator (may be zero, e.g. the empty sentinel)
    """

    numerator: int
    denominator: int

    def __post_init__(self) -> None:
        # Range-check both components once, at construction.
        U(self.numerator)
        U(self.denominator)

    @classmethod
    def zero(cls) -> Fraction:
        """The 0/0 sentinel used by the empty solution."""
        return cls(0, 0)

    @property
    def is_zero(self) -> bool:
        return self.numerator == 0 and self.denominator == 0

    def to_decimal(self) -> Decimal:
        """Approximate value for logging only, never for decisions."""
        if self.denominator == 0:
            return Decimal("0")
        return Decimal(self.numerator) / Decimal(self.denominator)

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"


def cross_compare(a: Fraction, b: Fraction) -> Ordering:
    """Compare a and b by cross-multiplication.

    Compares a.numerator * b.denominator against b.numerator * a.denominator.

    Raises:
        ArithmeticOverflow: If either product exceeds uint256
    """
    lhs = U(a.numerator) * U(b.denominator)
    rhs = U(b.numerator) * U(a.denominator)
    if lhs < rhs:
        return Ordering.LT
    if lhs > rhs:
        return Ordering.GT
    return Ordering.EQ


def invert(f: Fraction) -> Fraction:
    """Swap numerator and denominator. Zero components are not special-cased."""
    return Fraction(numerator=f.denominator, denominator=f.numerator)
