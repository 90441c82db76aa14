"""Read-only view of the external constant-product pool."""

from __future__ import annotations

from dataclasses import dataclass

from batcher.safe_int import U


@dataclass(frozen=True)
class PoolState:
    """Reserve pair oriented to the two sides of a batch.

    `reserve_a` is the pool balance of side A's sell token and `reserve_b`
    the balance of side B's sell token. The batcher never mutates a pool; the
    solver derives hypothetical reserve pairs on the same invariant.
    """

    reserve_a: int
    reserve_b: int

    def __post_init__(self) -> None:
        U(self.reserve_a)
        U(self.reserve_b)

    @property
    def k(self) -> int:
        """Constant-product invariant reserve_a * reserve_b.

        Raises:
            ArithmeticOverflow: If the product exceeds uint256
        """
        return (U(self.reserve_a) * U(self.reserve_b)).value

    @property
    def is_empty(self) -> bool:
        """True if either reserve is zero (no price can be derived)."""
        return self.reserve_a == 0 or self.reserve_b == 0

    def swapped(self) -> PoolState:
        """The same pool seen with side roles exchanged."""
        return PoolState(reserve_a=self.reserve_b, reserve_b=self.reserve_a)
