"""Integer square root matching the on-chain Babylonian implementation."""

from __future__ import annotations

__all__ = ["isqrt"]


def isqrt(y: int) -> int:
    """Return floor(sqrt(y)) using the same iteration as the on-chain checker.

    Starts Newton's method at y // 2 + 1 and stops as soon as the next iterate
    is not smaller than the current one. Values up to 3 short-circuit to 0 or
    1. The iteration count and rounding are part of the contract: clearing
    prices derived from this root must match the on-chain recomputation bit
    for bit.

    Args:
        y: Non-negative integer

    Returns:
        The largest integer z with z * z <= y

    Raises:
        ValueError: If y is negative
    """
    if y < 0:
        raise ValueError(f"isqrt of negative value: {y}")
    if y <= 3:
        return 1 if y != 0 else 0

    z = y
    x = y // 2 + 1
    while x < z:
        z = x
        x = (y // x + x) // 2
    return z
