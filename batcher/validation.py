"""Precondition checks applied between decoding and clearing.

The clearing solver trusts its inputs. Everything it relies on is checked
here and reported with a named error: token pairing, validity windows and
limit-price ordering. Arithmetic overflow while comparing prices is never
reported as "unsorted"; it propagates as ArithmeticOverflow.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from batcher.errors import MismatchedTokenPairing, OrderExpired, OrderNotYetValid, Unsorted
from batcher.math.fraction import Ordering, cross_compare
from batcher.models.order import Order

logger = structlog.get_logger()


def is_sorted(orders: Sequence[Order], descending: bool = False) -> bool:
    """Check that orders are monotonic in limit price.

    Equal limit prices are sorted relative to each other in both directions,
    so empty and single-order sides are sorted either way.

    Args:
        orders: Orders to check
        descending: Direction to check; ascending by default

    Returns:
        True if every adjacent pair is in order

    Raises:
        ArithmeticOverflow: If a cross-multiplication exceeds uint256
    """
    violation = Ordering.LT if descending else Ordering.GT
    for prev, curr in zip(orders, orders[1:]):
        if cross_compare(prev.limit_price, curr.limit_price) == violation:
            return False
    return True


def ensure_sorted(orders: Sequence[Order], descending: bool = False, side: str = "A") -> None:
    """Raise Unsorted unless is_sorted holds.

    Raises:
        Unsorted: If the side is not monotonic in limit price
        ArithmeticOverflow: If a comparison overflows
    """
    if not is_sorted(orders, descending=descending):
        direction = "descending" if descending else "ascending"
        raise Unsorted(f"Side {side} orders are not {direction} by limit price")


def ensure_currently_valid(order: Order, now: int, side: str = "A") -> None:
    """Check an order's validity window against a timestamp.

    The window is inclusive. A zero valid_until means the order never
    expires; a zero valid_from means it has been valid since the epoch.

    Raises:
        OrderNotYetValid: If now is before valid_from
        OrderExpired: If valid_until is set and now is after it
    """
    if now < order.valid_from:
        raise OrderNotYetValid(
            f"Side {side} order of {order.owner} (nonce {order.nonce}) "
            f"is valid from {order.valid_from}, now {now}"
        )
    if order.valid_until != 0 and now > order.valid_until:
        raise OrderExpired(
            f"Side {side} order of {order.owner} (nonce {order.nonce}) "
            f"expired at {order.valid_until}, now {now}"
        )


def ensure_token_pairing(
    side_a: Sequence[Order], side_b: Sequence[Order]
) -> tuple[str, str] | None:
    """Check that both sides trade the same pair in opposite directions.

    Side A sells token A for token B; side B sells token B for token A. The
    pair is taken from the first order of side A, or of side B if A is empty.

    Returns:
        (token_a, token_b), or None if both sides are empty

    Raises:
        MismatchedTokenPairing: Naming the first offending side and field
    """
    if side_a:
        token_a, token_b = side_a[0].sell_token, side_a[0].buy_token
    elif side_b:
        token_a, token_b = side_b[0].buy_token, side_b[0].sell_token
    else:
        return None

    expected = (("A", side_a, token_a, token_b), ("B", side_b, token_b, token_a))
    for side, orders, sell, buy in expected:
        for index, order in enumerate(orders):
            if order.sell_token != sell:
                raise MismatchedTokenPairing(
                    f"Invalid side {side} order {index} sell token: "
                    f"{order.sell_token}, expected {sell}"
                )
            if order.buy_token != buy:
                raise MismatchedTokenPairing(
                    f"Invalid side {side} order {index} buy token: "
                    f"{order.buy_token}, expected {buy}"
                )

    return token_a, token_b


def validate_batch(side_a: Sequence[Order], side_b: Sequence[Order], now: int) -> None:
    """Run every precondition the clearing solver relies on.

    Both sides must be ascending by limit price, so the most demanding order
    of each side is its last element.
    """
    ensure_token_pairing(side_a, side_b)
    for side, orders in (("A", side_a), ("B", side_b)):
        for order in orders:
            ensure_currently_valid(order, now, side)
        ensure_sorted(orders, descending=False, side=side)

    logger.debug("batch_validated", side_a=len(side_a), side_b=len(side_b), now=now)
