"""Uniform clearing price discovery against a constant-product pool.

Two opposing sides of sell orders trade with each other at one price, and the
net excess of one side is absorbed by the pool. The price is the one at which
the pool, after taking that excess, sits on its own invariant:

    k = reserve_a * reserve_b
    p = k / (2 * (reserve_b + supply_b))
    new_reserve_a = p + sqrt(p^2 + k * demand_a / (reserve_b + supply_b))
    new_reserve_b = k / new_reserve_a

Side B's asset is paid per unit of side A's asset at new_reserve_b /
new_reserve_a. Orders are fill-or-kill, so a candidate price that violates
the most demanding order of a side removes that order and the search
restarts with fewer orders.

Algorithm (iterative over a private working copy):
1. Sum the sell amounts of both sides; an empty side means no solution.
2. If side A cannot pay side B's most demanding order at the aggregate rate,
   exchange the roles of the sides and the pool reserves (at most once).
3. Compute the candidate reserves and price.
4. Drop the tail order of side A if the price violates it, else the tail
   order of side B if the price violates it, and restart.
5. Otherwise the candidate is the clearing price.

All arithmetic is exact uint256 arithmetic via SafeUint256, matching the
on-chain checker; any overflow aborts the solve with ArithmeticOverflow.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from batcher.math.fraction import Fraction
from batcher.math.isqrt import isqrt
from batcher.models.order import Order
from batcher.models.pool import PoolState
from batcher.models.solution import Solution
from batcher.safe_int import U, checked_sum

logger = structlog.get_logger()


class ClearingDidNotConverge(RuntimeError):
    """The prune/swap loop ran past its bound. Indicates a bug, not bad input."""

    pass


@dataclass(frozen=True)
class CandidateReserves:
    """Hypothetical pool reserves on the same invariant as the real pool."""

    reserve_a: int
    reserve_b: int

    @property
    def clearing_price(self) -> Fraction:
        """Side-B asset per unit of side-A asset."""
        return Fraction(numerator=self.reserve_b, denominator=self.reserve_a)


def candidate_reserves(pool: PoolState, demand_a: int, supply_b: int) -> CandidateReserves:
    """Compute the reserves the pool would hold after absorbing side A's excess.

    Args:
        pool: Current reserves, oriented to the sides
        demand_a: Total sell amount of side A
        supply_b: Total sell amount of side B

    Returns:
        CandidateReserves with reserve_a * reserve_b <= k

    Raises:
        ArithmeticOverflow: If any intermediate exceeds uint256
    """
    k = U(pool.reserve_a) * U(pool.reserve_b)
    reserve_b_plus_supply = U(pool.reserve_b) + U(supply_b)

    p = k // (U(2) * reserve_b_plus_supply)
    radicand = p * p + (k * U(demand_a)) // reserve_b_plus_supply
    new_reserve_a = p + U(isqrt(radicand.value))
    if new_reserve_a.value == 0:
        # Dust pools can round the whole curve away.
        return CandidateReserves(reserve_a=0, reserve_b=0)
    new_reserve_b = k // new_reserve_a

    return CandidateReserves(reserve_a=new_reserve_a.value, reserve_b=new_reserve_b.value)


def _violates_side_a(order: Order, candidate: CandidateReserves) -> bool:
    # Receives sell * reserve_b / reserve_a of B, needs buy.
    received = U(order.sell_amount) * U(candidate.reserve_b)
    required = U(order.buy_amount) * U(candidate.reserve_a)
    return received < required


def _violates_side_b(order: Order, candidate: CandidateReserves) -> bool:
    # Receives sell * reserve_a / reserve_b of A, needs buy.
    received = U(order.sell_amount) * U(candidate.reserve_a)
    required = U(order.buy_amount) * U(candidate.reserve_b)
    return received < required


@dataclass
class _ClearingState:
    """Working copy of the inputs. Never shares lists with the caller."""

    pool: PoolState
    side_a: list[Order]
    side_b: list[Order]
    swaps: int = 0

    def exchange_roles(self) -> None:
        self.pool = self.pool.swapped()
        self.side_a, self.side_b = self.side_b, self.side_a
        self.swaps += 1


class ClearingSolver:
    """Finds the uniform clearing price and the admitted orders of a batch.

    Both sides must already be validated: one token pair, currently valid,
    and ascending by limit price so that the most demanding order is last.
    The solver is a pure function of its inputs and safe to share.

    Args:
        max_swaps: Orientation swaps allowed per solve
    """

    def __init__(self, max_swaps: int = 1) -> None:
        self.max_swaps = max_swaps

    def solve(
        self,
        pool: PoolState,
        side_a: Sequence[Order],
        side_b: Sequence[Order],
    ) -> Solution:
        """Clear a batch.

        Args:
            pool: Pool reserves; reserve_a belongs to side A's sell token
            side_a: Orders selling token A, ascending by limit price
            side_b: Orders selling token B, ascending by limit price

        Returns:
            Solution with the clearing price and admitted orders. If a role
            exchange happened, the solution is expressed in the exchanged
            roles, exactly as if the caller had passed the sides swapped.
            Solution.empty() if no order can be admitted.

        Raises:
            ArithmeticOverflow: If any product or sum exceeds uint256
        """
        state = _ClearingState(pool=pool, side_a=list(side_a), side_b=list(side_b))

        if pool.is_empty:
            logger.debug("clearing_empty_pool", reserve_a=pool.reserve_a, reserve_b=pool.reserve_b)
            return Solution.empty()

        # Every pass returns, swaps once, or drops an order.
        max_iterations = len(state.side_a) + len(state.side_b) + self.max_swaps + 1
        for _ in range(max_iterations):
            demand_a = checked_sum([o.sell_amount for o in state.side_a])
            supply_b = checked_sum([o.sell_amount for o in state.side_b])
            if demand_a == 0 or supply_b == 0:
                logger.info(
                    "clearing_no_solution",
                    remaining_a=len(state.side_a),
                    remaining_b=len(state.side_b),
                    swaps=state.swaps,
                )
                return Solution.empty()

            if state.swaps < self.max_swaps and self._needs_role_exchange(
                demand_a, supply_b, state.side_b[-1]
            ):
                logger.debug("clearing_exchange_roles", demand_a=demand_a, supply_b=supply_b)
                state.exchange_roles()
                continue

            candidate = candidate_reserves(state.pool, demand_a, supply_b)
            if candidate.reserve_a == 0:
                logger.info("clearing_degenerate_pool", demand_a=demand_a, supply_b=supply_b)
                return Solution.empty()

            if _violates_side_a(state.side_a[-1], candidate):
                dropped = state.side_a.pop()
                logger.debug(
                    "clearing_drop_order",
                    side="A",
                    owner=dropped.owner,
                    nonce=dropped.nonce,
                    price=str(candidate.clearing_price),
                )
                continue

            if _violates_side_b(state.side_b[-1], candidate):
                dropped = state.side_b.pop()
                logger.debug(
                    "clearing_drop_order",
                    side="B",
                    owner=dropped.owner,
                    nonce=dropped.nonce,
                    price=str(candidate.clearing_price),
                )
                continue

            solution = Solution(
                clearing_price=candidate.clearing_price,
                admitted_side_a=tuple(state.side_a),
                admitted_side_b=tuple(state.side_b),
            )
            logger.info(
                "clearing_price_found",
                price=str(solution.clearing_price),
                price_decimal=str(solution.clearing_price.to_decimal()),
                admitted_a=len(solution.admitted_side_a),
                admitted_b=len(solution.admitted_side_b),
                swaps=state.swaps,
            )
            return solution

        raise ClearingDidNotConverge(f"Clearing exceeded {max_iterations} iterations")

    @staticmethod
    def _needs_role_exchange(demand_a: int, supply_b: int, tail_b: Order) -> bool:
        """True if side A cannot pay side B's tail order at the aggregate rate.

        At the rate demand_a / supply_b (A per B), side B's most demanding
        order would receive less than it asks for, so side A is the scarce
        side and the roles must be exchanged.
        """
        return U(demand_a) * U(tail_b.sell_amount) < U(supply_b) * U(tail_b.buy_amount)
