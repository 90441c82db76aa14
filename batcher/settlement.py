"""Settlement of a cleared batch.

Settlement re-runs the whole pipeline on the submitted encodings (decode,
validate, clear) and derives what every admitted order pays and receives at
the uniform price. It then applies the batch in four steps: pull each sell
amount into the settlement account, hand the residual token A to the pair,
take the pair's token B out through a PoolSwap, and pay each order its buy
amount. Asset movement goes through an AssetTransfer so that a ledger, a
token contract or a test double can stand behind it.

The net excess of side A is the pool's share of the trade:

    residual_in_a  = total_sell_a - total_paid_a   (token A pushed into the pool)
    residual_out_b = total_paid_b - total_sell_b   (token B drawn from the pool)

Both are signed; a negative value means the flow runs the other way.

Application is all-or-nothing. Balances are checked before anything moves,
and every completed move is journaled so that a refused move reverses the
ones before it.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Protocol

import structlog

from batcher.amm.uniswap_v2 import UniswapV2, UniswapV2Pair, uniswap_v2
from batcher.errors import NoSolutionFound, TransferFailed
from batcher.math.fraction import Fraction
from batcher.models.order import Order
from batcher.models.types import normalize_address
from batcher.models.solution import Solution
from batcher.safe_int import U, checked_sum
from batcher.solver import BatchSolver
from batcher.validation import ensure_token_pairing

logger = structlog.get_logger()


class AssetTransfer(Protocol):
    """Token ledger seen from the settlement account."""

    def balance_of(self, token: str, owner: str) -> int:
        """Amount of token held by owner."""
        ...

    def transfer_from(self, token: str, owner: str, recipient: str, amount: int) -> bool:
        """Move amount of token from owner to recipient. False means nothing moved."""
        ...

    def transfer(self, token: str, recipient: str, amount: int) -> bool:
        """Move amount of token out of the settlement account. False means nothing moved."""
        ...


class PoolSwap(Protocol):
    """Executes the residual trade against a pair."""

    def swap(self, pair: UniswapV2Pair, token_out: str, amount_out: int, recipient: str) -> bool:
        """Send amount_out of token_out from the pair to recipient.

        The input side has already been transferred to the pair, as with a
        UniswapV2 pair's own swap. False means nothing moved.
        """
        ...


@dataclass(frozen=True)
class _Move:
    token: str
    sender: str
    recipient: str
    amount: int

    def reversed(self) -> _Move:
        return _Move(self.token, self.recipient, self.sender, self.amount)


@dataclass(frozen=True)
class OrderPayout:
    """What one admitted order pays and receives at the clearing price."""

    order: Order
    amount_in: int
    amount_out: int


@dataclass(frozen=True)
class SettlementPlan:
    """Amounts every party moves when a solution settles.

    Attributes:
        clearing_price: Side-B asset per unit of side-A asset
        token_a: Side A's sell token
        token_b: Side B's sell token
        payouts_a: Side-A orders with the token B they receive
        payouts_b: Side-B orders with the token A they receive
        residual_in_a: Token A left over for the pool
        residual_out_b: Token B the orders take beyond what side B sells
        pool_quote_b: Token B the pair returns for residual_in_a
    """

    clearing_price: Fraction
    token_a: str
    token_b: str
    payouts_a: tuple[OrderPayout, ...]
    payouts_b: tuple[OrderPayout, ...]
    residual_in_a: int
    residual_out_b: int
    pool_quote_b: int

    @property
    def total_sell_a(self) -> int:
        return checked_sum([p.amount_in for p in self.payouts_a])

    @property
    def total_sell_b(self) -> int:
        return checked_sum([p.amount_in for p in self.payouts_b])

    @property
    def pool_covers_residual(self) -> bool:
        """True if the pair pays at least the token B the orders draw."""
        return self.pool_quote_b >= self.residual_out_b


@dataclass(frozen=True)
class BatchSettlementEvent:
    """Record of a settled batch. The price is reported as (denominator, numerator).

    The clearing price is new_b / new_a (token B per token A), so the event
    carries (new_a, new_b) of the candidate reserves. A producer that orients
    the price as new_a / new_b emits the same two integers swapped: for the
    reference 10/10 ether batch this event reads (10084092542732199005,
    9916608715780969175), and such a producer reads (9916608715780969175,
    10084092542732199005).
    """

    sell_token_a: str
    sell_token_b: str
    clearing_price_denominator: int
    clearing_price_numerator: int


def _payouts(
    orders: tuple[Order, ...], numerator: int, denominator: int
) -> tuple[OrderPayout, ...]:
    return tuple(
        OrderPayout(
            order=order,
            amount_in=order.sell_amount,
            amount_out=((U(order.sell_amount) * U(numerator)) // U(denominator)).value,
        )
        for order in orders
    )


def plan(solution: Solution, pair: UniswapV2Pair, amm: UniswapV2 = uniswap_v2) -> SettlementPlan:
    """Derive every transfer a solution implies.

    A side-A order receives sell_amount * numerator // denominator of token B;
    a side-B order receives sell_amount * denominator // numerator of token A.
    Both round down, so the orders never receive more than the price allows.

    Args:
        solution: Non-empty clearing result
        pair: Pair the residual is quoted against
        amm: Constant-product math

    Returns:
        SettlementPlan for the solution

    Raises:
        NoSolutionFound: If the solution admits no orders
        ArithmeticOverflow: If a payout overflows uint256
    """
    price = solution.clearing_price
    if solution.is_empty or price.numerator == 0 or price.denominator == 0:
        raise NoSolutionFound("Cannot settle an empty solution")

    tokens = ensure_token_pairing(solution.admitted_side_a, solution.admitted_side_b)
    if tokens is None:
        raise NoSolutionFound("Solution admits no orders")
    token_a, token_b = tokens

    payouts_a = _payouts(solution.admitted_side_a, price.numerator, price.denominator)
    payouts_b = _payouts(solution.admitted_side_b, price.denominator, price.numerator)

    total_sell_a = checked_sum([p.amount_in for p in payouts_a])
    total_sell_b = checked_sum([p.amount_in for p in payouts_b])
    total_paid_a = checked_sum([p.amount_out for p in payouts_b])
    total_paid_b = checked_sum([p.amount_out for p in payouts_a])

    residual_in_a = total_sell_a - total_paid_a
    residual_out_b = total_paid_b - total_sell_b
    pool_quote_b = amm.quote(pair, token_a, residual_in_a) if residual_in_a > 0 else 0

    return SettlementPlan(
        clearing_price=price,
        token_a=token_a,
        token_b=token_b,
        payouts_a=payouts_a,
        payouts_b=payouts_b,
        residual_in_a=residual_in_a,
        residual_out_b=residual_out_b,
        pool_quote_b=pool_quote_b,
    )


class BatchSettlement:
    """Settles encoded batches against one pair.

    Args:
        batch_solver: Decoding, validation and clearing
        transfer: Token ledger the orders are paid through
        pool_swap: Executes the residual trade against the pair
        pair: Pair the batch trades against
        settlement_address: Account every admitted sell amount passes through
    """

    def __init__(
        self,
        batch_solver: BatchSolver,
        transfer: AssetTransfer,
        pool_swap: PoolSwap,
        pair: UniswapV2Pair,
        settlement_address: str,
    ) -> None:
        self.batch_solver = batch_solver
        self.transfer = transfer
        self.pool_swap = pool_swap
        self.pair = pair
        self.settlement_address = normalize_address(settlement_address)
        self.pair_address = normalize_address(pair.address)

    def settle(
        self,
        encoded_a: bytes,
        encoded_b: bytes,
        now: int | None = None,
    ) -> BatchSettlementEvent:
        """Settle one batch: every admitted order fully executed, or nothing.

        Raises:
            MalformedEncoding, InvalidSignature: From decoding
            MismatchedTokenPairing, OrderNotYetValid, OrderExpired, Unsorted:
                From validation, or if the pair does not trade side A's token
            NoSolutionFound: If no order clears, or the pair cannot absorb
                the residual at its quote
            TransferFailed: If a balance falls short or a move is refused;
                moves already made are reversed first
        """
        side_a, side_b = self.batch_solver.decode_sides(encoded_a, encoded_b)
        self.batch_solver.validate(side_a, side_b, now)

        tokens = ensure_token_pairing(side_a, side_b)
        if tokens is None:
            raise NoSolutionFound("Both sides are empty")
        pool = self.pair.pool_state(tokens[0])

        solution = self.batch_solver.clearing_solver.solve(pool, side_a, side_b)
        if solution.is_empty:
            raise NoSolutionFound(
                f"No clearing price for {len(side_a)} side A and {len(side_b)} side B orders"
            )

        settlement_plan = plan(solution, self.pair)
        if settlement_plan.residual_in_a < 0 or not settlement_plan.pool_covers_residual:
            raise NoSolutionFound(
                f"Pair {self.pair.address} returns {settlement_plan.pool_quote_b} "
                f"{settlement_plan.token_b} for {settlement_plan.residual_in_a} "
                f"{settlement_plan.token_a}, orders draw {settlement_plan.residual_out_b}"
            )
        self._check_balances(settlement_plan)

        journal: list[_Move] = []
        try:
            self._apply(settlement_plan, journal)
        except TransferFailed:
            logger.warning("settlement_unwinding", moves=len(journal))
            self._unwind(journal)
            raise

        event = BatchSettlementEvent(
            sell_token_a=settlement_plan.token_a,
            sell_token_b=settlement_plan.token_b,
            clearing_price_denominator=solution.clearing_price.denominator,
            clearing_price_numerator=solution.clearing_price.numerator,
        )
        logger.info(
            "batch_settled",
            sell_token_a=event.sell_token_a,
            sell_token_b=event.sell_token_b,
            price=str(solution.clearing_price),
            admitted=solution.order_count,
            residual_in_a=settlement_plan.residual_in_a,
            residual_out_b=settlement_plan.residual_out_b,
            pool_quote_b=settlement_plan.pool_quote_b,
        )
        return event

    def _check_balances(self, settlement_plan: SettlementPlan) -> None:
        """Raise TransferFailed if an owner or the pair cannot fund its part."""
        required: dict[tuple[str, str], int] = defaultdict(int)
        for payout in settlement_plan.payouts_a + settlement_plan.payouts_b:
            required[(payout.order.sell_token, payout.order.owner)] += payout.amount_in
        if settlement_plan.residual_in_a > 0:
            required[(settlement_plan.token_b, self.pair_address)] += settlement_plan.pool_quote_b

        for (token, owner), amount in required.items():
            balance = self.transfer.balance_of(token, owner)
            if balance < amount:
                raise TransferFailed(
                    f"{owner} holds {balance} {token}, settlement needs {amount}"
                )

    def _apply(self, settlement_plan: SettlementPlan, journal: list[_Move]) -> None:
        payouts = settlement_plan.payouts_a + settlement_plan.payouts_b
        for payout in payouts:
            order = payout.order
            self._move(
                _Move(order.sell_token, order.owner, self.settlement_address, payout.amount_in),
                journal,
            )

        if settlement_plan.residual_in_a > 0:
            self._move(
                _Move(
                    settlement_plan.token_a,
                    self.settlement_address,
                    self.pair_address,
                    settlement_plan.residual_in_a,
                ),
                journal,
            )
            amount_out = settlement_plan.pool_quote_b
            if not self.pool_swap.swap(
                self.pair, settlement_plan.token_b, amount_out, self.settlement_address
            ):
                raise TransferFailed(
                    f"Swap of {settlement_plan.residual_in_a} {settlement_plan.token_a} "
                    f"on {self.pair.address} failed"
                )
            journal.append(
                _Move(
                    settlement_plan.token_b, self.pair_address, self.settlement_address, amount_out
                )
            )

        for payout in payouts:
            order = payout.order
            self._move(
                _Move(order.buy_token, self.settlement_address, order.owner, payout.amount_out),
                journal,
            )

    def _execute(self, move: _Move) -> bool:
        if move.sender == self.settlement_address:
            return self.transfer.transfer(move.token, move.recipient, move.amount)
        return self.transfer.transfer_from(move.token, move.sender, move.recipient, move.amount)

    def _move(self, move: _Move, journal: list[_Move]) -> None:
        if not self._execute(move):
            raise TransferFailed(
                f"Transfer of {move.amount} {move.token} from {move.sender} "
                f"to {move.recipient} failed"
            )
        journal.append(move)

    def _unwind(self, journal: list[_Move]) -> None:
        """Reverse completed moves, newest first."""
        while journal:
            move = journal.pop().reversed()
            if not self._execute(move):
                raise TransferFailed(
                    f"Reversal of {move.amount} {move.token} to {move.recipient} failed, "
                    f"{len(journal)} moves left in place"
                )
