"""Tests for settlement planning and execution."""

from dataclasses import replace

import pytest

from batcher.errors import (
    InvalidSignature,
    MismatchedTokenPairing,
    NoSolutionFound,
    TransferFailed,
    Unsorted,
)
from batcher.math import Fraction
from batcher.models import Solution
from batcher.settlement import BatchSettlement, BatchSettlementEvent, plan
from tests.conftest import MockLedger, MockPoolSwap
from tests.helpers import (
    DEFAULT_OWNER,
    PAIR_ADDRESS,
    SETTLEMENT_ADDRESS,
    TOKEN_A,
    TOKEN_B,
    USDC,
    encode_side,
    ether,
    make_side,
)
from tests.helpers.scenarios import BASE_PRICE


@pytest.fixture
def base_solution() -> Solution:
    return Solution(
        clearing_price=Fraction(*BASE_PRICE),
        admitted_side_a=tuple(make_side([("1", "0.9")])),
        admitted_side_b=tuple(
            make_side([("0.9", "0.90111")], sell_token=TOKEN_B, buy_token=TOKEN_A)
        ),
    )


@pytest.fixture
def settlement(batch_solver, ledger, pool_swap, pair) -> BatchSettlement:
    return BatchSettlement(batch_solver, ledger, pool_swap, pair, SETTLEMENT_ADDRESS)


class TestPlan:
    """Tests for payout derivation."""

    def test_base_payouts(self, base_solution, pair):
        result = plan(base_solution, pair)

        assert result.token_a == TOKEN_A
        assert result.token_b == TOKEN_B
        (payout_a,) = result.payouts_a
        (payout_b,) = result.payouts_b
        assert payout_a.amount_in == ether("1")
        assert payout_a.amount_out == 983391284219030826
        assert payout_b.amount_in == ether("0.9")
        assert payout_b.amount_out == 915200301693484321

    def test_payouts_meet_limits(self, base_solution, pair):
        result = plan(base_solution, pair)
        for payout in result.payouts_a + result.payouts_b:
            assert payout.amount_out >= payout.order.buy_amount

    def test_residuals(self, base_solution, pair):
        result = plan(base_solution, pair)

        assert result.residual_in_a == ether("1") - 915200301693484321
        assert result.residual_in_a == 84799698306515679
        assert result.residual_out_b == 983391284219030826 - ether("0.9")
        assert result.pool_quote_b == 83836501005360979
        assert result.pool_covers_residual

    def test_totals(self, base_solution, pair):
        result = plan(base_solution, pair)
        assert result.total_sell_a == ether("1")
        assert result.total_sell_b == ether("0.9")

    def test_empty_solution_rejected(self, pair):
        with pytest.raises(NoSolutionFound):
            plan(Solution.empty(), pair)


BASE_SIDE_A = [("1", "0.9")]
BASE_SIDE_B = [("0.9", "0.90111")]


def encode_base() -> tuple[bytes, bytes]:
    return (
        encode_side(BASE_SIDE_A),
        encode_side(BASE_SIDE_B, sell_token=TOKEN_B, buy_token=TOKEN_A),
    )


def assert_untouched(ledger: MockLedger) -> None:
    for account in (DEFAULT_OWNER, PAIR_ADDRESS, SETTLEMENT_ADDRESS):
        assert ledger.delta(TOKEN_A, account) == 0
        assert ledger.delta(TOKEN_B, account) == 0


class TestBatchSettlement:
    """Tests for settling encoded batches."""

    def test_settle_base(self, settlement):
        event = settlement.settle(*encode_base())

        assert event == BatchSettlementEvent(
            sell_token_a=TOKEN_A,
            sell_token_b=TOKEN_B,
            clearing_price_denominator=BASE_PRICE[1],
            clearing_price_numerator=BASE_PRICE[0],
        )

    def test_event_fields_carry_candidate_reserves(self, settlement):
        """Denominator is the new token A reserve, numerator the new token B reserve."""
        event = settlement.settle(*encode_base())

        assert event.clearing_price_denominator == 10084092542732199005
        assert event.clearing_price_numerator == 9916608715780969175

    def test_every_order_receives_buy_amount(self, settlement, ledger):
        settlement.settle(*encode_base())

        assert (TOKEN_B, SETTLEMENT_ADDRESS, DEFAULT_OWNER, 983391284219030826) in ledger.transfers
        assert (TOKEN_A, SETTLEMENT_ADDRESS, DEFAULT_OWNER, 915200301693484321) in ledger.transfers

    def test_balances_after_settlement(self, settlement, ledger, pool_swap):
        settlement.settle(*encode_base())

        # Both base orders belong to the same owner
        assert ledger.delta(TOKEN_A, DEFAULT_OWNER) == 915200301693484321 - ether("1")
        assert ledger.delta(TOKEN_B, DEFAULT_OWNER) == 983391284219030826 - ether("0.9")
        # The pair absorbs the residual at its quote
        assert ledger.delta(TOKEN_A, PAIR_ADDRESS) == 84799698306515679
        assert ledger.delta(TOKEN_B, PAIR_ADDRESS) == -83836501005360979
        # The settlement account keeps only the quote's excess over the residual
        assert ledger.delta(TOKEN_A, SETTLEMENT_ADDRESS) == 0
        assert ledger.delta(TOKEN_B, SETTLEMENT_ADDRESS) == 83836501005360979 - 83391284219030826
        assert pool_swap.swaps == [(PAIR_ADDRESS, TOKEN_B, 83836501005360979, SETTLEMENT_ADDRESS)]

    def test_pulls_precede_payouts(self, settlement, ledger):
        settlement.settle(*encode_base())

        senders = [sender for _, sender, _, _ in ledger.transfers]
        assert senders == [
            DEFAULT_OWNER,
            DEFAULT_OWNER,
            SETTLEMENT_ADDRESS,
            PAIR_ADDRESS,
            SETTLEMENT_ADDRESS,
            SETTLEMENT_ADDRESS,
        ]

    def test_only_admitted_orders_pay(self, settlement, ledger):
        settlement.settle(
            encode_side([("10.1", "9.7"), ("5", "4.91")]),
            encode_side([("10", "9")], sell_token=TOKEN_B, buy_token=TOKEN_A),
        )
        pulled = sorted(
            amount
            for _, sender, recipient, amount in ledger.transfers
            if recipient == SETTLEMENT_ADDRESS and sender != PAIR_ADDRESS
        )
        assert pulled == [ether("10"), ether("10.1")]

    def test_no_solution(self, settlement, ledger):
        with pytest.raises(NoSolutionFound):
            settlement.settle(
                encode_side([("10", "9.7"), ("5", "4.9")]),
                encode_side(
                    [("3", "2"), ("3", "2.5"), ("3", "2.6")],
                    sell_token=TOKEN_B,
                    buy_token=TOKEN_A,
                ),
            )
        assert ledger.transfers == []

    def test_empty_batch(self, settlement):
        with pytest.raises(NoSolutionFound):
            settlement.settle(b"", b"")

    def test_pool_must_cover_residual(self, batch_solver, ledger, pool_swap, pair):
        expensive_pair = replace(pair, fee_bps=5000)
        settlement = BatchSettlement(
            batch_solver, ledger, pool_swap, expensive_pair, SETTLEMENT_ADDRESS
        )
        with pytest.raises(NoSolutionFound, match="orders draw"):
            settlement.settle(*encode_base())
        assert ledger.transfers == []

    def test_insufficient_balance_moves_nothing(self, batch_solver, pair):
        ledger = MockLedger(initial_balance=0)
        settlement = BatchSettlement(
            batch_solver, ledger, MockPoolSwap(ledger), pair, SETTLEMENT_ADDRESS
        )
        with pytest.raises(TransferFailed, match="holds 0"):
            settlement.settle(*encode_base())
        assert ledger.calls == 0

    def test_pair_balance_checked(self, batch_solver, pair):
        ledger = MockLedger(initial_balance=10**30, balances={(TOKEN_B, PAIR_ADDRESS): 1})
        settlement = BatchSettlement(
            batch_solver, ledger, MockPoolSwap(ledger), pair, SETTLEMENT_ADDRESS
        )
        with pytest.raises(TransferFailed, match=PAIR_ADDRESS):
            settlement.settle(*encode_base())
        assert ledger.calls == 0

    def test_transfer_failure(self, batch_solver, pair):
        ledger = MockLedger(fail_all=True)
        settlement = BatchSettlement(
            batch_solver, ledger, MockPoolSwap(ledger), pair, SETTLEMENT_ADDRESS
        )
        with pytest.raises(TransferFailed, match="failed"):
            settlement.settle(*encode_base())
        assert ledger.transfers == []

    def test_failed_payout_reverses_everything(self, batch_solver, pair):
        # Calls 0-1 pull, 2 funds the pair, 3 is the swap, 4-5 pay out
        ledger = MockLedger(fail_on=5)
        settlement = BatchSettlement(
            batch_solver, ledger, MockPoolSwap(ledger), pair, SETTLEMENT_ADDRESS
        )
        with pytest.raises(TransferFailed):
            settlement.settle(*encode_base())

        assert len(ledger.transfers) == 10
        assert_untouched(ledger)

    def test_failed_swap_reverses_pulls(self, batch_solver, ledger, pair):
        pool_swap = MockPoolSwap(ledger, fail=True)
        settlement = BatchSettlement(batch_solver, ledger, pool_swap, pair, SETTLEMENT_ADDRESS)
        with pytest.raises(TransferFailed, match="Swap"):
            settlement.settle(*encode_base())

        assert pool_swap.swaps == []
        assert_untouched(ledger)

    def test_failed_second_pull_returns_first(self, batch_solver, pair):
        ledger = MockLedger(fail_on=1)
        settlement = BatchSettlement(
            batch_solver, ledger, MockPoolSwap(ledger), pair, SETTLEMENT_ADDRESS
        )
        with pytest.raises(TransferFailed):
            settlement.settle(*encode_base())

        assert ledger.transfers == [
            (TOKEN_A, DEFAULT_OWNER, SETTLEMENT_ADDRESS, ether("1")),
            (TOKEN_A, SETTLEMENT_ADDRESS, DEFAULT_OWNER, ether("1")),
        ]
        assert_untouched(ledger)

    def test_unsorted_rejected(self, settlement):
        with pytest.raises(Unsorted):
            settlement.settle(encode_side([("1", "0.9"), ("1", "0.8")]), b"")

    def test_pair_must_trade_batch_tokens(self, settlement):
        with pytest.raises(MismatchedTokenPairing):
            settlement.settle(
                encode_side([("1", "0.9")], sell_token=USDC, buy_token=TOKEN_B),
                b"",
            )

    def test_tampered_record(self, settlement):
        record = bytearray(encode_side([("1", "0.9")]))
        record[10] ^= 0xFF
        with pytest.raises(InvalidSignature):
            settlement.settle(bytes(record), b"")
