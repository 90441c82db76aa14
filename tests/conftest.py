"""Pytest configuration and fixtures."""

from dataclasses import dataclass, field

import pytest

from batcher.amm.uniswap_v2 import UniswapV2Pair
from batcher.clearing import ClearingSolver
from batcher.models.pool import PoolState
from batcher.solver import BatchSolver
from tests.helpers.constants import (
    NOW,
    PAIR_ADDRESS,
    POOL_RESERVE,
    SETTLEMENT_ADDRESS,
    TOKEN_A,
    TOKEN_B,
)

# =============================================================================
# Mock classes for dependency injection
# =============================================================================


@dataclass
class MockLedger:
    """In-memory AssetTransfer keyed by (token, account).

    Every account except the settlement account starts with initial_balance
    of every token.

    Usage:
        # Owners and the pair can fund anything
        ledger = MockLedger()

        # Only explicitly funded accounts hold anything
        ledger = MockLedger(initial_balance=0, balances={(TOKEN_A, owner): 10**18})

        # Every transfer fails
        ledger = MockLedger(fail_all=True)

        # Only the third call fails
        ledger = MockLedger(fail_on=2)
    """

    holder: str = SETTLEMENT_ADDRESS
    initial_balance: int = 10**30
    balances: dict[tuple[str, str], int] = field(default_factory=dict)
    fail_all: bool = False
    fail_on: int | None = None
    # Track calls for assertions
    calls: int = 0
    transfers: list[tuple[str, str, str, int]] = field(default_factory=list)

    def balance_of(self, token: str, owner: str) -> int:
        default = 0 if owner == self.holder else self.initial_balance
        return self.balances.get((token, owner), default)

    def transfer_from(self, token: str, owner: str, recipient: str, amount: int) -> bool:
        call = self.calls
        self.calls += 1
        if self.fail_all or call == self.fail_on:
            return False
        balance = self.balance_of(token, owner)
        if balance < amount:
            return False
        self.balances[(token, owner)] = balance - amount
        self.balances[(token, recipient)] = self.balance_of(token, recipient) + amount
        self.transfers.append((token, owner, recipient, amount))
        return True

    def transfer(self, token: str, recipient: str, amount: int) -> bool:
        return self.transfer_from(token, self.holder, recipient, amount)

    def delta(self, token: str, account: str) -> int:
        """Change of account's token balance since the ledger was created."""
        default = 0 if account == self.holder else self.initial_balance
        return self.balance_of(token, account) - default


@dataclass
class MockPoolSwap:
    """PoolSwap paying out of the pair's account on a MockLedger."""

    ledger: MockLedger
    fail: bool = False
    # Track calls for assertions
    swaps: list[tuple[str, str, int, str]] = field(default_factory=list)

    def swap(self, pair: UniswapV2Pair, token_out: str, amount_out: int, recipient: str) -> bool:
        if self.fail:
            return False
        if not self.ledger.transfer_from(token_out, pair.address, recipient, amount_out):
            return False
        self.swaps.append((pair.address, token_out, amount_out, recipient))
        return True


class FixedClock:
    """Clock returning a settable Unix time."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


# =============================================================================
# Pytest fixtures
# =============================================================================


@pytest.fixture
def pool() -> PoolState:
    """The 10/10 ether reference pool."""
    return PoolState(reserve_a=POOL_RESERVE, reserve_b=POOL_RESERVE)


@pytest.fixture
def pair() -> UniswapV2Pair:
    """A TOKEN_A/TOKEN_B pair holding the reference reserves."""
    return UniswapV2Pair(
        address=PAIR_ADDRESS,
        token0=TOKEN_A,
        token1=TOKEN_B,
        reserve0=POOL_RESERVE,
        reserve1=POOL_RESERVE,
    )


@pytest.fixture
def clearing_solver() -> ClearingSolver:
    return ClearingSolver()


@pytest.fixture
def fixed_clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def batch_solver(fixed_clock: FixedClock) -> BatchSolver:
    """A BatchSolver on the default domain with a fixed clock."""
    return BatchSolver(clock=fixed_clock)


@pytest.fixture
def ledger() -> MockLedger:
    return MockLedger()


@pytest.fixture
def pool_swap(ledger: MockLedger) -> MockPoolSwap:
    return MockPoolSwap(ledger)
