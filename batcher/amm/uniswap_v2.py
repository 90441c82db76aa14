"""UniswapV2 pair snapshots.

UniswapV2 uses the constant product formula: x * y = k
With a 0.3% fee on input amounts.

The batcher only reads the pair: it orients the reserves to the two sides of
a batch and quotes the residual trade that settlement hands to the pool.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from batcher.errors import MismatchedTokenPairing
from batcher.models.pool import PoolState
from batcher.models.types import normalize_address
from batcher.safe_int import U

logger = structlog.get_logger()


@dataclass
class UniswapV2Pair:
    """Represents a UniswapV2 liquidity pair."""

    address: str
    token0: str
    token1: str
    reserve0: int
    reserve1: int
    # Fee in basis points (30 = 0.3%)
    fee_bps: int = 30

    @property
    def fee_multiplier(self) -> int:
        """Fee multiplier for AMM math (10000 - fee_bps).

        For 30 bps (0.3%), this returns 9970.
        """
        return 10000 - self.fee_bps

    def get_reserves(self, token_in: str) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out).

        Raises:
            MismatchedTokenPairing: If token_in is not one of the pair's tokens
        """
        token_in_norm = normalize_address(token_in)
        if token_in_norm == normalize_address(self.token0):
            return self.reserve0, self.reserve1
        elif token_in_norm == normalize_address(self.token1):
            return self.reserve1, self.reserve0
        else:
            raise MismatchedTokenPairing(f"Token {token_in} not in pair {self.address}")

    def pool_state(self, sell_token_a: str) -> PoolState:
        """Snapshot the reserves oriented to a batch.

        Args:
            sell_token_a: The token side A sells

        Returns:
            PoolState whose reserve_a is the pair balance of sell_token_a
        """
        reserve_a, reserve_b = self.get_reserves(sell_token_a)
        return PoolState(reserve_a=reserve_a, reserve_b=reserve_b)


class UniswapV2:
    """UniswapV2 AMM math.

    Formula: amount_out = (amount_in * 997 * reserve_out) / (reserve_in * 1000 + amount_in * 997)

    The 997/1000 factor accounts for the 0.3% fee.
    """

    def get_amount_out(
        self,
        amount_in: int,
        reserve_in: int,
        reserve_out: int,
        fee_multiplier: int = 9970,
    ) -> int:
        """Calculate output amount using constant product formula.

        Formula: amount_out = (in * fee * res_out) / (res_in * 10000 + in * fee)

        Args:
            amount_in: Input token amount
            reserve_in: Reserve of input token in pool
            reserve_out: Reserve of output token in pool
            fee_multiplier: Fee multiplier (default 9970 for 0.3% fee)

        Returns:
            Output token amount
        """
        if amount_in <= 0:
            return 0
        if reserve_in <= 0 or reserve_out <= 0:
            return 0

        amount_in_with_fee = U(amount_in) * U(fee_multiplier)
        numerator = amount_in_with_fee * U(reserve_out)
        denominator = U(reserve_in) * U(10000) + amount_in_with_fee

        return (numerator // denominator).value

    def quote(self, pair: UniswapV2Pair, token_in: str, amount_in: int) -> int:
        """Output of selling amount_in of token_in into the pair."""
        reserve_in, reserve_out = pair.get_reserves(token_in)
        amount_out = self.get_amount_out(amount_in, reserve_in, reserve_out, pair.fee_multiplier)
        logger.debug(
            "uniswap_v2_quote",
            pair=pair.address,
            token_in=token_in,
            amount_in=amount_in,
            amount_out=amount_out,
        )
        return amount_out


# Singleton instance
uniswap_v2 = UniswapV2()
