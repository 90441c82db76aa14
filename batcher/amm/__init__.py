"""AMM (Automated Market Maker) pairs read by the batcher."""

from batcher.amm.uniswap_v2 import UniswapV2, UniswapV2Pair, uniswap_v2

__all__ = [
    "UniswapV2",
    "UniswapV2Pair",
    "uniswap_v2",
]
