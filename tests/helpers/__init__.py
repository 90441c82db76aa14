"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Token addresses, keys and common amounts
- factories: Order, signed order and encoded side factory functions
- scenarios: Reference batches with their expected outcomes
"""

from tests.helpers.constants import (
    DAI,
    ETHER,
    NOW,
    PAIR_ADDRESS,
    POOL_RESERVE,
    PRIVATE_KEYS,
    SETTLEMENT_ADDRESS,
    TOKEN_A,
    TOKEN_B,
    USDC,
    WETH,
)
from tests.helpers.factories import (
    DEFAULT_OWNER,
    encode_side,
    ether,
    make_order,
    make_side,
    make_side_b_order,
    make_signed_order,
    sign_side,
)

__all__ = [
    # Constants
    "WETH",
    "DAI",
    "USDC",
    "TOKEN_A",
    "TOKEN_B",
    "PAIR_ADDRESS",
    "SETTLEMENT_ADDRESS",
    "ETHER",
    "POOL_RESERVE",
    "PRIVATE_KEYS",
    "NOW",
    # Factories
    "DEFAULT_OWNER",
    "ether",
    "make_order",
    "make_side_b_order",
    "make_side",
    "make_signed_order",
    "sign_side",
    "encode_side",
]
