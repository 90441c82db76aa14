"""Pydantic models for signed batch orders.

An order is created off-chain by its owner, signed once, submitted in a batch
and consumed at most once by settlement. Models are frozen: the solver prunes
lists of orders, never the orders themselves.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from batcher.math.fraction import Fraction
from batcher.models.types import Address, Uint8, Uint32, Uint256


class Order(BaseModel):
    """Trade terms, validity window and identity of a sell order.

    The owner offers exactly `sell_amount` of `sell_token` and requires at
    least `buy_amount` of `buy_token` in return (fill-or-kill).
    """

    sell_amount: Uint256 = Field(alias="sellAmount")
    buy_amount: Uint256 = Field(alias="buyAmount")
    sell_token: Address = Field(alias="sellToken")
    buy_token: Address = Field(alias="buyToken")
    owner: Address
    valid_from: Uint32 = Field(default=0, alias="validFrom")
    valid_until: Uint32 = Field(
        default=0,
        alias="validUntil",
        description="Last valid timestamp. Zero means the order never expires.",
    )
    nonce: Uint8

    model_config = {"populate_by_name": True, "frozen": True}

    @model_validator(mode="after")
    def _check_terms(self) -> Order:
        if self.sell_amount == 0:
            raise ValueError("sell_amount must be positive")
        if self.sell_token == self.buy_token:
            raise ValueError(f"sell_token and buy_token must differ: {self.sell_token}")
        return self

    @property
    def limit_price(self) -> Fraction:
        """Minimum acceptable buy_token per unit of sell_token."""
        return Fraction(numerator=self.buy_amount, denominator=self.sell_amount)

    @property
    def has_validity_window(self) -> bool:
        """True if either bound of the validity window is set."""
        return self.valid_from != 0 or self.valid_until != 0


class Signature(BaseModel):
    """Recoverable secp256k1 signature over an order digest.

    `v` uses the Ethereum convention (27 or 28) on the wire.
    """

    v: Uint8
    r: Uint256
    s: Uint256

    model_config = {"frozen": True}


class SignedOrder(BaseModel):
    """An order together with its owner's signature."""

    order: Order
    signature: Signature

    model_config = {"frozen": True}
