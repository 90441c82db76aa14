"""Clearing results and their API representation.

`Solution` is the value returned by the clearing solver. It is created once
per solve and never changed afterwards; settlement re-derives the same value
from the same inputs. `SolutionResponse` is its JSON form.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from batcher.math.fraction import Fraction
from batcher.models.order import Order
from batcher.models.types import Uint256


@dataclass(frozen=True)
class Solution:
    """A uniform clearing price and the orders admitted on each side.

    Attributes:
        clearing_price: Side-B asset paid per unit of side-A asset
        admitted_side_a: Side-A orders that fill completely at the price
        admitted_side_b: Side-B orders that fill completely at the price
    """

    clearing_price: Fraction
    admitted_side_a: tuple[Order, ...] = field(default_factory=tuple)
    admitted_side_b: tuple[Order, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> Solution:
        """The "no solution" sentinel: 0/0 price, nothing admitted."""
        return cls(clearing_price=Fraction.zero())

    @property
    def is_empty(self) -> bool:
        return (
            self.clearing_price.is_zero
            and not self.admitted_side_a
            and not self.admitted_side_b
        )

    @property
    def order_count(self) -> int:
        return len(self.admitted_side_a) + len(self.admitted_side_b)


class PriceResponse(BaseModel):
    """A fraction as decimal strings."""

    numerator: Uint256
    denominator: Uint256


class SolutionResponse(BaseModel):
    """The response from the /solve endpoint."""

    clearing_price: PriceResponse = Field(alias="clearingPrice")
    admitted_side_a: list[Order] = Field(default_factory=list, alias="admittedSideA")
    admitted_side_b: list[Order] = Field(default_factory=list, alias="admittedSideB")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_solution(cls, solution: Solution) -> SolutionResponse:
        return cls(
            clearing_price=PriceResponse(
                numerator=solution.clearing_price.numerator,
                denominator=solution.clearing_price.denominator,
            ),
            admitted_side_a=list(solution.admitted_side_a),
            admitted_side_b=list(solution.admitted_side_b),
        )

    @classmethod
    def empty(cls) -> SolutionResponse:
        """Create the empty response (no solution)."""
        return cls.from_solution(Solution.empty())
