"""Request bodies accepted by the batcher API and CLI."""

from pydantic import BaseModel, Field

from batcher.constants import ORDER_RECORD_WIDTH
from batcher.models.pool import PoolState
from batcher.models.types import Bytes, Uint32, Uint256, hex_to_bytes


class PoolReserves(BaseModel):
    """Pool reserves oriented to the sides of the batch."""

    reserve_a: Uint256 = Field(alias="reserveA")
    reserve_b: Uint256 = Field(alias="reserveB")

    model_config = {"populate_by_name": True}

    def to_pool_state(self) -> PoolState:
        return PoolState(reserve_a=self.reserve_a, reserve_b=self.reserve_b)


class SolveRequest(BaseModel):
    """A batch to clear: a pool snapshot and both encoded sides."""

    pool: PoolReserves
    side_a: Bytes = Field(alias="sideA")
    side_b: Bytes = Field(alias="sideB")
    # Unix time for validity windows; the server clock if omitted
    now: Uint32 | None = None

    model_config = {"populate_by_name": True}

    @property
    def encoded_a(self) -> bytes:
        return hex_to_bytes(self.side_a)

    @property
    def encoded_b(self) -> bytes:
        return hex_to_bytes(self.side_b)

    @property
    def record_count(self) -> int:
        """Number of whole records in both sides."""
        return (len(self.encoded_a) + len(self.encoded_b)) // ORDER_RECORD_WIDTH


class DecodeRequest(BaseModel):
    """One encoded side to decode."""

    orders: Bytes
