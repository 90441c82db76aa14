"""Models for batcher data structures."""

from batcher.models.order import Order, Signature, SignedOrder
from batcher.models.pool import PoolState
from batcher.models.requests import DecodeRequest, PoolReserves, SolveRequest
from batcher.models.solution import PriceResponse, Solution, SolutionResponse
from batcher.models.types import Address, Bytes, Uint8, Uint32, Uint256

__all__ = [
    # Types
    "Address",
    "Bytes",
    "Uint8",
    "Uint32",
    "Uint256",
    # Orders
    "Order",
    "Signature",
    "SignedOrder",
    # Pool
    "PoolState",
    # Requests
    "PoolReserves",
    "SolveRequest",
    "DecodeRequest",
    # Solutions
    "Solution",
    "SolutionResponse",
    "PriceResponse",
]
