"""Batch solver: decoding, validation and clearing in one place.

BatchSolver is the entry point used by the API, the CLI and settlement. It
owns the signing domain and the clock, and delegates price discovery to the
pure ClearingSolver.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence

import structlog

from batcher.clearing import ClearingSolver
from batcher.config import DEFAULT_CONFIG, BatcherConfig
from batcher.encoding.codec import decode_all
from batcher.models.order import Order
from batcher.models.pool import PoolState
from batcher.models.solution import Solution
from batcher.validation import validate_batch

logger = structlog.get_logger()


class BatchSolver:
    """Validates a batch and clears it against a pool snapshot.

    Args:
        clearing_solver: Price discovery. If None, uses ClearingSolver().
        domain_separator: Signing domain orders are authenticated against
        clock: Returns the current Unix time; injected for tests
    """

    def __init__(
        self,
        clearing_solver: ClearingSolver | None = None,
        domain_separator: bytes = DEFAULT_CONFIG.domain_separator,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.clearing_solver = clearing_solver if clearing_solver is not None else ClearingSolver()
        self.domain_separator = domain_separator
        self.clock = clock

    def now(self) -> int:
        return int(self.clock())

    def decode_sides(self, encoded_a: bytes, encoded_b: bytes) -> tuple[list[Order], list[Order]]:
        """Decode and authenticate both sides of a batch.

        Raises:
            MalformedEncoding: If a buffer is not a whole number of records
            InvalidSignature: If a record is not signed by its owner
        """
        side_a = decode_all(encoded_a, self.domain_separator)
        side_b = decode_all(encoded_b, self.domain_separator)
        return side_a, side_b

    def validate(
        self,
        side_a: Sequence[Order],
        side_b: Sequence[Order],
        now: int | None = None,
    ) -> None:
        """Check token pairing, validity windows and limit-price ordering.

        Raises:
            MismatchedTokenPairing, OrderNotYetValid, OrderExpired, Unsorted
        """
        validate_batch(side_a, side_b, self.now() if now is None else now)

    def solve(
        self,
        pool: PoolState,
        side_a: Sequence[Order],
        side_b: Sequence[Order],
        now: int | None = None,
    ) -> Solution:
        """Validate the batch, then find its clearing price.

        Args:
            pool: Reserves oriented so reserve_a belongs to side A's sell token
            side_a: Orders selling token A, ascending by limit price
            side_b: Orders selling token B, ascending by limit price
            now: Timestamp for validity windows; the clock if None

        Returns:
            Solution, or Solution.empty() if nothing clears
        """
        self.validate(side_a, side_b, now)
        logger.debug(
            "solving_batch",
            side_a=len(side_a),
            side_b=len(side_b),
            reserve_a=pool.reserve_a,
            reserve_b=pool.reserve_b,
        )
        return self.clearing_solver.solve(pool, side_a, side_b)

    def solve_encoded(
        self,
        pool: PoolState,
        encoded_a: bytes,
        encoded_b: bytes,
        now: int | None = None,
    ) -> Solution:
        """Decode both sides and solve them."""
        side_a, side_b = self.decode_sides(encoded_a, encoded_b)
        return self.solve(pool, side_a, side_b, now)


def _create_default_solver() -> BatchSolver:
    """Create the default solver from BATCHER_* environment variables."""
    config = BatcherConfig.from_env()
    logger.info("batch_solver_configured", domain_separator="0x" + config.domain_separator.hex())
    return BatchSolver(domain_separator=config.domain_separator)


solver = _create_default_solver()


def get_default_solver() -> BatchSolver:
    """The module-level solver instance."""
    return solver
