#!/usr/bin/env python3
"""Clear a batch from a JSON file and print the solution.

Usage:
    python scripts/clear_batch.py batch.json [--now TIMESTAMP] [--verbose]

The file holds the same body the API accepts on POST /solve:
    {"pool": {"reserveA": "...", "reserveB": "..."}, "sideA": "0x...", "sideB": "0x..."}

Exit codes:
    0 - Batch cleared (including "no solution")
    1 - Batch rejected (bad encoding, signature, window, pairing or ordering)
"""

import argparse
import logging
import sys
from pathlib import Path

import structlog
from pydantic import ValidationError

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from batcher.config import BatcherConfig  # noqa: E402
from batcher.errors import BatcherError  # noqa: E402
from batcher.models.requests import SolveRequest  # noqa: E402
from batcher.models.solution import SolutionResponse  # noqa: E402
from batcher.solver import BatchSolver  # noqa: E402

logger = structlog.get_logger()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for clearing one batch file."""
    parser = argparse.ArgumentParser(
        description="Clear a batch of signed orders against a constant-product pool",
    )
    parser.add_argument("batch", type=Path, help="JSON file with pool, sideA and sideB")
    parser.add_argument(
        "--now",
        type=int,
        default=None,
        help="Unix timestamp for validity windows (default: file value, then current time)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )

    if not args.batch.exists():
        logger.error("batch_file_not_found", path=str(args.batch))
        return 1

    try:
        request = SolveRequest.model_validate_json(args.batch.read_text())
    except ValidationError as err:
        logger.error("batch_file_invalid", path=str(args.batch), errors=err.error_count())
        print(err, file=sys.stderr)
        return 1

    config = BatcherConfig.from_env()
    solver = BatchSolver(domain_separator=config.domain_separator)
    now = args.now if args.now is not None else request.now

    try:
        solution = solver.solve_encoded(
            request.pool.to_pool_state(), request.encoded_a, request.encoded_b, now
        )
    except BatcherError as err:
        logger.error("batch_rejected", error=type(err).__name__, message=str(err))
        return 1

    response = SolutionResponse.from_solution(solution)
    print(response.model_dump_json(by_alias=True, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
