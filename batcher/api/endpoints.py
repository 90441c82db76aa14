"""API endpoints for the batcher."""

import asyncio

import structlog
from fastapi import APIRouter, Depends, HTTPException

from batcher.encoding.codec import decode_all
from batcher.errors import BatcherError
from batcher.models.order import Order
from batcher.models.requests import DecodeRequest, SolveRequest
from batcher.models.solution import SolutionResponse
from batcher.models.types import hex_to_bytes
from batcher.solver import BatchSolver, get_default_solver

logger = structlog.get_logger()

router = APIRouter()


def get_solver() -> BatchSolver:
    """Dependency provider for the solver instance.

    Override this in tests to inject a mock solver:
        app.dependency_overrides[get_solver] = lambda: mock_solver

    Returns:
        The solver instance to use for clearing batches.
    """
    return get_default_solver()


def _error_response(err: BatcherError) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={"error": type(err).__name__, "message": str(err)},
    )


@router.post("/solve")
async def solve(
    request: SolveRequest,
    solver_instance: BatchSolver = Depends(get_solver),
) -> SolutionResponse:
    """Clear one batch.

    Args:
        request: Pool reserves and both encoded sides
        solver_instance: Injected solver (via FastAPI Depends)

    Returns:
        SolutionResponse with the clearing price and admitted orders.

    Error Handling:
        - Invalid request schema: Returns 422 Validation Error (Pydantic)
        - Batcher error (bad encoding, signature, window, pairing, order): 400
        - Any other solver exception: Logs error, returns the empty solution
    """
    logger.info(
        "received_batch",
        records=request.record_count,
        reserve_a=request.pool.reserve_a,
        reserve_b=request.pool.reserve_b,
    )

    try:
        loop = asyncio.get_running_loop()
        solution = await loop.run_in_executor(
            None,
            solver_instance.solve_encoded,
            request.pool.to_pool_state(),
            request.encoded_a,
            request.encoded_b,
            request.now,
        )
    except BatcherError as err:
        logger.warning("batch_rejected", error=type(err).__name__, message=str(err))
        raise _error_response(err) from err
    except Exception:
        # Log error with full traceback for debugging
        logger.exception(
            "solver_error",
            records=request.record_count,
            message="Solver raised an exception, returning empty solution",
        )
        return SolutionResponse.empty()

    logger.info(
        "returning_solution",
        price=str(solution.clearing_price),
        admitted=solution.order_count,
    )
    return SolutionResponse.from_solution(solution)


@router.post("/decode")
async def decode(
    request: DecodeRequest,
    solver_instance: BatchSolver = Depends(get_solver),
) -> list[Order]:
    """Decode and authenticate one encoded side."""
    try:
        orders = decode_all(hex_to_bytes(request.orders), solver_instance.domain_separator)
    except BatcherError as err:
        logger.warning("decode_rejected", error=type(err).__name__, message=str(err))
        raise _error_response(err) from err

    logger.info("returning_orders", count=len(orders))
    return orders
