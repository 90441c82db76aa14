"""Pre-AMM batcher - uniform-price batch clearing against a constant-product pool."""

__version__ = "0.1.0"

from batcher.clearing import ClearingSolver  # noqa: E402
from batcher.solver import BatchSolver, get_default_solver  # noqa: E402

__all__ = ["BatchSolver", "ClearingSolver", "get_default_solver", "__version__"]
