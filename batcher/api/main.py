"""FastAPI application for the batcher.

Note: Rate limiting is intentionally not implemented at the application level.
It should be handled at the infrastructure layer (reverse proxy / load balancer).
"""

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from batcher import __version__
from batcher.api.endpoints import router
from batcher.config import BatcherConfig

# Configuration from BATCHER_* environment variables with defaults
config = BatcherConfig.from_env()

app = FastAPI(
    title="Pre-AMM Batcher",
    description="Uniform-price batch clearing of signed orders against a constant-product pool",
    version=__version__,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than the configured maximum."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > config.max_request_size:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Run the batcher API server.

    Configuration via environment variables:
    - BATCHER_HOST: Host to bind to (default: 0.0.0.0)
    - BATCHER_PORT: Port to bind to (default: 8000)
    - BATCHER_DEBUG: Enable debug/reload mode (default: false)
    - BATCHER_DOMAIN_SEPARATOR: Signing domain (default: the deployment domain)
    - BATCHER_MAX_REQUEST_SIZE: Largest request body in bytes (default: 10 MB)
    """
    uvicorn.run(
        "batcher.api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
    )


if __name__ == "__main__":
    run()
