"""Runtime configuration for the batcher."""

from __future__ import annotations

import os
from dataclasses import dataclass

from batcher.constants import DEFAULT_DOMAIN_SEPARATOR


def _env_flag(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class BatcherConfig:
    """Centralized configuration for the service and the CLI.

    Attributes:
        host: Host the API binds to (default: 0.0.0.0)
        port: Port the API binds to (default: 8000)
        debug: Enable uvicorn reload mode
        domain_separator: 32-byte signing domain orders are verified against
        max_request_size: Largest accepted request body in bytes (default: 10 MB)
    """

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    domain_separator: bytes = DEFAULT_DOMAIN_SEPARATOR
    max_request_size: int = 10 * 1024 * 1024

    def __post_init__(self) -> None:
        if len(self.domain_separator) != 32:
            raise ValueError(
                f"Domain separator must be 32 bytes, got {len(self.domain_separator)}"
            )

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> BatcherConfig:
        """Build a configuration from BATCHER_* environment variables.

        Variables that are unset keep their defaults:
        - BATCHER_HOST
        - BATCHER_PORT
        - BATCHER_DEBUG (true/1/yes)
        - BATCHER_DOMAIN_SEPARATOR (0x-prefixed hex)
        - BATCHER_MAX_REQUEST_SIZE (bytes)
        """
        env = os.environ if environ is None else environ
        default = DEFAULT_CONFIG

        separator = env.get("BATCHER_DOMAIN_SEPARATOR")
        return cls(
            host=env.get("BATCHER_HOST", default.host),
            port=int(env.get("BATCHER_PORT", str(default.port))),
            debug=_env_flag(env.get("BATCHER_DEBUG", "false")),
            domain_separator=(
                bytes.fromhex(separator.removeprefix("0x"))
                if separator
                else default.domain_separator
            ),
            max_request_size=int(
                env.get("BATCHER_MAX_REQUEST_SIZE", str(default.max_request_size))
            ),
        )


# Default configuration instance
DEFAULT_CONFIG = BatcherConfig()
