"""Shared type definitions for batcher models.

These annotated types are used across order, pool and solution models.
Integers are held as Python ints and serialized to JSON as decimal strings,
so uint256 values survive JavaScript clients.
"""

from typing import Annotated, Any

from pydantic import AfterValidator, BeforeValidator, Field, PlainSerializer

# Maximum uint256 value
UINT256_MAX = 2**256 - 1
UINT32_MAX = 2**32 - 1
UINT8_MAX = 2**8 - 1

ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"


def _lowercase(value: str) -> str:
    return value.lower()


def validate_uint256(value: Any) -> int:
    """Validate that a value is a valid uint256.

    Args:
        value: Value to validate (decimal string or int)

    Returns:
        The value as an int

    Raises:
        ValueError: If value is not a non-negative integer within uint256 range
    """
    if isinstance(value, bool):
        raise ValueError("Uint256 must be string or int, got bool")

    if isinstance(value, int):
        int_value = value
    elif isinstance(value, str):
        try:
            int_value = int(value, 10)
        except ValueError as err:
            raise ValueError(f"Uint256 must be a decimal integer string: '{value}'") from err
    else:
        raise ValueError(f"Uint256 must be string or int, got {type(value).__name__}")

    if int_value < 0:
        raise ValueError(f"Uint256 cannot be negative: {value}")
    if int_value > UINT256_MAX:
        raise ValueError(f"Uint256 overflow: {value} > 2^256-1")

    return int_value


# 256-bit unsigned integer (int in Python, decimal string in JSON)
Uint256 = Annotated[
    int,
    BeforeValidator(validate_uint256),
    PlainSerializer(str, return_type=str, when_used="json"),
    Field(description="256-bit unsigned integer"),
]

# Unix timestamp as stored on chain
Uint32 = Annotated[int, Field(ge=0, le=UINT32_MAX)]

# Single byte
Uint8 = Annotated[int, Field(ge=0, le=UINT8_MAX)]

# Ethereum address (40 hex chars after 0x prefix), stored lowercase
Address = Annotated[str, Field(pattern=ADDRESS_PATTERN), AfterValidator(_lowercase)]

# Whole bytes as 0x-prefixed hex
Bytes = Annotated[str, Field(pattern=r"^0x([a-fA-F0-9]{2})*$")]


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Normalize an Ethereum address to lowercase.

    Args:
        address: An Ethereum address (with or without 0x prefix)
        validate: If True, raises ValueError for invalid addresses.

    Returns:
        Lowercase address with 0x prefix

    Raises:
        ValueError: If validate=True and address is not a valid Ethereum address
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")

    return addr


def is_valid_address(address: str) -> bool:
    """Check if a string is a valid Ethereum address.

    Args:
        address: String to validate

    Returns:
        True if valid Ethereum address format
    """
    if not isinstance(address, str):
        return False
    if not address.startswith("0x"):
        return False
    if len(address) != 42:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False


def address_to_bytes(address: str) -> bytes:
    """Convert a 0x-prefixed address to its 20 raw bytes."""
    return bytes.fromhex(normalize_address(address, validate=True)[2:])


def bytes_to_address(raw: bytes) -> str:
    """Convert 20 raw bytes to a lowercase 0x-prefixed address."""
    if len(raw) != 20:
        raise ValueError(f"Address must be 20 bytes, got {len(raw)}")
    return "0x" + raw.hex()


def hex_to_bytes(value: str) -> bytes:
    """Convert 0x-prefixed hex to raw bytes."""
    return bytes.fromhex(value.removeprefix("0x"))
