"""Protocol constants for the batcher.

Centralizes the signing domain and the fixed layout of encoded orders.
"""

# Domain separator reported by the deployed batcher contract
DEFAULT_DOMAIN_SEPARATOR = bytes.fromhex(
    "24a654ed47680d6a76f087ec92b3a0f0fe4c9c82c26bff3bb22dffe0f120c7f0"
)

# Encoded order record layout: (field, width in bytes), in wire order.
# Integers are big-endian; identities are raw 20-byte addresses.
ORDER_RECORD_LAYOUT: tuple[tuple[str, int], ...] = (
    ("sell_amount", 32),
    ("buy_amount", 32),
    ("sell_token", 20),
    ("buy_token", 20),
    ("owner", 20),
    ("nonce", 1),
    ("v", 1),
    ("r", 32),
    ("s", 32),
)

ORDER_RECORD_WIDTH = sum(width for _, width in ORDER_RECORD_LAYOUT)  # = 190

# ABI types hashed into the order digest, in declared field order
ORDER_DIGEST_TYPES: tuple[str, ...] = (
    "bytes32",  # domain separator
    "uint256",  # sell amount
    "uint256",  # buy amount
    "address",  # sell token
    "address",  # buy token
    "address",  # owner
    "uint32",  # valid from
    "uint32",  # valid until
    "uint8",  # nonce
)
