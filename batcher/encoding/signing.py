"""Order digests, signing and signer recovery.

The digest is keccak256 over the ABI encoding of the domain separator and
every order field in declared order. It is a pure function of those values,
so the on-chain checker and any off-chain process compute the same 32 bytes.
"""

from __future__ import annotations

from eth_abi import encode  # type: ignore[attr-defined]
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import keccak

from batcher.constants import DEFAULT_DOMAIN_SEPARATOR, ORDER_DIGEST_TYPES
from batcher.errors import InvalidSignature
from batcher.models.order import Order, Signature

# Ethereum adds 27 to the secp256k1 recovery id
V_OFFSET = 27


def order_digest(order: Order, domain_separator: bytes = DEFAULT_DOMAIN_SEPARATOR) -> bytes:
    """Compute the 32-byte digest an order signature must cover.

    Args:
        order: The order to hash
        domain_separator: 32-byte signing domain

    Returns:
        keccak256(abi.encode(domainSeparator, sellAmount, buyAmount, sellToken,
        buyToken, owner, validFrom, validUntil, nonce))
    """
    if len(domain_separator) != 32:
        raise ValueError(f"Domain separator must be 32 bytes, got {len(domain_separator)}")

    encoded = encode(
        list(ORDER_DIGEST_TYPES),
        [
            domain_separator,
            order.sell_amount,
            order.buy_amount,
            order.sell_token,
            order.buy_token,
            order.owner,
            order.valid_from,
            order.valid_until,
            order.nonce,
        ],
    )
    return keccak(encoded)


def sign_order(
    order: Order,
    private_key: bytes | str,
    domain_separator: bytes = DEFAULT_DOMAIN_SEPARATOR,
) -> Signature:
    """Sign an order digest with a raw secp256k1 key.

    Intended for tests and tooling; production keys never reach the batcher.

    Args:
        order: The order to sign
        private_key: 32-byte key, raw or 0x-prefixed hex
        domain_separator: 32-byte signing domain

    Returns:
        Signature with v in {27, 28}
    """
    if isinstance(private_key, str):
        private_key = bytes.fromhex(private_key.removeprefix("0x"))
    signed = keys.PrivateKey(private_key).sign_msg_hash(order_digest(order, domain_separator))
    return Signature(v=signed.v + V_OFFSET, r=signed.r, s=signed.s)


def recover_signer(digest: bytes, signature: Signature) -> str:
    """Recover the lowercase address that produced a signature over digest.

    Raises:
        InvalidSignature: If the signature components are malformed or no
            public key can be recovered
    """
    if signature.v not in (V_OFFSET, V_OFFSET + 1):
        raise InvalidSignature(f"Invalid recovery id v={signature.v}")
    try:
        sig = keys.Signature(vrs=(signature.v - V_OFFSET, signature.r, signature.s))
        public_key = sig.recover_public_key_from_msg_hash(digest)
    except (BadSignature, ValidationError) as err:
        raise InvalidSignature(f"Signature recovery failed: {err}") from err
    return "0x" + public_key.to_canonical_address().hex()


def address_of(private_key: bytes | str) -> str:
    """Lowercase address controlled by a raw secp256k1 key."""
    if isinstance(private_key, str):
        private_key = bytes.fromhex(private_key.removeprefix("0x"))
    return "0x" + keys.PrivateKey(private_key).public_key.to_canonical_address().hex()
