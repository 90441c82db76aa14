"""Fixed-width binary codec for signed orders.

A side of a batch travels as the plain concatenation of 190-byte records:

    sellAmount(32) buyAmount(32) sellToken(20) buyToken(20) owner(20)
    nonce(1) v(1) r(32) s(32)

There is no framing, so the only structural check on a buffer is that its
length is a whole number of records. Every decoded record is authenticated by
recovering the signer of its digest and comparing it with the owner field.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog
from pydantic import ValidationError

from batcher.constants import DEFAULT_DOMAIN_SEPARATOR, ORDER_RECORD_LAYOUT, ORDER_RECORD_WIDTH
from batcher.encoding.signing import order_digest, recover_signer
from batcher.errors import InvalidSignature, MalformedEncoding
from batcher.models.order import Order, Signature, SignedOrder
from batcher.models.types import address_to_bytes, bytes_to_address

logger = structlog.get_logger()

_ADDRESS_FIELDS = frozenset({"sell_token", "buy_token", "owner"})


def encode(order: Order, signature: Signature) -> bytes:
    """Serialize an order and its signature into one fixed-width record.

    Args:
        order: Order without a validity window
        signature: Owner signature over the order digest

    Returns:
        ORDER_RECORD_WIDTH bytes

    Raises:
        MalformedEncoding: If the order carries a validity window, which the
            record layout cannot represent
    """
    if order.has_validity_window:
        raise MalformedEncoding(
            f"Order record cannot carry a validity window "
            f"(valid_from={order.valid_from}, valid_until={order.valid_until})"
        )

    values = {
        "sell_amount": order.sell_amount,
        "buy_amount": order.buy_amount,
        "sell_token": order.sell_token,
        "buy_token": order.buy_token,
        "owner": order.owner,
        "nonce": order.nonce,
        "v": signature.v,
        "r": signature.r,
        "s": signature.s,
    }

    chunks = []
    for name, width in ORDER_RECORD_LAYOUT:
        if name in _ADDRESS_FIELDS:
            chunks.append(address_to_bytes(values[name]))
        else:
            chunks.append(values[name].to_bytes(width, "big"))
    return b"".join(chunks)


def encode_all(signed_orders: Iterable[SignedOrder]) -> bytes:
    """Concatenate the records of a whole side."""
    return b"".join(encode(so.order, so.signature) for so in signed_orders)


def _parse_record(record: bytes, index: int) -> SignedOrder:
    fields: dict[str, int | str] = {}
    offset = 0
    for name, width in ORDER_RECORD_LAYOUT:
        raw = record[offset : offset + width]
        offset += width
        if name in _ADDRESS_FIELDS:
            fields[name] = bytes_to_address(raw)
        else:
            fields[name] = int.from_bytes(raw, "big")

    try:
        order = Order(
            sell_amount=fields["sell_amount"],
            buy_amount=fields["buy_amount"],
            sell_token=fields["sell_token"],
            buy_token=fields["buy_token"],
            owner=fields["owner"],
            nonce=fields["nonce"],
        )
        signature = Signature(v=fields["v"], r=fields["r"], s=fields["s"])
    except ValidationError as err:
        raise MalformedEncoding(f"Record {index} is not a valid order: {err}") from err
    return SignedOrder(order=order, signature=signature)


def decode_signed(
    buffer: bytes,
    domain_separator: bytes = DEFAULT_DOMAIN_SEPARATOR,
) -> list[SignedOrder]:
    """Split a buffer into signed orders and authenticate each one.

    Args:
        buffer: Concatenated order records
        domain_separator: 32-byte signing domain

    Returns:
        Signed orders in buffer order

    Raises:
        MalformedEncoding: If the length is not a multiple of the record width
            or a record violates order invariants
        InvalidSignature: If a recovered signer differs from the record owner
    """
    if len(buffer) % ORDER_RECORD_WIDTH != 0:
        raise MalformedEncoding(
            f"Buffer length {len(buffer)} is not a multiple of {ORDER_RECORD_WIDTH}"
        )

    signed_orders: list[SignedOrder] = []
    for index in range(len(buffer) // ORDER_RECORD_WIDTH):
        start = index * ORDER_RECORD_WIDTH
        signed = _parse_record(buffer[start : start + ORDER_RECORD_WIDTH], index)

        digest = order_digest(signed.order, domain_separator)
        signer = recover_signer(digest, signed.signature)
        if signer != signed.order.owner:
            raise InvalidSignature(
                f"Record {index}: signer {signer} does not match owner {signed.order.owner}"
            )
        signed_orders.append(signed)

    logger.debug("orders_decoded", count=len(signed_orders), size=len(buffer))
    return signed_orders


def decode_all(
    buffer: bytes,
    domain_separator: bytes = DEFAULT_DOMAIN_SEPARATOR,
) -> list[Order]:
    """Decode and authenticate a side, returning the bare orders."""
    return [signed.order for signed in decode_signed(buffer, domain_separator)]
