"""Order wire format and signatures."""

from batcher.encoding.codec import decode_all, decode_signed, encode, encode_all
from batcher.encoding.signing import address_of, order_digest, recover_signer, sign_order

__all__ = [
    "encode",
    "encode_all",
    "decode_all",
    "decode_signed",
    "order_digest",
    "sign_order",
    "recover_signer",
    "address_of",
]
