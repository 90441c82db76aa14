"""Tests for order digests and signatures."""

import pytest

from batcher.constants import DEFAULT_DOMAIN_SEPARATOR
from batcher.encoding import address_of, order_digest, recover_signer, sign_order
from batcher.errors import InvalidSignature
from batcher.models.order import Signature
from tests.helpers import PRIVATE_KEYS, make_order


@pytest.fixture
def key() -> bytes:
    return PRIVATE_KEYS[0]


@pytest.fixture
def order(key):
    return make_order(owner=address_of(key))


class TestOrderDigest:
    """Tests for the order digest."""

    def test_is_32_bytes(self, order):
        assert len(order_digest(order)) == 32

    def test_deterministic(self, order):
        assert order_digest(order) == order_digest(order.model_copy())

    def test_covers_every_field(self, order):
        digest = order_digest(order)
        for update in (
            {"sell_amount": order.sell_amount + 1},
            {"buy_amount": order.buy_amount + 1},
            {"nonce": order.nonce + 1},
            {"valid_from": 1},
            {"valid_until": 1},
        ):
            assert order_digest(order.model_copy(update=update)) != digest

    def test_depends_on_domain(self, order):
        other_domain = b"\x01" * 32
        assert order_digest(order, other_domain) != order_digest(order)

    def test_default_domain(self, order):
        assert order_digest(order) == order_digest(order, DEFAULT_DOMAIN_SEPARATOR)

    def test_bad_domain_length(self, order):
        with pytest.raises(ValueError, match="32 bytes"):
            order_digest(order, b"\x00" * 31)


class TestSignAndRecover:
    """Tests for signing and signer recovery."""

    def test_recovers_owner(self, key, order):
        signature = sign_order(order, key)
        assert signature.v in (27, 28)
        assert recover_signer(order_digest(order), signature) == order.owner

    def test_hex_key(self, key, order):
        assert sign_order(order, "0x" + key.hex()) == sign_order(order, key)

    def test_address_of_is_lowercase(self, key):
        address = address_of(key)
        assert address == address.lower()
        assert len(address) == 42

    def test_other_digest_recovers_other_address(self, key, order):
        signature = sign_order(order, key)
        other = order.model_copy(update={"nonce": 9})
        assert recover_signer(order_digest(other), signature) != order.owner

    def test_bad_v_rejected(self, key, order):
        signature = sign_order(order, key)
        forged = Signature(v=29, r=signature.r, s=signature.s)
        with pytest.raises(InvalidSignature, match="recovery id"):
            recover_signer(order_digest(order), forged)

    def test_out_of_range_r_rejected(self, key, order):
        signature = sign_order(order, key)
        forged = Signature(v=signature.v, r=2**256 - 1, s=signature.s)
        with pytest.raises(InvalidSignature):
            recover_signer(order_digest(order), forged)
