"""Tests for entropy, symmetric keys and EC key material."""

import os

import pytest

from constants import CURVE_ORDERS
from errors import DecodeError, EntropySourceFailure, InvalidKeySize
from keys import (
    KeyPair,
    PrivateKey,
    PublicKey,
    draw,
    format_symmetric_key,
    generate_key_pair,
    generate_nonce,
    generate_symmetric_key,
    parse_symmetric_key,
)
from keycodec import decode_private, encode_private


# =============================================================================
# Entropy
# =============================================================================


class TestDraw:
    def test_uses_injected_source(self, counting_random):
        assert draw(4, counting_random) == b"\x00\x01\x02\x03"
        assert draw(2, counting_random) == b"\x04\x05"

    def test_default_source_returns_requested_length(self):
        assert len(draw(32)) == 32

    def test_raising_source(self):
        def broken(n):
            raise OSError("getrandom failed")

        with pytest.raises(EntropySourceFailure, match="getrandom failed"):
            draw(16, broken)

    def test_short_source(self):
        with pytest.raises(EntropySourceFailure, match="expected 16"):
            draw(16, lambda n: b"\x00" * (n - 1))

    def test_non_bytes_source(self):
        with pytest.raises(EntropySourceFailure):
            draw(16, lambda n: None)


# =============================================================================
# Symmetric keys
# =============================================================================


class TestSymmetricKeys:
    @pytest.mark.parametrize("size", [16, 24, 32])
    def test_generate(self, size):
        assert len(generate_symmetric_key(size)) == size

    def test_generate_rejects_unsupported_size(self):
        with pytest.raises(InvalidKeySize):
            generate_symmetric_key(20)

    def test_generate_nonce(self, counting_random):
        assert generate_nonce(random_source=counting_random) == bytes(range(12))

    def test_hex_round_trip(self):
        key = generate_symmetric_key(16)

        assert parse_symmetric_key(format_symmetric_key(key) + "\n") == key

    def test_parse_rejects_bad_hex(self):
        with pytest.raises(DecodeError):
            parse_symmetric_key("not-hex")

    def test_parse_rejects_wrong_length(self):
        with pytest.raises(InvalidKeySize):
            parse_symmetric_key("00" * 20)


# =============================================================================
# EC keys
# =============================================================================


class TestKeyPairs:
    @pytest.mark.parametrize("curve", ["secp256r1", "secp384r1", "secp521r1"])
    def test_generate(self, curve):
        pair = generate_key_pair(curve)

        assert pair.private.curve == curve
        assert pair.public == pair.private.public_key()

    def test_injected_source_is_deterministic(self, random_factory):
        first = generate_key_pair(random_source=random_factory())
        second = generate_key_pair(random_source=random_factory())
        third = generate_key_pair(random_source=random_factory(start=7))

        assert first == second
        assert first != third

    @pytest.mark.parametrize("curve", ["secp256r1", "secp384r1", "secp521r1"])
    def test_injected_scalar_is_in_range(self, curve):
        pair = generate_key_pair(curve, random_source=lambda n: b"\xff" * n)

        assert pair.private.scalar > 0
        assert pair.public == pair.private.public_key()

    @pytest.mark.parametrize("curve", ["secp256r1", "secp384r1", "secp521r1"])
    def test_curve_orders_have_curve_size(self, curve):
        bits = {"secp256r1": 256, "secp384r1": 384, "secp521r1": 521}[curve]

        assert CURVE_ORDERS[curve].bit_length() == bits

    @pytest.mark.parametrize("curve", ["secp256r1", "secp384r1", "secp521r1"])
    def test_random_scalars_are_valid_keys(self, curve):
        for _ in range(20):
            pair = generate_key_pair(curve, random_source=os.urandom)

            assert 0 < pair.private.scalar < CURVE_ORDERS[curve]
            assert decode_private(encode_private(pair.private)) == pair.private

    @pytest.mark.parametrize("start", [0, 7, 128, 255])
    def test_counting_scalars_are_valid_keys(self, random_factory, start):
        pair = generate_key_pair("secp521r1", random_source=random_factory(start=start))

        assert 0 < pair.private.scalar < CURVE_ORDERS["secp521r1"]
        assert decode_private(encode_private(pair.private)) == pair.private

    def test_entropy_failure(self):
        with pytest.raises(EntropySourceFailure):
            generate_key_pair(random_source=lambda n: b"")

    def test_unknown_curve(self):
        with pytest.raises(ValueError, match="Unsupported curve"):
            generate_key_pair("secp256k2")

    def test_structural_equality(self):
        pair = generate_key_pair()

        private = PrivateKey.from_crypto(pair.private.to_crypto())
        public = PublicKey.from_crypto(pair.public.to_crypto())

        assert private == pair.private
        assert private is not pair.private
        assert public == pair.public
        assert KeyPair.from_private(private) == pair

    def test_repr_hides_scalar(self):
        pair = generate_key_pair()

        assert str(pair.private.scalar) not in repr(pair.private)
