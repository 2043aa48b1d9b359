"""Tests for hashlock helpers and address casting."""

from __future__ import annotations

import hashlib

import pytest

from htlc_escrow.domain.addresses import (
    ZERO_ADDRESS,
    hex32,
    is_zero_address,
    to_address,
    to_bytes32,
)
from htlc_escrow.domain.hashlock import (
    SECRET_LENGTH,
    generate_secret,
    get_hash_function,
    make_hashlock,
    verify_secret,
)


class TestHashlock:
    """Secret checks against the hashlock."""

    def test_default_is_sha256(self) -> None:
        secret = b"s" * 32
        assert make_hashlock(secret) == hashlib.sha256(secret).digest()

    @pytest.mark.parametrize("algorithm", ["sha256", "sha3_256", "blake2b"])
    def test_all_algorithms_produce_32_bytes(self, algorithm: str) -> None:
        secret = generate_secret()
        digest = make_hashlock(secret, algorithm)
        assert len(digest) == 32
        assert verify_secret(secret, digest, algorithm)

    def test_wrong_secret_rejected(self) -> None:
        digest = make_hashlock(b"\x01" * 32)
        assert not verify_secret(b"\x02" * 32, digest)

    def test_algorithm_mismatch_rejected(self) -> None:
        secret = b"\x01" * 32
        assert not verify_secret(secret, make_hashlock(secret, "sha256"), "sha3_256")

    def test_unknown_algorithm(self) -> None:
        with pytest.raises(ValueError, match="Unknown hash algorithm"):
            get_hash_function("md5")

    def test_generate_secret(self) -> None:
        first, second = generate_secret(), generate_secret()
        assert len(first) == SECRET_LENGTH
        assert first != second


class TestAddresses:
    """Address and bytes32 normalization."""

    def test_int_is_zero_padded_lowercase_hex(self) -> None:
        assert to_address(0xABC) == "0x" + "0" * 37 + "abc"

    def test_truncates_to_160_bits(self) -> None:
        assert to_address((1 << 160) + 5) == to_address(5)

    def test_hex_string_normalized(self) -> None:
        assert to_address("0x00000000000000000000000000000000000000AB") == to_address(0xAB)

    def test_bytes(self) -> None:
        assert to_address(b"\x00" * 19 + b"\x01") == to_address(1)

    def test_rejects_negative(self) -> None:
        with pytest.raises(ValueError):
            to_address(-1)

    def test_rejects_garbage(self) -> None:
        with pytest.raises(ValueError):
            to_address("not-an-address")

    def test_zero_address(self) -> None:
        assert is_zero_address(0)
        assert to_address(0) == ZERO_ADDRESS

    def test_bytes32_left_pads(self) -> None:
        assert to_bytes32("0x01") == b"\x00" * 31 + b"\x01"
        assert to_bytes32(1) == to_bytes32("0x01")
        assert hex32(to_bytes32(1)) == "0x" + "00" * 31 + "01"

    def test_bytes32_rejects_wrong_length(self) -> None:
        with pytest.raises(ValueError):
            to_bytes32(b"\x01" * 31)
        with pytest.raises(ValueError):
            to_bytes32(1 << 256)
