"""Hashlock helpers.

The hash function itself is an external, already-verified primitive; this
module only selects one of hashlib's 32-byte digests by name and compares
digests in constant time.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from collections.abc import Callable

from htlc_escrow.domain.enums import HashAlgorithm

HashFunction = Callable[[bytes], bytes]

SECRET_LENGTH = 32


def _sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def _sha3_256(data: bytes) -> bytes:
    return hashlib.sha3_256(data).digest()


def _blake2b_256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


_HASH_FUNCTIONS: dict[str, HashFunction] = {
    HashAlgorithm.SHA256.value: _sha256,
    HashAlgorithm.SHA3_256.value: _sha3_256,
    HashAlgorithm.BLAKE2B.value: _blake2b_256,
}


def get_hash_function(algorithm: str | HashAlgorithm = HashAlgorithm.SHA256) -> HashFunction:
    """Return the digest function registered under `algorithm`.

    Raises:
        ValueError: If the algorithm is unknown.
    """
    fn = _HASH_FUNCTIONS.get(str(algorithm))
    if fn is None:
        raise ValueError(
            f"Unknown hash algorithm '{algorithm}'. Valid: {sorted(_HASH_FUNCTIONS)}"
        )
    return fn


def make_hashlock(secret: bytes, algorithm: str | HashAlgorithm = HashAlgorithm.SHA256) -> bytes:
    return get_hash_function(algorithm)(secret)


def verify_secret(
    secret: bytes,
    hashlock: bytes,
    algorithm: str | HashAlgorithm = HashAlgorithm.SHA256,
) -> bool:
    """True if `secret` is a preimage of `hashlock` under `algorithm`."""
    return hmac.compare_digest(make_hashlock(secret, algorithm), hashlock)


def generate_secret() -> bytes:
    """Draw a fresh 32-byte secret for a coordinator starting a swap."""
    return secrets.token_bytes(SECRET_LENGTH)
