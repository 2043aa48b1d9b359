"""Account and identifier casting.

Creation input carries addresses as unsigned integers (or hex strings); the
escrow stores them as 0x-prefixed, lowercase, 20-byte hex strings. Values
wider than 160 bits are truncated to the low 160 bits, the same cast a
contract constructor applies to a uint argument.
"""

from __future__ import annotations

ADDRESS_BITS = 160
ADDRESS_MASK = (1 << ADDRESS_BITS) - 1
BYTES32_LENGTH = 32

ZERO_ADDRESS = "0x" + "0" * 40
# The native asset is addressed by the zero address.
NATIVE_ASSET = ZERO_ADDRESS


def to_address(value: int | str | bytes) -> str:
    """Cast an integer, hex string or raw bytes to a canonical address."""
    if isinstance(value, bytes):
        number = int.from_bytes(value, "big")
    elif isinstance(value, str):
        try:
            number = int(value, 16)
        except ValueError as exc:
            raise ValueError(f"Not a hex address: {value!r}") from exc
    elif isinstance(value, int) and not isinstance(value, bool):
        number = value
    else:
        raise TypeError(f"Cannot cast {type(value).__name__} to an address")
    if number < 0:
        raise ValueError("Addresses are unsigned")
    return f"0x{number & ADDRESS_MASK:040x}"


def is_zero_address(address: str) -> bool:
    return to_address(address) == ZERO_ADDRESS


def to_bytes32(value: int | str | bytes) -> bytes:
    """Cast an integer, hex string or bytes to a 32-byte identifier."""
    if isinstance(value, bytes):
        if len(value) != BYTES32_LENGTH:
            raise ValueError(f"Expected {BYTES32_LENGTH} bytes, got {len(value)}")
        return value
    if isinstance(value, str):
        raw = value[2:] if value.lower().startswith("0x") else value
        if len(raw) > BYTES32_LENGTH * 2:
            raise ValueError("Hex value wider than 32 bytes")
        try:
            return bytes.fromhex(raw.rjust(BYTES32_LENGTH * 2, "0"))
        except ValueError as exc:
            raise ValueError(f"Not a hex value: {value!r}") from exc
    if isinstance(value, int) and not isinstance(value, bool):
        if value < 0 or value.bit_length() > BYTES32_LENGTH * 8:
            raise ValueError("Integer does not fit in 32 bytes")
        return value.to_bytes(BYTES32_LENGTH, "big")
    raise TypeError(f"Cannot cast {type(value).__name__} to bytes32")


def hex32(value: bytes) -> str:
    """Render a 32-byte identifier as 0x-prefixed hex."""
    return "0x" + value.hex()
