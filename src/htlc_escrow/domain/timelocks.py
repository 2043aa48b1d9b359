"""Timelock codec.

Two unsigned durations (seconds) packed into one 256-bit value:

    bits   0..127  withdrawal period
    bits 128..255  cancellation period

Both periods are relative to the escrow's creation time. The cancellation
deadline is `created_at + withdrawal_period + cancellation_period`; cancel is
open at or after that instant.
"""

from __future__ import annotations

from dataclasses import dataclass

from htlc_escrow.domain.exceptions import InvalidParametersError

TIMELOCKS_BITS = 256
PERIOD_BITS = TIMELOCKS_BITS // 2
PERIOD_MASK = (1 << PERIOD_BITS) - 1


@dataclass(frozen=True)
class Timelocks:
    """Decoded (withdrawal_period, cancellation_period) pair."""

    withdrawal_period: int
    cancellation_period: int

    def __post_init__(self) -> None:
        for name in ("withdrawal_period", "cancellation_period"):
            period = getattr(self, name)
            if isinstance(period, bool) or not isinstance(period, int):
                raise InvalidParametersError(f"{name} must be an integer")
            if period < 0 or period > PERIOD_MASK:
                raise InvalidParametersError(
                    f"{name} must fit in {PERIOD_BITS} unsigned bits, got {period}"
                )

    @classmethod
    def decode(cls, packed: int) -> Timelocks:
        """Split a packed 256-bit value into its two periods."""
        if isinstance(packed, bool) or not isinstance(packed, int):
            raise InvalidParametersError("Packed timelocks must be an integer")
        if packed < 0 or packed.bit_length() > TIMELOCKS_BITS:
            raise InvalidParametersError(
                f"Packed timelocks must fit in {TIMELOCKS_BITS} unsigned bits"
            )
        return cls(
            withdrawal_period=packed & PERIOD_MASK,
            cancellation_period=packed >> PERIOD_BITS,
        )

    def encode(self) -> int:
        return (self.cancellation_period << PERIOD_BITS) | self.withdrawal_period

    @property
    def total_period(self) -> int:
        return self.withdrawal_period + self.cancellation_period

    def withdrawal_deadline(self, created_at: int) -> int:
        """End of the withdrawal-only window. Informational: withdraw is not gated on it."""
        return created_at + self.withdrawal_period

    def cancellation_deadline(self, created_at: int) -> int:
        return created_at + self.total_period

    def is_cancellable(self, created_at: int, now: int) -> bool:
        return now >= self.cancellation_deadline(created_at)


def encode_timelocks(withdrawal_period: int, cancellation_period: int) -> int:
    """Pack two periods into the 256-bit wire value."""
    return Timelocks(withdrawal_period, cancellation_period).encode()


def decode_timelocks(packed: int) -> Timelocks:
    return Timelocks.decode(packed)
