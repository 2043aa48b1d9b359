"""Tests for the packed timelock codec."""

from __future__ import annotations

import pytest

from htlc_escrow.domain.exceptions import InvalidParametersError
from htlc_escrow.domain.timelocks import (
    PERIOD_MASK,
    Timelocks,
    decode_timelocks,
    encode_timelocks,
)


class TestCodec:
    """Packing both periods into one 256-bit word and back."""

    def test_low_bits_are_withdrawal_period(self) -> None:
        packed = (7 << 128) | 3
        decoded = decode_timelocks(packed)
        assert decoded.withdrawal_period == 3
        assert decoded.cancellation_period == 7

    def test_encode_packs_cancellation_into_high_bits(self) -> None:
        assert encode_timelocks(withdrawal_period=1, cancellation_period=2) == (2 << 128) | 1

    def test_maximum_periods(self) -> None:
        packed = (1 << 256) - 1
        decoded = Timelocks.decode(packed)
        assert decoded.withdrawal_period == PERIOD_MASK
        assert decoded.cancellation_period == PERIOD_MASK
        assert decoded.encode() == packed

    def test_zero(self) -> None:
        assert Timelocks.decode(0) == Timelocks(0, 0)

    @pytest.mark.parametrize("packed", [-1, 1 << 256, "10", True])
    def test_rejects_out_of_range_or_non_int(self, packed: object) -> None:
        with pytest.raises(InvalidParametersError):
            Timelocks.decode(packed)  # type: ignore[arg-type]

    def test_rejects_period_wider_than_128_bits(self) -> None:
        with pytest.raises(InvalidParametersError):
            Timelocks(1 << 128, 0)


class TestDeadlines:
    """Deadlines are measured from the escrow's creation time."""

    def test_cancellation_deadline_is_sum_of_periods(self) -> None:
        locks = Timelocks(withdrawal_period=30, cancellation_period=60)
        assert locks.total_period == 90
        assert locks.withdrawal_deadline(1_000) == 1_030
        assert locks.cancellation_deadline(1_000) == 1_090

    def test_cancellable_at_exact_deadline(self) -> None:
        locks = Timelocks(withdrawal_period=30, cancellation_period=60)
        assert not locks.is_cancellable(created_at=1_000, now=1_089)
        assert locks.is_cancellable(created_at=1_000, now=1_090)

    def test_zero_periods_cancellable_immediately(self) -> None:
        assert Timelocks(0, 0).is_cancellable(created_at=5, now=5)
