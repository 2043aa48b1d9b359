"""Well-known parties, ids and timings shared by the test suite."""

from __future__ import annotations

from htlc_escrow.domain.addresses import to_address

MAKER = to_address(0xA11CE)
TAKER = to_address(0xB0B)
OUTSIDER = to_address(0xE7E)
FACTORY = to_address(0xFAC7)
TOKEN = to_address(0x70CE)

GENESIS = 1_000
STARTING_BALANCE = 1_000_000

SECRET = b"\x42" * 32
ORDER_HASH = b"\x01" * 32

# 30s withdrawal window, 60s cancellation period: cancellable at created_at + 90
WITHDRAWAL_PERIOD = 30
CANCELLATION_PERIOD = 60
