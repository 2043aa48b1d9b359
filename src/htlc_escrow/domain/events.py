"""Ledger log records emitted by the factory and by escrows.

Off-chain observers (counterparties, the read-model indexer) discover new
escrows and revealed secrets from these records instead of trusting any
party's own reporting.
"""

from __future__ import annotations

from dataclasses import dataclass

from htlc_escrow.domain.addresses import hex32
from htlc_escrow.domain.enums import EventType


@dataclass(frozen=True)
class EscrowCreated:
    """Emitted by the factory once per successful creation call."""

    maker: str
    taker: str
    escrow: str
    order_hash: bytes

    event_type = EventType.ESCROW_CREATED

    def to_dict(self) -> dict:
        return {
            "maker": self.maker,
            "taker": self.taker,
            "escrow": self.escrow,
            "order_hash": hex32(self.order_hash),
        }


@dataclass(frozen=True)
class EscrowWithdrawn:
    """Emitted when an escrow releases its funds against the secret.

    The secret becomes public here, which is what lets the other leg be
    settled with the same preimage.
    """

    escrow: str
    secret: bytes
    recipient: str
    amount: int

    event_type = EventType.ESCROW_WITHDRAWN

    def to_dict(self) -> dict:
        return {
            "escrow": self.escrow,
            "secret": "0x" + self.secret.hex(),
            "recipient": self.recipient,
            "amount": self.amount,
        }


@dataclass(frozen=True)
class EscrowCancelled:
    """Emitted when an escrow refunds its funds after the deadline."""

    escrow: str
    recipient: str
    amount: int

    event_type = EventType.ESCROW_CANCELLED

    def to_dict(self) -> dict:
        return {
            "escrow": self.escrow,
            "recipient": self.recipient,
            "amount": self.amount,
        }


LedgerEvent = EscrowCreated | EscrowWithdrawn | EscrowCancelled


@dataclass(frozen=True)
class LogEntry:
    """A committed log record.

    Attributes:
        sequence: Position in the ledger's log, strictly increasing from 1.
        timestamp: Ledger time of the operation that emitted it.
        emitter: Address of the factory or escrow that emitted it.
        event: The record itself.
    """

    sequence: int
    timestamp: int
    emitter: str
    event: LedgerEvent
