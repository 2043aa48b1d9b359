"""Infrastructure adapters: the in-memory ledger and the read-model database."""

from htlc_escrow.infrastructure.ledger import InMemoryLedger

__all__ = ["InMemoryLedger"]
