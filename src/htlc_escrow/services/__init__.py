"""Application services — use case orchestration."""

from htlc_escrow.services.escrow_service import EscrowService
from htlc_escrow.services.indexer_service import EscrowIndexer

__all__ = ["EscrowIndexer", "EscrowService"]
