"""Pydantic schemas."""

from htlc_escrow.schemas.escrow import (
    CreateEscrowRequest,
    EscrowEventResponse,
    EscrowResponse,
    HealthResponse,
)

__all__ = [
    "CreateEscrowRequest",
    "EscrowEventResponse",
    "EscrowResponse",
    "HealthResponse",
]
