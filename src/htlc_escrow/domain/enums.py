"""Domain enumerations for the HTLC escrow core.

Framework-agnostic: no SQLAlchemy, no FastAPI imports.
"""

import enum


class EscrowStatus(enum.StrEnum):
    """Terminal-state flag of an escrow.

    Transitions are enforced by EscrowStateMachine (domain/state_machine.py).
    """

    ACTIVE = "ACTIVE"
    WITHDRAWN = "WITHDRAWN"
    CANCELLED = "CANCELLED"


class EscrowSide(enum.StrEnum):
    """Which leg of the swap an escrow holds."""

    SRC = "SRC"
    DST = "DST"


class Role(enum.StrEnum):
    """Counterparty roles named in the escrow immutables."""

    MAKER = "maker"
    TAKER = "taker"


class EventType(enum.StrEnum):
    """Types of ledger log entries recorded by the read model.

    Every settled escrow produces exactly one of WITHDRAWN / CANCELLED.
    """

    ESCROW_CREATED = "ESCROW_CREATED"
    ESCROW_WITHDRAWN = "ESCROW_WITHDRAWN"
    ESCROW_CANCELLED = "ESCROW_CANCELLED"


class HashAlgorithm(enum.StrEnum):
    """Digest functions accepted for hashlocks. All produce 32 bytes."""

    SHA256 = "sha256"
    SHA3_256 = "sha3_256"
    BLAKE2B = "blake2b"
