"""SQLAlchemy 2.0 ORM models for the escrow read model.

Two tables:
    1. escrows        — One row per escrow discovered from an EscrowCreated log.
    2. escrow_events  — Append-only copy of every indexed log entry.

Design decisions:
    - Escrow address as primary key; addresses are unique per chain by
      derivation and the chain id is stored alongside for filtering.
    - Amounts stored as decimal strings: they are 256-bit unsigned integers
      and SQLite has no exact numeric type wide enough.
    - escrow_events is append-only and unique on (chain_id, sequence), which
      makes re-indexing the same log entry a no-op.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# ---------------------------------------------------------------------------
# 1. escrows
# ---------------------------------------------------------------------------
class EscrowRecord(Base):
    """Read-model row for one deployed escrow."""

    __tablename__ = "escrows"

    # --- Identity ---
    address: Mapped[str] = mapped_column(String(42), primary_key=True)
    chain_id: Mapped[str] = mapped_column(String(64), nullable=False)
    side: Mapped[str] = mapped_column(String(3), nullable=False, comment="SRC or DST")

    # --- Immutables ---
    order_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    hashlock: Mapped[str] = mapped_column(String(66), nullable=False)
    maker: Mapped[str] = mapped_column(String(42), nullable=False)
    taker: Mapped[str] = mapped_column(String(42), nullable=False)
    token: Mapped[str] = mapped_column(String(42), nullable=False)
    amount: Mapped[str] = mapped_column(String(78), nullable=False)
    safety_deposit: Mapped[str] = mapped_column(String(78), nullable=False)
    withdrawal_period: Mapped[str] = mapped_column(String(39), nullable=False)
    cancellation_period: Mapped[str] = mapped_column(String(39), nullable=False)

    # --- Timing (ledger seconds) ---
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    cancellation_deadline: Mapped[str] = mapped_column(String(40), nullable=False)

    # --- Settlement ---
    status: Mapped[str] = mapped_column(String(10), nullable=False, default="ACTIVE")
    secret: Mapped[str | None] = mapped_column(
        String(130),
        nullable=True,
        default=None,
        comment="Preimage revealed by EscrowWithdrawn",
    )
    settled_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True, default=None)
    settled_to: Mapped[str | None] = mapped_column(String(42), nullable=True, default=None)

    indexed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    # --- Relationships ---
    events: Mapped[list[EscrowEventRecord]] = relationship(
        "EscrowEventRecord",
        back_populates="escrow",
        cascade="all, delete-orphan",
        order_by="EscrowEventRecord.sequence.asc()",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE', 'WITHDRAWN', 'CANCELLED')",
            name="ck_escrow_valid_status",
        ),
        CheckConstraint("side IN ('SRC', 'DST')", name="ck_escrow_valid_side"),
        Index("idx_escrow_order_hash", "order_hash"),
        Index("idx_escrow_hashlock", "hashlock"),
        Index("idx_escrow_chain", "chain_id"),
        Index("idx_escrow_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<EscrowRecord {self.side} address={self.address} status={self.status}>"


# ---------------------------------------------------------------------------
# 2. escrow_events (Append-Only)
# ---------------------------------------------------------------------------
class EscrowEventRecord(Base):
    """Indexed copy of one ledger log entry that concerns an escrow."""

    __tablename__ = "escrow_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chain_id: Mapped[str] = mapped_column(String(64), nullable=False)
    sequence: Mapped[int] = mapped_column(BigInteger, nullable=False)
    escrow_address: Mapped[str] = mapped_column(
        String(42),
        ForeignKey("escrows.address", ondelete="CASCADE"),
        nullable=False,
    )
    event_type: Mapped[str] = mapped_column(String(40), nullable=False)
    emitter: Mapped[str] = mapped_column(String(42), nullable=False)
    ledger_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    metadata_json: Mapped[dict | None] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
        default=None,
    )

    escrow: Mapped[EscrowRecord] = relationship("EscrowRecord", back_populates="events")

    __table_args__ = (
        UniqueConstraint("chain_id", "sequence", name="uq_event_chain_sequence"),
        Index("idx_event_escrow", "escrow_address"),
        Index("idx_event_type", "event_type"),
    )

    def __repr__(self) -> str:
        return (
            f"<EscrowEventRecord {self.chain_id}#{self.sequence} "
            f"type={self.event_type} escrow={self.escrow_address}>"
        )
