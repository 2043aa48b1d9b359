"""Pydantic schemas for escrow creation input and read-model responses.

Separate from both the domain records and the ORM models to keep clean
boundaries between the wire, the core and the database.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - needed at runtime by pydantic

from pydantic import BaseModel, ConfigDict, Field, field_validator

from htlc_escrow.domain.immutables import Immutables

UINT256_MAX = (1 << 256) - 1

# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class CreateEscrowRequest(BaseModel):
    """Creation input for either leg.

    Addresses are accepted as unsigned integers or hex strings and are cast
    to 160-bit account identifiers; `timelocks` is the packed 256-bit value.
    """

    order_hash: int | str = Field(
        ...,
        description="32-byte order id (hex string or unsigned integer)",
        examples=["0x" + "ab" * 32],
    )
    hashlock: int | str = Field(
        ...,
        description="32-byte digest of the secret",
        examples=["0x" + "cd" * 32],
    )
    maker: int | str = Field(..., description="Maker account (uint or hex)")
    taker: int | str = Field(..., description="Taker account (uint or hex)")
    token: int | str = Field(
        default=0,
        description="Asset held; 0 / the zero address selects the native asset",
    )
    amount: int = Field(..., ge=0, le=UINT256_MAX)
    safety_deposit: int = Field(default=0, ge=0, le=UINT256_MAX)
    timelocks: int = Field(
        ...,
        ge=0,
        le=UINT256_MAX,
        description="cancellation_period << 128 | withdrawal_period",
    )

    @field_validator("maker", "taker", "token", "order_hash", "hashlock")
    @classmethod
    def _non_negative(cls, value: int | str) -> int | str:
        if isinstance(value, int) and value < 0:
            raise ValueError("must be unsigned")
        return value

    def to_immutables(self) -> Immutables:
        """Cast to domain immutables.

        Raises:
            InvalidParametersError: On malformed identifiers.
        """
        return Immutables.from_raw(
            order_hash=self.order_hash,
            hashlock=self.hashlock,
            maker=self.maker,
            taker=self.taker,
            token=self.token,
            amount=self.amount,
            safety_deposit=self.safety_deposit,
            timelocks=self.timelocks,
        )


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class EscrowResponse(BaseModel):
    """Read-model view of one escrow."""

    model_config = ConfigDict(from_attributes=True)

    address: str
    chain_id: str
    side: str
    order_hash: str
    hashlock: str
    maker: str
    taker: str
    token: str
    amount: int
    safety_deposit: int
    withdrawal_period: int
    cancellation_period: int
    created_at: int
    cancellation_deadline: int
    status: str
    secret: str | None
    settled_at: int | None
    settled_to: str | None
    indexed_at: datetime


class EscrowEventResponse(BaseModel):
    """Indexed log entry."""

    model_config = ConfigDict(from_attributes=True)

    chain_id: str
    sequence: int
    escrow_address: str
    event_type: str
    emitter: str
    ledger_timestamp: int
    metadata: dict | None = Field(default=None, validation_alias="metadata_json")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    database: str = "unknown"
