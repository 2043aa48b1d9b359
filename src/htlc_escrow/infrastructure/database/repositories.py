"""Repository classes for the escrow read model.

Repositories encapsulate all SQL queries. They accept an AsyncSession and
never manage their own transactions (that's the caller's responsibility).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select

from htlc_escrow.infrastructure.database.orm_models import EscrowEventRecord, EscrowRecord

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from htlc_escrow.domain.enums import EscrowStatus, EventType


class EscrowRecordRepository:
    """Data access for indexed escrows."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, record: EscrowRecord) -> EscrowRecord:
        self._session.add(record)
        await self._session.flush()
        return record

    async def get_by_address(self, address: str) -> EscrowRecord | None:
        result = await self._session.execute(
            select(EscrowRecord).where(EscrowRecord.address == address)
        )
        return result.scalar_one_or_none()

    async def search(
        self,
        order_hash: str | None = None,
        hashlock: str | None = None,
        chain_id: str | None = None,
        status: EscrowStatus | None = None,
    ) -> list[EscrowRecord]:
        """Filter escrows; every argument left as None is ignored."""
        stmt = select(EscrowRecord)
        if order_hash is not None:
            stmt = stmt.where(EscrowRecord.order_hash == order_hash)
        if hashlock is not None:
            stmt = stmt.where(EscrowRecord.hashlock == hashlock)
        if chain_id is not None:
            stmt = stmt.where(EscrowRecord.chain_id == chain_id)
        if status is not None:
            stmt = stmt.where(EscrowRecord.status == status.value)
        result = await self._session.execute(
            stmt.order_by(EscrowRecord.created_at.asc(), EscrowRecord.address.asc())
        )
        return list(result.scalars().all())

    async def mark_settled(
        self,
        record: EscrowRecord,
        status: EscrowStatus,
        settled_at: int,
        settled_to: str,
        secret: str | None = None,
    ) -> EscrowRecord:
        record.status = status.value
        record.settled_at = settled_at
        record.settled_to = settled_to
        if secret is not None:
            record.secret = secret
        await self._session.flush()
        return record


class EventRecordRepository:
    """Data access for the append-only indexed log."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record(
        self,
        chain_id: str,
        sequence: int,
        escrow_address: str,
        event_type: EventType,
        emitter: str,
        ledger_timestamp: int,
        metadata: dict | None = None,
    ) -> EscrowEventRecord:
        """Append a new indexed entry. This is the ONLY write operation allowed."""
        evt = EscrowEventRecord(
            chain_id=chain_id,
            sequence=sequence,
            escrow_address=escrow_address,
            event_type=event_type.value,
            emitter=emitter,
            ledger_timestamp=ledger_timestamp,
            metadata_json=metadata,
        )
        self._session.add(evt)
        await self._session.flush()
        return evt

    async def last_sequence(self, chain_id: str) -> int:
        """Highest indexed sequence for a chain, 0 when nothing is indexed."""
        result = await self._session.execute(
            select(func.max(EscrowEventRecord.sequence)).where(
                EscrowEventRecord.chain_id == chain_id
            )
        )
        return result.scalar_one_or_none() or 0

    async def get_by_escrow(self, escrow_address: str) -> list[EscrowEventRecord]:
        """Fetch all entries for an escrow in log order."""
        result = await self._session.execute(
            select(EscrowEventRecord)
            .where(EscrowEventRecord.escrow_address == escrow_address)
            .order_by(EscrowEventRecord.sequence.asc())
        )
        return list(result.scalars().all())
