"""Indexer Service — builds the escrow read model from the ledger log.

The factory keeps no registry. Observers discover escrows from EscrowCreated
entries instead, and this service is that observer: it pulls every committed
entry after the last indexed sequence for its chain and applies it.

    EscrowCreated    -> insert an escrows row, immutables read from the
                        deployed escrow (not from the creator's report)
    EscrowWithdrawn  -> status WITHDRAWN, revealed secret stored
    EscrowCancelled  -> status CANCELLED

Entries for escrows the indexer never saw created are skipped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from htlc_escrow.domain.addresses import hex32
from htlc_escrow.domain.enums import EscrowStatus
from htlc_escrow.domain.escrow import Escrow
from htlc_escrow.domain.events import EscrowCancelled, EscrowCreated, EscrowWithdrawn
from htlc_escrow.domain.exceptions import EscrowNotFoundError
from htlc_escrow.infrastructure.database.orm_models import EscrowRecord
from htlc_escrow.infrastructure.database.repositories import (
    EscrowRecordRepository,
    EventRecordRepository,
)
from htlc_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from htlc_escrow.domain.events import LogEntry
    from htlc_escrow.infrastructure.ledger import InMemoryLedger

logger = get_logger(__name__)


class EscrowIndexer:
    """Pulls one ledger's log into the read model."""

    def __init__(self, session: AsyncSession, ledger: InMemoryLedger) -> None:
        self._session = session
        self._ledger = ledger
        self._escrow_repo = EscrowRecordRepository(session)
        self._event_repo = EventRecordRepository(session)

    async def sync(self) -> int:
        """Index every entry committed since the last sync.

        Returns:
            The number of entries applied to the read model.
        """
        chain_id = self._ledger.chain_id
        cursor = await self._event_repo.last_sequence(chain_id)
        applied = 0
        for entry in self._ledger.logs_since(cursor):
            if await self._apply(entry):
                applied += 1
        logger.info(
            "indexer.synced",
            chain_id=chain_id,
            from_sequence=cursor,
            applied=applied,
        )
        return applied

    async def _apply(self, entry: LogEntry) -> bool:
        event = entry.event
        if isinstance(event, EscrowCreated):
            return await self._on_created(entry, event)
        if isinstance(event, EscrowWithdrawn):
            return await self._on_settled(
                entry,
                event.escrow,
                EscrowStatus.WITHDRAWN,
                event.recipient,
                secret="0x" + event.secret.hex(),
            )
        if isinstance(event, EscrowCancelled):
            return await self._on_settled(
                entry, event.escrow, EscrowStatus.CANCELLED, event.recipient
            )
        logger.debug("indexer.unknown_entry", sequence=entry.sequence)
        return False

    async def _on_created(self, entry: LogEntry, event: EscrowCreated) -> bool:
        try:
            escrow = self._ledger.get_contract(event.escrow)
        except EscrowNotFoundError:
            logger.warning("indexer.escrow_missing", escrow=event.escrow, sequence=entry.sequence)
            return False
        if not isinstance(escrow, Escrow):
            return False

        immutables = escrow.immutables
        if (immutables.maker, immutables.taker, immutables.order_hash) != (
            event.maker,
            event.taker,
            event.order_hash,
        ):
            logger.warning("indexer.creation_record_mismatch", escrow=event.escrow)
            return False

        await self._escrow_repo.create(
            EscrowRecord(
                address=escrow.address,
                chain_id=self._ledger.chain_id,
                side=escrow.side.value,
                order_hash=hex32(immutables.order_hash),
                hashlock=hex32(immutables.hashlock),
                maker=immutables.maker,
                taker=immutables.taker,
                token=immutables.token,
                amount=str(immutables.amount),
                safety_deposit=str(immutables.safety_deposit),
                withdrawal_period=str(immutables.timelocks.withdrawal_period),
                cancellation_period=str(immutables.timelocks.cancellation_period),
                created_at=escrow.created_at,
                cancellation_deadline=str(escrow.cancellation_deadline),
                status=EscrowStatus.ACTIVE.value,
            )
        )
        await self._record(entry, escrow.address, event.to_dict())
        return True

    async def _on_settled(
        self,
        entry: LogEntry,
        escrow_address: str,
        status: EscrowStatus,
        recipient: str,
        secret: str | None = None,
    ) -> bool:
        record = await self._escrow_repo.get_by_address(escrow_address)
        if record is None:
            logger.debug("indexer.untracked_escrow", escrow=escrow_address)
            return False
        await self._escrow_repo.mark_settled(
            record,
            status=status,
            settled_at=entry.timestamp,
            settled_to=recipient,
            secret=secret,
        )
        await self._record(entry, escrow_address, entry.event.to_dict())
        return True

    async def _record(self, entry: LogEntry, escrow_address: str, metadata: dict) -> None:
        await self._event_repo.record(
            chain_id=self._ledger.chain_id,
            sequence=entry.sequence,
            escrow_address=escrow_address,
            event_type=entry.event.event_type,
            emitter=entry.emitter,
            ledger_timestamp=entry.timestamp,
            metadata=metadata,
        )
