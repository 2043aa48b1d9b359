"""Tests for the EscrowIndexer read-model builder."""

from __future__ import annotations

import pytest

from _constants import FACTORY, MAKER, ORDER_HASH, SECRET, TAKER
from htlc_escrow.domain.addresses import hex32
from htlc_escrow.domain.enums import EscrowStatus
from htlc_escrow.infrastructure.database.repositories import (
    EscrowRecordRepository,
    EventRecordRepository,
)
from htlc_escrow.infrastructure.ledger import InMemoryLedger
from htlc_escrow.services.escrow_service import EscrowService
from htlc_escrow.services.indexer_service import EscrowIndexer


@pytest.fixture
def service(ledger) -> EscrowService:
    return EscrowService(ledger, FACTORY)


class TestSync:
    """Building the read model from the ledger log."""

    async def test_indexes_creation(self, db_session, ledger, service, make_immutables) -> None:
        address = service.create_src_escrow(ledger.context(MAKER, value=100), make_immutables())

        assert await EscrowIndexer(db_session, ledger).sync() == 1

        record = await EscrowRecordRepository(db_session).get_by_address(address)
        assert record is not None
        assert record.side == "SRC"
        assert record.chain_id == "devnet-a"
        assert record.order_hash == hex32(ORDER_HASH)
        assert record.amount == "100"
        assert record.status == "ACTIVE"
        assert int(record.cancellation_deadline) == record.created_at + 90

    async def test_indexes_withdrawal_and_secret(self, db_session, ledger, service, make_immutables) -> None:
        address = service.create_src_escrow(ledger.context(MAKER, value=100), make_immutables())
        service.withdraw(address, ledger.context(TAKER), SECRET)

        assert await EscrowIndexer(db_session, ledger).sync() == 2

        record = await EscrowRecordRepository(db_session).get_by_address(address)
        assert record.status == "WITHDRAWN"
        assert record.secret == "0x" + SECRET.hex()
        assert record.settled_to == TAKER

        events = await EventRecordRepository(db_session).get_by_escrow(address)
        assert [e.event_type for e in events] == ["ESCROW_CREATED", "ESCROW_WITHDRAWN"]
        assert events[1].metadata_json["amount"] == 100

    async def test_indexes_cancellation(self, db_session, ledger, service, make_immutables) -> None:
        address = service.create_dst_escrow(ledger.context(TAKER, value=100), make_immutables())
        ledger.advance_time(90)
        service.cancel(address, ledger.context(TAKER))

        await EscrowIndexer(db_session, ledger).sync()

        record = await EscrowRecordRepository(db_session).get_by_address(address)
        assert record.status == "CANCELLED"
        assert record.settled_at == ledger.now
        assert record.secret is None

    async def test_sync_is_incremental(self, db_session, ledger, service, make_immutables) -> None:
        indexer = EscrowIndexer(db_session, ledger)
        address = service.create_src_escrow(ledger.context(MAKER, value=100), make_immutables())
        assert await indexer.sync() == 1
        assert await indexer.sync() == 0

        service.withdraw(address, ledger.context(TAKER), SECRET)
        assert await indexer.sync() == 1
        assert await EventRecordRepository(db_session).last_sequence("devnet-a") == 2

    async def test_search_finds_both_legs(self, db_session, service, ledger, make_immutables) -> None:
        src = service.create_src_escrow(ledger.context(MAKER, value=100), make_immutables())
        dst_ledger = InMemoryLedger(chain_id="devnet-b", genesis_time=ledger.now)
        dst_ledger.mint(0, TAKER, 1_000)
        dst = EscrowService(dst_ledger, FACTORY).create_dst_escrow(
            dst_ledger.context(TAKER, value=100), make_immutables()
        )

        await EscrowIndexer(db_session, ledger).sync()
        await EscrowIndexer(db_session, dst_ledger).sync()

        repo = EscrowRecordRepository(db_session)
        found = await repo.search(order_hash=hex32(ORDER_HASH))
        assert {r.address for r in found} == {src, dst}
        assert [r.address for r in await repo.search(chain_id="devnet-b")] == [dst]
        assert await repo.search(status=EscrowStatus.WITHDRAWN) == []
