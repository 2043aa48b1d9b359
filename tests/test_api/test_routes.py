"""Tests for the read-only HTTP API."""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from _constants import FACTORY, MAKER, ORDER_HASH, SECRET, TAKER
from htlc_escrow.api.deps import get_db_session
from htlc_escrow.domain.addresses import hex32
from htlc_escrow.infrastructure.database import engine as engine_module
from htlc_escrow.main import create_app
from htlc_escrow.services.escrow_service import EscrowService
from htlc_escrow.services.indexer_service import EscrowIndexer


@pytest_asyncio.fixture
async def client(db_session):
    app = create_app()

    async def _session_override():
        yield db_session

    app.dependency_overrides[get_db_session] = _session_override
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest_asyncio.fixture
async def indexed_escrow(db_session, ledger, make_immutables) -> str:
    service = EscrowService(ledger, FACTORY)
    address = service.create_src_escrow(ledger.context(MAKER, value=100), make_immutables())
    service.withdraw(address, ledger.context(TAKER), SECRET)
    await EscrowIndexer(db_session, ledger).sync()
    await db_session.commit()
    return address


class TestHealth:
    """Liveness and database reachability."""

    async def test_health(self, client, db_engine, monkeypatch) -> None:
        monkeypatch.setattr(engine_module, "_engine", db_engine)
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["database"] == "healthy"


class TestEscrowRoutes:
    """Lookup, search and event history of indexed escrows."""

    async def test_get_escrow(self, client, indexed_escrow) -> None:
        response = await client.get(f"/api/v1/escrows/{indexed_escrow}")
        assert response.status_code == 200
        body = response.json()
        assert body["address"] == indexed_escrow
        assert body["status"] == "WITHDRAWN"
        assert body["amount"] == 100
        assert body["secret"] == "0x" + SECRET.hex()
        assert "X-Request-ID" in response.headers

    async def test_address_is_normalized(self, client, indexed_escrow) -> None:
        response = await client.get(f"/api/v1/escrows/{indexed_escrow.upper().replace('0X', '0x')}")
        assert response.status_code == 200

    async def test_search_by_order_hash(self, client, indexed_escrow) -> None:
        response = await client.get("/api/v1/escrows", params={"order_hash": hex32(ORDER_HASH)})
        assert response.status_code == 200
        assert [e["address"] for e in response.json()] == [indexed_escrow]

    async def test_search_no_match(self, client, indexed_escrow) -> None:
        response = await client.get("/api/v1/escrows", params={"chain_id": "other"})
        assert response.status_code == 200
        assert response.json() == []

    async def test_events(self, client, indexed_escrow) -> None:
        response = await client.get(f"/api/v1/escrows/{indexed_escrow}/events")
        assert response.status_code == 200
        events = response.json()
        assert [e["sequence"] for e in events] == [1, 2]
        assert events[1]["metadata"]["recipient"] == TAKER


class TestErrors:
    """Error bodies and status codes."""

    async def test_not_found(self, client) -> None:
        response = await client.get(f"/api/v1/escrows/{TAKER}")
        assert response.status_code == 404
        assert response.json()["error"] == "ESCROW_NOT_FOUND"

    async def test_error_keeps_client_request_id(self, client) -> None:
        response = await client.get(
            f"/api/v1/escrows/{TAKER}", headers={"X-Request-ID": "trace-42"}
        )
        assert response.status_code == 404
        assert response.headers["X-Request-ID"] == "trace-42"

    async def test_events_not_found(self, client) -> None:
        response = await client.get(f"/api/v1/escrows/{TAKER}/events")
        assert response.status_code == 404

    async def test_malformed_address(self, client) -> None:
        response = await client.get("/api/v1/escrows/not-an-address")
        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_PARAMETERS"

    async def test_malformed_order_hash(self, client) -> None:
        response = await client.get("/api/v1/escrows", params={"order_hash": "0x" + "f" * 65})
        assert response.status_code == 400

    @pytest.mark.parametrize("status", ["PENDING", "withdrawn"])
    async def test_invalid_status_filter(self, client, status: str) -> None:
        response = await client.get("/api/v1/escrows", params={"status": status})
        assert response.status_code == 422
