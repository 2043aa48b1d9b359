"""Shared test fixtures for the HTLC escrow test suite.

Provides:
    - The secret and its hashlock (parties and ids live in _constants.py)
    - A funded in-memory ledger and a factory deployed on it
    - An in-memory SQLite read-model session
    - Async test support via pytest-asyncio
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from _constants import (
    CANCELLATION_PERIOD,
    FACTORY,
    GENESIS,
    MAKER,
    ORDER_HASH,
    OUTSIDER,
    SECRET,
    STARTING_BALANCE,
    TAKER,
    TOKEN,
    WITHDRAWAL_PERIOD,
)
from htlc_escrow.domain.addresses import NATIVE_ASSET
from htlc_escrow.domain.factory import EscrowFactory
from htlc_escrow.domain.hashlock import make_hashlock
from htlc_escrow.domain.immutables import Immutables
from htlc_escrow.domain.timelocks import Timelocks
from htlc_escrow.infrastructure.database.engine import create_tables, make_session_factory
from htlc_escrow.infrastructure.ledger import InMemoryLedger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable

    from sqlalchemy.ext.asyncio import AsyncSession


# ---------------------------------------------------------------------------
# Domain Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def secret() -> bytes:
    return SECRET


@pytest.fixture
def hashlock() -> bytes:
    return make_hashlock(SECRET)


@pytest.fixture
def ledger() -> InMemoryLedger:
    """A ledger where maker and taker each hold native value and tokens."""
    ledger = InMemoryLedger(chain_id="devnet-a", genesis_time=GENESIS)
    ledger.register_token(TOKEN)
    for party in (MAKER, TAKER, OUTSIDER):
        ledger.mint(NATIVE_ASSET, party, STARTING_BALANCE)
        ledger.mint(TOKEN, party, STARTING_BALANCE)
    return ledger


@pytest.fixture
def factory(ledger: InMemoryLedger) -> EscrowFactory:
    return EscrowFactory(ledger, FACTORY)


@pytest.fixture
def make_immutables(hashlock: bytes) -> Callable[..., Immutables]:
    """Build immutables with sensible defaults; override any field by keyword."""

    def _make(**overrides: object) -> Immutables:
        fields = {
            "order_hash": ORDER_HASH,
            "hashlock": hashlock,
            "maker": MAKER,
            "taker": TAKER,
            "token": NATIVE_ASSET,
            "amount": 100,
            "safety_deposit": 0,
            "timelocks": Timelocks(WITHDRAWAL_PERIOD, CANCELLATION_PERIOD),
        }
        fields.update(overrides)
        return Immutables(**fields)

    return _make


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    factory = make_session_factory(db_engine)
    async with factory() as session:
        yield session
