"""Tests for the escrow factory."""

from __future__ import annotations

import pytest

from _constants import FACTORY, MAKER, ORDER_HASH, STARTING_BALANCE, TAKER
from htlc_escrow.domain.addresses import NATIVE_ASSET
from htlc_escrow.domain.enums import EscrowSide
from htlc_escrow.domain.escrow import Escrow
from htlc_escrow.domain.events import EscrowCreated
from htlc_escrow.domain.exceptions import InvalidParametersError


class TestCreation:
    """The factory funds, deploys and records an escrow in one step."""

    def test_funds_and_deploys_in_one_step(self, factory, ledger, make_immutables) -> None:
        address = factory.create_src_escrow(ledger.context(MAKER, value=100), make_immutables())

        escrow = ledger.get_contract(address)
        assert isinstance(escrow, Escrow)
        assert escrow.side is EscrowSide.SRC
        assert ledger.balance_of(NATIVE_ASSET, address) == 100
        assert ledger.balance_of(NATIVE_ASSET, MAKER) == STARTING_BALANCE - 100

    def test_emits_creation_record(self, factory, ledger, make_immutables) -> None:
        address = factory.create_dst_escrow(ledger.context(TAKER, value=100), make_immutables())

        (entry,) = ledger.logs
        assert entry.sequence == 1
        assert entry.emitter == FACTORY
        assert entry.event == EscrowCreated(
            maker=MAKER, taker=TAKER, escrow=address, order_hash=ORDER_HASH
        )

    def test_address_matches_prediction(self, factory, ledger, make_immutables) -> None:
        predicted = ledger.predict_address(factory.address)
        address = factory.create_src_escrow(ledger.context(MAKER, value=100), make_immutables())
        assert address == predicted

    def test_duplicate_order_hash_allowed(self, factory, ledger, make_immutables) -> None:
        first = factory.create_src_escrow(ledger.context(MAKER, value=100), make_immutables())
        second = factory.create_src_escrow(ledger.context(MAKER, value=100), make_immutables())
        assert first != second
        assert len(ledger.logs) == 2

    def test_rejected_creation_leaves_no_trace(self, factory, ledger, make_immutables) -> None:
        predicted = ledger.predict_address(factory.address)
        with pytest.raises(InvalidParametersError):
            factory.create_src_escrow(ledger.context(MAKER, value=50), make_immutables())

        assert ledger.logs == ()
        assert ledger.balance_of(NATIVE_ASSET, MAKER) == STARTING_BALANCE
        assert ledger.predict_address(factory.address) == predicted
