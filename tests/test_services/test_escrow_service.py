"""Tests for the EscrowService application layer."""

from __future__ import annotations

import pytest

from _constants import FACTORY, MAKER, ORDER_HASH, SECRET, STARTING_BALANCE, TAKER
from htlc_escrow.domain.addresses import NATIVE_ASSET, hex32
from htlc_escrow.domain.escrow import EscrowPolicy
from htlc_escrow.domain.exceptions import (
    EscrowNotFoundError,
    InvalidParametersError,
    InvalidSecretError,
    TooEarlyError,
)
from htlc_escrow.domain.timelocks import encode_timelocks
from htlc_escrow.schemas.escrow import CreateEscrowRequest
from htlc_escrow.services.escrow_service import EscrowService


@pytest.fixture
def service(ledger) -> EscrowService:
    return EscrowService(ledger, FACTORY)


@pytest.fixture
def request_body(hashlock: bytes) -> CreateEscrowRequest:
    return CreateEscrowRequest(
        order_hash=hex32(ORDER_HASH),
        hashlock=hex32(hashlock),
        maker=int(MAKER, 16),
        taker=TAKER,
        amount=100,
        timelocks=encode_timelocks(30, 60),
    )


class TestCreate:
    """Creating escrows from API-shaped requests."""

    def test_create_from_request(self, service, ledger, request_body) -> None:
        predicted = service.predict_escrow_address()
        address = service.create_src_escrow(ledger.context(MAKER, value=100), request_body)
        assert address == predicted
        assert service.get_escrow(address).immutables.order_hash == ORDER_HASH

    def test_create_from_immutables(self, service, ledger, make_immutables) -> None:
        address = service.create_dst_escrow(ledger.context(TAKER, value=100), make_immutables())
        assert service.get_status(address)["side"] == "DST"

    def test_rejected_creation_propagates(self, service, ledger, request_body) -> None:
        with pytest.raises(InvalidParametersError):
            service.create_src_escrow(ledger.context(MAKER, value=1), request_body)
        assert ledger.logs == ()

    def test_policy_is_passed_to_factory(self, ledger) -> None:
        policy = EscrowPolicy(require_safety_deposit=True)
        service = EscrowService(ledger, FACTORY, policy)
        assert service.factory.policy is policy


class TestSettle:
    """Withdraw and cancel through the service."""

    def test_withdraw(self, service, ledger, make_immutables) -> None:
        address = service.create_src_escrow(ledger.context(MAKER, value=100), make_immutables())
        assert service.withdraw(address, ledger.context(TAKER), SECRET) == 100
        assert ledger.balance_of(NATIVE_ASSET, TAKER) == STARTING_BALANCE + 100

        status = service.get_status(address)
        assert status["status"] == "WITHDRAWN"
        assert status["held_balance"] == 0
        assert status["allowed_events"] == []

    def test_withdraw_wrong_secret(self, service, ledger, make_immutables) -> None:
        address = service.create_src_escrow(ledger.context(MAKER, value=100), make_immutables())
        with pytest.raises(InvalidSecretError):
            service.withdraw(address, ledger.context(TAKER), b"\x00" * 32)
        assert service.get_status(address)["status"] == "ACTIVE"

    def test_cancel(self, service, ledger, make_immutables) -> None:
        address = service.create_src_escrow(ledger.context(MAKER, value=100), make_immutables())
        with pytest.raises(TooEarlyError):
            service.cancel(address, ledger.context(MAKER))
        assert service.get_status(address)["cancellable"] is False

        ledger.advance_time(90)
        assert service.get_status(address)["cancellable"] is True
        assert service.cancel(address, ledger.context(MAKER)) == 100
        assert service.get_status(address)["status"] == "CANCELLED"


class TestLookup:
    """Resolving escrows by address."""

    def test_unknown_address(self, service) -> None:
        with pytest.raises(EscrowNotFoundError):
            service.get_escrow(TAKER)

    def test_non_escrow_contract(self, service, ledger) -> None:
        ledger.deploy(TAKER, object())
        with pytest.raises(EscrowNotFoundError):
            service.get_escrow(TAKER)
