"""Escrow Service — application layer over one ledger.

Coordinates between:
    - EscrowFactory (creation and funding)
    - Escrow (withdraw / cancel)
    - The ledger's transaction scope (all-or-nothing per operation)

Every operation runs in its own ledger transaction and is logged; rejected
operations are logged with the machine-readable error code and re-raised.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

from htlc_escrow.domain.addresses import to_address
from htlc_escrow.domain.escrow import DEFAULT_POLICY, Escrow, EscrowPolicy
from htlc_escrow.domain.exceptions import EscrowNotFoundError, SwapError
from htlc_escrow.domain.factory import EscrowFactory
from htlc_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

    from htlc_escrow.domain.immutables import Immutables
    from htlc_escrow.domain.ledger_protocol import CallContext
    from htlc_escrow.infrastructure.ledger import InMemoryLedger
    from htlc_escrow.schemas.escrow import CreateEscrowRequest

logger = get_logger(__name__)


class EscrowService:
    """Creates and settles escrows on one ledger."""

    def __init__(
        self,
        ledger: InMemoryLedger,
        factory_address: str,
        policy: EscrowPolicy = DEFAULT_POLICY,
    ) -> None:
        self._ledger = ledger
        self._factory = EscrowFactory(ledger, factory_address, policy)

    @property
    def factory(self) -> EscrowFactory:
        return self._factory

    @property
    def chain_id(self) -> str:
        return self._ledger.chain_id

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_src_escrow(
        self,
        ctx: CallContext,
        params: Immutables | CreateEscrowRequest,
    ) -> str:
        """Create and fund the source leg. Returns the escrow address."""
        immutables = self._to_immutables(params)
        with self._operation("create_src_escrow", sender=ctx.sender):
            address = self._factory.create_src_escrow(ctx, immutables)
        self._log_created(address, immutables, "SRC")
        return address

    def create_dst_escrow(
        self,
        ctx: CallContext,
        params: Immutables | CreateEscrowRequest,
    ) -> str:
        """Create and fund the destination leg. Returns the escrow address."""
        immutables = self._to_immutables(params)
        with self._operation("create_dst_escrow", sender=ctx.sender):
            address = self._factory.create_dst_escrow(ctx, immutables)
        self._log_created(address, immutables, "DST")
        return address

    def predict_escrow_address(self) -> str:
        """Address the next escrow created through this factory will receive."""
        return self._ledger.predict_address(self._factory.address)

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def withdraw(self, escrow_address: str, ctx: CallContext, secret: bytes) -> int:
        """Reveal the secret and release the escrow to its withdraw role."""
        escrow = self.get_escrow(escrow_address)
        with self._operation("withdraw", escrow=escrow.address, sender=ctx.sender):
            amount = escrow.withdraw(ctx, secret)
        logger.info(
            "escrow.withdrawn",
            chain_id=self.chain_id,
            escrow=escrow.address,
            recipient=ctx.sender,
            amount=amount,
        )
        return amount

    def cancel(self, escrow_address: str, ctx: CallContext) -> int:
        """Refund the escrow to its cancel role after the deadline."""
        escrow = self.get_escrow(escrow_address)
        with self._operation("cancel", escrow=escrow.address, sender=ctx.sender):
            amount = escrow.cancel(ctx)
        logger.info(
            "escrow.cancelled",
            chain_id=self.chain_id,
            escrow=escrow.address,
            recipient=ctx.sender,
            amount=amount,
        )
        return amount

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def get_escrow(self, escrow_address: str) -> Escrow:
        contract = self._ledger.get_contract(escrow_address)
        if not isinstance(contract, Escrow):
            raise EscrowNotFoundError(to_address(escrow_address))
        return contract

    def get_status(self, escrow_address: str) -> dict:
        """Escrow status with the settlement events still allowed."""
        escrow = self.get_escrow(escrow_address)
        return {
            "escrow": escrow.address,
            "side": escrow.side.value,
            "status": escrow.status.value,
            "held_balance": escrow.held_balance(),
            "cancellation_deadline": escrow.cancellation_deadline,
            "cancellable": escrow.immutables.timelocks.is_cancellable(
                escrow.created_at, self._ledger.now
            ),
            "allowed_events": escrow.allowed_events(),
        }

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _to_immutables(params: Immutables | CreateEscrowRequest) -> Immutables:
        if hasattr(params, "to_immutables"):
            return params.to_immutables()
        return params

    @contextmanager
    def _operation(self, operation: str, **context: str) -> Iterator[None]:
        """Run one operation in its own ledger transaction, logging rejections."""
        try:
            with self._ledger.transaction():
                yield
        except SwapError as exc:
            logger.warning(
                "escrow.operation_rejected",
                chain_id=self.chain_id,
                operation=operation,
                code=exc.code,
                error=exc.message,
                **context,
            )
            raise

    def _log_created(self, address: str, immutables: Immutables, side: str) -> None:
        logger.info(
            "escrow.created",
            chain_id=self.chain_id,
            side=side,
            escrow=address,
            order_hash=immutables.order_hash,
            hashlock=immutables.hashlock,
            maker=immutables.maker,
            taker=immutables.taker,
            amount=immutables.amount,
            native=immutables.is_native,
        )
