"""Escrow factory.

A stateless constructor dispatcher: it builds the escrow for the requested
side, moves the funds into it and logs EscrowCreated, all inside one ledger
transaction. It keeps no registry and does not reject duplicate order
hashes; discovery is left to observers of the EscrowCreated log.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from htlc_escrow.domain.addresses import to_address
from htlc_escrow.domain.enums import EscrowSide
from htlc_escrow.domain.escrow import DEFAULT_POLICY, Escrow, EscrowPolicy
from htlc_escrow.domain.events import EscrowCreated

if TYPE_CHECKING:
    from htlc_escrow.domain.immutables import Immutables
    from htlc_escrow.domain.ledger_protocol import CallContext, Ledger


class EscrowFactory:
    """Creates and funds escrows on one ledger.

    Usage:
        factory = EscrowFactory(ledger, address="0x...")
        escrow_address = factory.create_src_escrow(ctx, immutables)
    """

    def __init__(
        self,
        ledger: Ledger,
        address: str,
        policy: EscrowPolicy = DEFAULT_POLICY,
    ) -> None:
        self.address = to_address(address)
        self.policy = policy
        self._ledger = ledger

    def create_src_escrow(self, ctx: CallContext, immutables: Immutables) -> str:
        """Create the source-chain leg (taker withdraws, maker cancels)."""
        return self._create(EscrowSide.SRC, ctx, immutables)

    def create_dst_escrow(self, ctx: CallContext, immutables: Immutables) -> str:
        """Create the destination-chain leg (maker withdraws, taker cancels)."""
        return self._create(EscrowSide.DST, ctx, immutables)

    def _create(self, side: EscrowSide, ctx: CallContext, immutables: Immutables) -> str:
        with self._ledger.transaction():
            escrow_address = self._ledger.next_address(self.address)
            escrow = Escrow(
                address=escrow_address,
                side=side,
                immutables=immutables,
                ctx=ctx,
                ledger=self._ledger,
                policy=self.policy,
            )
            if ctx.value:
                self._ledger.send_value(ctx.sender, escrow_address, ctx.value)
            if not immutables.is_native and immutables.amount:
                self._ledger.transfer_token(
                    immutables.token, ctx.sender, escrow_address, immutables.amount
                )
            self._ledger.deploy(escrow_address, escrow)
            self._ledger.emit(
                self.address,
                EscrowCreated(
                    maker=immutables.maker,
                    taker=immutables.taker,
                    escrow=escrow_address,
                    order_hash=immutables.order_hash,
                ),
            )
        return escrow_address
