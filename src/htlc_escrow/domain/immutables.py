"""Escrow immutables: the parameters fixed once at creation."""

from __future__ import annotations

from dataclasses import dataclass

from htlc_escrow.domain.addresses import (
    NATIVE_ASSET,
    hex32,
    is_zero_address,
    to_address,
    to_bytes32,
)
from htlc_escrow.domain.enums import Role
from htlc_escrow.domain.exceptions import InvalidParametersError
from htlc_escrow.domain.timelocks import Timelocks


@dataclass(frozen=True)
class Immutables:
    """Parameters of one swap leg.

    Attributes:
        order_hash: 32-byte id correlating the escrow to an off-chain order.
        hashlock: 32-byte digest of the secret.
        maker: Party who funds the source leg.
        taker: Counterparty who funds the destination leg.
        token: Asset held; NATIVE_ASSET for the ledger's native asset.
        amount: Principal released on withdraw or refunded on cancel.
        safety_deposit: Incentive amount held alongside the principal.
        timelocks: Withdrawal and cancellation periods.
    """

    order_hash: bytes
    hashlock: bytes
    maker: str
    taker: str
    token: str
    amount: int
    safety_deposit: int
    timelocks: Timelocks

    @classmethod
    def from_raw(
        cls,
        order_hash: int | str | bytes,
        hashlock: int | str | bytes,
        maker: int | str,
        taker: int | str,
        token: int | str,
        amount: int,
        safety_deposit: int,
        timelocks: int | Timelocks,
    ) -> Immutables:
        """Build immutables from wire encodings.

        Addresses may be unsigned integers and are truncated to 160 bits;
        `timelocks` may be the packed 256-bit value.

        Raises:
            InvalidParametersError: On malformed identifiers or negative amounts.
        """
        try:
            decoded = timelocks if isinstance(timelocks, Timelocks) else Timelocks.decode(timelocks)
            return cls(
                order_hash=to_bytes32(order_hash),
                hashlock=to_bytes32(hashlock),
                maker=to_address(maker),
                taker=to_address(taker),
                token=to_address(token),
                amount=amount,
                safety_deposit=safety_deposit,
                timelocks=decoded,
            )
        except (TypeError, ValueError) as exc:
            raise InvalidParametersError(str(exc)) from exc

    def __post_init__(self) -> None:
        for name in ("amount", "safety_deposit"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidParametersError(f"{name} must be a non-negative integer")

    @property
    def is_native(self) -> bool:
        return self.token == NATIVE_ASSET

    def party(self, role: Role) -> str:
        return self.maker if role is Role.MAKER else self.taker

    def validate_parties(self) -> None:
        """Reject escrows whose maker or taker is the zero address."""
        if is_zero_address(self.maker):
            raise InvalidParametersError("maker must not be the zero address")
        if is_zero_address(self.taker):
            raise InvalidParametersError("taker must not be the zero address")

    def to_dict(self) -> dict:
        return {
            "order_hash": hex32(self.order_hash),
            "hashlock": hex32(self.hashlock),
            "maker": self.maker,
            "taker": self.taker,
            "token": self.token,
            "amount": self.amount,
            "safety_deposit": self.safety_deposit,
            "withdrawal_period": self.timelocks.withdrawal_period,
            "cancellation_period": self.timelocks.cancellation_period,
            "timelocks": self.timelocks.encode(),
        }
