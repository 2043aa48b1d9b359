"""Escrow: custody of one leg of a cross-chain atomic swap.

A single Escrow type serves both legs. The side only selects a role mapping:

    side  withdraw (secret)   cancel (after deadline)
    SRC   taker               maker
    DST   maker               taker

Funds always go to the party holding the role the operation requires. The
secret, once revealed on one leg through EscrowWithdrawn, is public and can
be replayed on the other leg by the party entitled there.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from statemachine.exceptions import TransitionNotAllowed

from htlc_escrow.domain.addresses import NATIVE_ASSET, to_address
from htlc_escrow.domain.enums import EscrowSide, EscrowStatus, HashAlgorithm, Role
from htlc_escrow.domain.events import EscrowCancelled, EscrowWithdrawn
from htlc_escrow.domain.exceptions import (
    AlreadySettledError,
    InvalidParametersError,
    InvalidSecretError,
    TooEarlyError,
    TooLateError,
    UnauthorizedError,
)
from htlc_escrow.domain.hashlock import get_hash_function, verify_secret
from htlc_escrow.domain.state_machine import EscrowStateMachine

if TYPE_CHECKING:
    from collections.abc import Callable

    from htlc_escrow.config import Settings
    from htlc_escrow.domain.events import LedgerEvent
    from htlc_escrow.domain.immutables import Immutables
    from htlc_escrow.domain.ledger_protocol import CallContext, Ledger


@dataclass(frozen=True)
class RoleMapping:
    """Which role may withdraw and which may cancel."""

    withdraw: Role
    cancel: Role


ROLE_MAPPINGS: dict[EscrowSide, RoleMapping] = {
    EscrowSide.SRC: RoleMapping(withdraw=Role.TAKER, cancel=Role.MAKER),
    EscrowSide.DST: RoleMapping(withdraw=Role.MAKER, cancel=Role.TAKER),
}


@dataclass(frozen=True)
class EscrowPolicy:
    """Rules the factory hands to every escrow it creates.

    Attributes:
        hash_algorithm: Digest used to check secrets against the hashlock.
        require_safety_deposit: Require the safety deposit in the attached value.
        enforce_withdrawal_deadline: Reject withdraw at or after the
            cancellation deadline. Off by default: withdraw stays open until
            the escrow is settled.
    """

    hash_algorithm: str = HashAlgorithm.SHA256.value
    require_safety_deposit: bool = False
    enforce_withdrawal_deadline: bool = False

    def __post_init__(self) -> None:
        get_hash_function(self.hash_algorithm)

    @classmethod
    def from_settings(cls, settings: Settings) -> EscrowPolicy:
        return cls(
            hash_algorithm=settings.hash_algorithm,
            require_safety_deposit=settings.require_safety_deposit,
            enforce_withdrawal_deadline=settings.enforce_withdrawal_deadline,
        )

    def expected_funding(self, immutables: Immutables) -> int | None:
        """Native value the creation call must attach, or None if unchecked."""
        if immutables.is_native:
            if self.require_safety_deposit:
                return immutables.amount + immutables.safety_deposit
            return immutables.amount
        if self.require_safety_deposit:
            return immutables.safety_deposit
        return None


DEFAULT_POLICY = EscrowPolicy()


class Escrow:
    """Immutable-parameter custodial record for one swap leg.

    Construction validates the parameters and captures `created_at`; the
    factory moves the funds in the same ledger transaction.
    """

    def __init__(
        self,
        address: str,
        side: EscrowSide,
        immutables: Immutables,
        ctx: CallContext,
        ledger: Ledger,
        policy: EscrowPolicy = DEFAULT_POLICY,
    ) -> None:
        immutables.validate_parties()
        expected = policy.expected_funding(immutables)
        if expected is not None and ctx.value != expected:
            raise InvalidParametersError(
                f"Attached value {ctx.value} does not match required funding {expected}"
            )

        self.address = to_address(address)
        self.side = EscrowSide(side)
        self.immutables = immutables
        self.created_at = ctx.timestamp
        self.policy = policy
        self._ledger = ledger
        self._machine = EscrowStateMachine()

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    @property
    def status(self) -> EscrowStatus:
        return EscrowStatus(self._machine.status)

    @property
    def roles(self) -> RoleMapping:
        return ROLE_MAPPINGS[self.side]

    @property
    def cancellation_deadline(self) -> int:
        return self.immutables.timelocks.cancellation_deadline(self.created_at)

    @property
    def withdrawal_deadline(self) -> int:
        return self.immutables.timelocks.withdrawal_deadline(self.created_at)

    def allowed_events(self) -> list[str]:
        return self._machine.get_allowed_events()

    def held_balance(self) -> int:
        """Balance of the escrowed asset currently held at this address."""
        return self._ledger.balance_of(self.immutables.token, self.address)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def withdraw(self, ctx: CallContext, secret: bytes) -> int:
        """Release the held balance to the withdraw role against the secret.

        Returns:
            The amount of the escrowed asset transferred.

        Raises:
            AlreadySettledError, UnauthorizedError, InvalidSecretError,
            TooLateError (strict deadline policy only).
        """
        self._require_active()
        recipient = self._require_role(ctx, self.roles.withdraw, "withdraw")
        if not verify_secret(secret, self.immutables.hashlock, self.policy.hash_algorithm):
            raise InvalidSecretError(self.address)
        if self.policy.enforce_withdrawal_deadline and ctx.timestamp >= self.cancellation_deadline:
            raise TooLateError(ctx.timestamp, self.cancellation_deadline)

        return self._settle(
            "redeem",
            recipient,
            lambda amount: EscrowWithdrawn(
                escrow=self.address, secret=secret, recipient=recipient, amount=amount
            ),
        )

    def cancel(self, ctx: CallContext) -> int:
        """Refund the held balance to the cancel role after the deadline.

        Raises:
            AlreadySettledError, UnauthorizedError, TooEarlyError.
        """
        self._require_active()
        recipient = self._require_role(ctx, self.roles.cancel, "cancel")
        if not self.immutables.timelocks.is_cancellable(self.created_at, ctx.timestamp):
            raise TooEarlyError(ctx.timestamp, self.cancellation_deadline)

        return self._settle(
            "refund",
            recipient,
            lambda amount: EscrowCancelled(escrow=self.address, recipient=recipient, amount=amount),
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require_active(self) -> None:
        if self.status is not EscrowStatus.ACTIVE:
            raise AlreadySettledError(self.address, self.status.value)

    def _require_role(self, ctx: CallContext, role: Role, operation: str) -> str:
        party = self.immutables.party(role)
        if to_address(ctx.sender) != party:
            raise UnauthorizedError(to_address(ctx.sender), role.value, operation)
        return party

    def _settle(
        self,
        event_name: str,
        recipient: str,
        record: Callable[[int], LedgerEvent],
    ) -> int:
        """Flip the terminal flag, then pay out and log in one ledger transaction.

        The flag is restored by the ledger whenever this scope, or any scope
        enclosing it, rolls back.
        """
        with self._ledger.transaction():
            previous = self._machine.status
            try:
                getattr(self._machine, event_name)()
            except TransitionNotAllowed as err:
                raise AlreadySettledError(self.address, previous) from err
            self._ledger.on_rollback(lambda: self._restore_status(previous))
            amount = self._release_to(recipient)
            self._ledger.emit(self.address, record(amount))
        return amount

    def _restore_status(self, status: str) -> None:
        self._machine = EscrowStateMachine(status)

    def _release_to(self, recipient: str) -> int:
        token = self.immutables.token
        amount = self._ledger.balance_of(token, self.address)
        if token == NATIVE_ASSET:
            if amount:
                self._ledger.send_value(self.address, recipient, amount)
            return amount
        if amount:
            self._ledger.transfer_token(token, self.address, recipient, amount)
        # Native value attached to a token escrow is the safety deposit.
        deposit = self._ledger.balance_of(NATIVE_ASSET, self.address)
        if deposit:
            self._ledger.send_value(self.address, recipient, deposit)
        return amount

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "side": self.side.value,
            "status": self.status.value,
            "created_at": self.created_at,
            "withdrawal_deadline": self.withdrawal_deadline,
            "cancellation_deadline": self.cancellation_deadline,
            **self.immutables.to_dict(),
        }

    def __repr__(self) -> str:
        return f"<Escrow {self.side.value} address={self.address} status={self.status.value}>"
