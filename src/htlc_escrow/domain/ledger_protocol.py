"""Host ledger protocol.

Defines what the escrow core needs from the chain it runs on. This is a
Protocol (structural subtyping) so a ledger adapter does not need to inherit
from anything, it just needs to match the shape.

Concrete implementations:
    - infrastructure/ledger.py  (InMemoryLedger)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable
    from contextlib import AbstractContextManager

    from htlc_escrow.domain.events import LedgerEvent


@dataclass(frozen=True)
class CallContext:
    """Execution context of one ledger operation.

    Attributes:
        sender: Address of the caller.
        value: Native value attached to the call.
        timestamp: Ledger time at which the operation executes.
    """

    sender: str
    value: int = 0
    timestamp: int = 0


@runtime_checkable
class Ledger(Protocol):
    """Capabilities the escrow core invokes and trusts.

    Every transfer either fully succeeds or raises, and `transaction()`
    discards every effect of a scope that raises, including contract state
    registered through `on_rollback()`.
    """

    chain_id: str

    @property
    def now(self) -> int:
        """Current ledger time in seconds."""
        ...

    def balance_of(self, asset: str, account: str) -> int:
        ...

    def send_value(self, sender: str, recipient: str, amount: int) -> None:
        """Move native value between accounts."""
        ...

    def transfer_token(self, token: str, sender: str, recipient: str, amount: int) -> None:
        """Call the token's transfer entry point on behalf of `sender`."""
        ...

    def next_address(self, deployer: str) -> str:
        """Consume the deployer's nonce and return the derived contract address."""
        ...

    def deploy(self, address: str, contract: Any) -> None:
        ...

    def emit(self, emitter: str, event: LedgerEvent) -> None:
        ...

    def transaction(self) -> AbstractContextManager[None]:
        ...

    def on_rollback(self, callback: Callable[[], None]) -> None:
        """Run `callback` if the enclosing transaction scope is rolled back."""
        ...
