"""In-memory host ledger.

A deterministic single-chain ledger that satisfies the Ledger protocol the
escrow core depends on. It is what tests, the simulation and the read-model
indexer run against; a real chain adapter would expose the same shape.

Properties the core relies on:
    - Transfers either fully succeed or raise.
    - transaction() is all-or-nothing: balances, nonces, deployed contracts and
      buffered log entries are restored when the scope raises. Contracts undo
      their own state through on_rollback(). A nested scope is a savepoint
      inside the outer one.
    - Log entries only become visible once the outermost scope commits.
    - A failing log subscriber is logged and never fails a committed scope.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from htlc_escrow.domain.addresses import NATIVE_ASSET, to_address
from htlc_escrow.domain.events import LedgerEvent, LogEntry
from htlc_escrow.domain.exceptions import (
    AssetTransferError,
    EscrowNotFoundError,
    InsufficientBalanceError,
    InvalidParametersError,
)
from htlc_escrow.domain.ledger_protocol import CallContext
from htlc_escrow.logging_config import get_logger

logger = get_logger(__name__)

LogSubscriber = Callable[[LogEntry], None]
RollbackHook = Callable[[], None]


class InMemoryLedger:
    """Balances, clock, contract registry and log of one simulated chain."""

    def __init__(self, chain_id: str = "devnet-a", genesis_time: int = 0) -> None:
        self.chain_id = chain_id
        self._now = genesis_time
        self._balances: dict[tuple[str, str], int] = {}
        self._nonces: dict[str, int] = {}
        self._contracts: dict[str, Any] = {}
        self._tokens: set[str] = set()
        self._logs: list[LogEntry] = []
        self._pending: list[tuple[str, LedgerEvent]] = []
        self._subscribers: list[LogSubscriber] = []
        self._rollback_hooks: list[RollbackHook] = []
        self._depth = 0

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    @property
    def now(self) -> int:
        return self._now

    def advance_time(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Ledger time cannot move backwards")
        self._now += seconds
        return self._now

    def set_time(self, timestamp: int) -> int:
        if timestamp < self._now:
            raise ValueError(f"Ledger time cannot move backwards ({timestamp} < {self._now})")
        self._now = timestamp
        return self._now

    def context(self, sender: int | str, value: int = 0) -> CallContext:
        """Build the context of a call made by `sender` at the current time."""
        return CallContext(sender=to_address(sender), value=value, timestamp=self._now)

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def register_token(self, token: int | str) -> str:
        address = to_address(token)
        if address == NATIVE_ASSET:
            raise InvalidParametersError("The zero address is reserved for the native asset")
        self._tokens.add(address)
        return address

    def mint(self, asset: int | str, account: int | str, amount: int) -> None:
        asset_address = to_address(asset)
        if asset_address != NATIVE_ASSET and asset_address not in self._tokens:
            raise AssetTransferError(f"Unknown token {asset_address}")
        if amount < 0:
            raise AssetTransferError("Cannot mint a negative amount")
        key = (asset_address, to_address(account))
        self._balances[key] = self._balances.get(key, 0) + amount

    def balance_of(self, asset: str, account: str) -> int:
        return self._balances.get((to_address(asset), to_address(account)), 0)

    def send_value(self, sender: str, recipient: str, amount: int) -> None:
        self._move(NATIVE_ASSET, sender, recipient, amount)

    def transfer_token(self, token: str, sender: str, recipient: str, amount: int) -> None:
        token_address = to_address(token)
        if token_address not in self._tokens:
            raise AssetTransferError(f"No token contract deployed at {token_address}")
        self._move(token_address, sender, recipient, amount)

    def _move(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise AssetTransferError("Cannot transfer a negative amount")
        source = (asset, to_address(sender))
        target = (asset, to_address(recipient))
        available = self._balances.get(source, 0)
        if available < amount:
            raise InsufficientBalanceError(asset, source[1], amount, available)
        self._balances[source] = available - amount
        self._balances[target] = self._balances.get(target, 0) + amount

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------

    def next_address(self, deployer: str) -> str:
        """Consume the deployer's nonce and return the derived address."""
        deployer_address = to_address(deployer)
        nonce = self._nonces.get(deployer_address, 0)
        self._nonces[deployer_address] = nonce + 1
        return self._derive_address(deployer_address, nonce)

    def predict_address(self, deployer: str) -> str:
        """Address the deployer's next creation will receive."""
        deployer_address = to_address(deployer)
        return self._derive_address(deployer_address, self._nonces.get(deployer_address, 0))

    def _derive_address(self, deployer: str, nonce: int) -> str:
        digest = hashlib.sha256(f"{self.chain_id}:{deployer}:{nonce}".encode()).digest()
        return to_address(digest[-20:])

    def deploy(self, address: str, contract: Any) -> None:
        contract_address = to_address(address)
        if contract_address in self._contracts:
            raise InvalidParametersError(f"Address already in use: {contract_address}")
        self._contracts[contract_address] = contract

    def get_contract(self, address: str) -> Any:
        contract = self._contracts.get(to_address(address))
        if contract is None:
            raise EscrowNotFoundError(to_address(address))
        return contract

    # ------------------------------------------------------------------
    # Log
    # ------------------------------------------------------------------

    def emit(self, emitter: str, event: LedgerEvent) -> None:
        self._pending.append((to_address(emitter), event))
        if self._depth == 0:
            self._commit_logs()

    @property
    def logs(self) -> tuple[LogEntry, ...]:
        return tuple(self._logs)

    def logs_since(self, sequence: int) -> list[LogEntry]:
        """Committed entries with a sequence strictly greater than `sequence`."""
        return self._logs[max(sequence, 0):]

    def subscribe(self, callback: LogSubscriber) -> None:
        """Call `callback` with every entry committed from now on."""
        self._subscribers.append(callback)

    def _commit_logs(self) -> None:
        committed = []
        for emitter, event in self._pending:
            entry = LogEntry(
                sequence=len(self._logs) + 1,
                timestamp=self._now,
                emitter=emitter,
                event=event,
            )
            self._logs.append(entry)
            committed.append(entry)
        self._pending.clear()
        for entry in committed:
            for callback in self._subscribers:
                try:
                    callback(entry)
                except Exception:
                    logger.exception(
                        "ledger.subscriber_failed",
                        chain_id=self.chain_id,
                        sequence=entry.sequence,
                    )

    # ------------------------------------------------------------------
    # Atomicity
    # ------------------------------------------------------------------

    def on_rollback(self, callback: RollbackHook) -> None:
        """Run `callback` if the enclosing transaction scope is rolled back.

        Outside a transaction nothing can be rolled back and the callback is
        dropped.
        """
        if self._depth:
            self._rollback_hooks.append(callback)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """All-or-nothing scope. A nested scope rolls back to where it began."""
        snapshot = (
            dict(self._balances),
            dict(self._nonces),
            dict(self._contracts),
            len(self._pending),
            len(self._rollback_hooks),
        )
        self._depth += 1
        try:
            yield
        except Exception as exc:
            self._rollback(snapshot)
            logger.debug(
                "ledger.transaction_rolled_back",
                chain_id=self.chain_id,
                depth=self._depth,
                reason=type(exc).__name__,
            )
            raise
        finally:
            self._depth -= 1
        if not self._depth:
            self._rollback_hooks.clear()
            self._commit_logs()

    def _rollback(self, snapshot: tuple) -> None:
        balances, nonces, contracts, pending, hooks = snapshot
        self._balances, self._nonces, self._contracts = balances, nonces, contracts
        del self._pending[pending:]
        undo = self._rollback_hooks[hooks:]
        del self._rollback_hooks[hooks:]
        for callback in reversed(undo):
            callback()
