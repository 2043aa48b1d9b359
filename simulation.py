#!/usr/bin/env python3
"""HTLC Escrow — End-to-End Cross-Chain Swap Simulation.

Simulates three scenarios between a MakerBot and a TakerBot trading across two
in-memory ledgers (chain A holds the source leg, chain B the destination leg):

    Scenario 1: Happy Path
        - Maker locks 100 on chain A, taker locks 250 tokens on chain B
        - Maker withdraws on chain B, revealing the secret in the log
        - Taker reads the secret from the log and withdraws on chain A

    Scenario 2: Refund
        - Both legs are funded but the maker never reveals the secret
        - Taker cancels chain B once its (shorter) deadline passes
        - Maker cancels chain A once its (longer) deadline passes

    Scenario 3: Wrong Secret and Wrong Caller
        - Taker guesses a secret -> InvalidSecret, funds untouched
        - Outsider replays the real secret -> Unauthorized
        - Second withdraw on a settled leg -> AlreadySettled

Both chains are indexed into an in-memory SQLite read model after every
scenario, and the audit trail is printed from that index.

Usage:
    uv run python simulation.py
    uv run python simulation.py --scenario 1
    uv run python simulation.py --hash-algorithm sha3_256
"""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Configure structured logging BEFORE importing app modules
# ---------------------------------------------------------------------------
from htlc_escrow.logging_config import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False)
logger = get_logger("simulation")

from htlc_escrow.domain import (  # noqa: E402
    NATIVE_ASSET,
    EscrowPolicy,
    Immutables,
    SwapError,
    Timelocks,
    generate_secret,
    make_hashlock,
    to_address,
)
from htlc_escrow.domain.events import EscrowWithdrawn  # noqa: E402
from htlc_escrow.infrastructure.database.engine import (  # noqa: E402
    create_tables,
    make_session_factory,
)
from htlc_escrow.infrastructure.database.repositories import (  # noqa: E402
    EscrowRecordRepository,
    EventRecordRepository,
)
from htlc_escrow.infrastructure.ledger import InMemoryLedger  # noqa: E402
from htlc_escrow.services import EscrowIndexer, EscrowService  # noqa: E402

FACTORY_ADDRESS = to_address(0xF0)
TOKEN_B = to_address(0x7B)

# The source leg must outlive the destination leg so the maker cannot
# reveal the secret after the taker's refund window has opened.
SRC_TIMELOCKS = Timelocks(withdrawal_period=3600, cancellation_period=3600)
DST_TIMELOCKS = Timelocks(withdrawal_period=1800, cancellation_period=1800)

# Module-level state
_hash_algorithm = "sha256"


# ---------------------------------------------------------------------------
# World setup
# ---------------------------------------------------------------------------
@dataclass
class World:
    """Two ledgers, one escrow service per ledger."""

    chain_a: InMemoryLedger
    chain_b: InMemoryLedger
    service_a: EscrowService
    service_b: EscrowService


def build_world() -> World:
    policy = EscrowPolicy(hash_algorithm=_hash_algorithm)
    chain_a = InMemoryLedger(chain_id="chain-a", genesis_time=1_700_000_000)
    chain_b = InMemoryLedger(chain_id="chain-b", genesis_time=1_700_000_000)
    chain_b.register_token(TOKEN_B)

    chain_a.mint(NATIVE_ASSET, MakerBot.wallet, 1_000)
    chain_b.mint(TOKEN_B, TakerBot.wallet, 1_000)

    return World(
        chain_a=chain_a,
        chain_b=chain_b,
        service_a=EscrowService(chain_a, FACTORY_ADDRESS, policy),
        service_b=EscrowService(chain_b, FACTORY_ADDRESS, policy),
    )


def advance(world: World, seconds: int) -> None:
    """Move both clocks forward together."""
    world.chain_a.advance_time(seconds)
    world.chain_b.advance_time(seconds)


# ---------------------------------------------------------------------------
# Bot Agents
# ---------------------------------------------------------------------------
@dataclass
class MakerBot:
    """Holds the secret. Sells the native asset on chain A for tokens on chain B."""

    wallet = to_address(0xA11CE)
    secret: bytes = b""

    def start_swap(self) -> bytes:
        self.secret = generate_secret()
        return make_hashlock(self.secret, _hash_algorithm)

    def lock_source(self, world: World, order_hash: bytes, hashlock: bytes, amount: int) -> str:
        immutables = Immutables(
            order_hash=order_hash,
            hashlock=hashlock,
            maker=self.wallet,
            taker=TakerBot.wallet,
            token=NATIVE_ASSET,
            amount=amount,
            safety_deposit=0,
            timelocks=SRC_TIMELOCKS,
        )
        ctx = world.chain_a.context(self.wallet, value=amount)
        address = world.service_a.create_src_escrow(ctx, immutables)
        logger.info("🔵 MAKER: Source leg locked", chain="chain-a", escrow=address, amount=amount)
        return address

    def claim_destination(self, world: World, escrow: str) -> int:
        amount = world.service_b.withdraw(escrow, world.chain_b.context(self.wallet), self.secret)
        logger.info("🔵 MAKER: Destination claimed, secret revealed", escrow=escrow, amount=amount)
        return amount

    def refund_source(self, world: World, escrow: str) -> int:
        amount = world.service_a.cancel(escrow, world.chain_a.context(self.wallet))
        logger.info("🔵 MAKER: Source refunded", escrow=escrow, amount=amount)
        return amount


@dataclass
class TakerBot:
    """Learns the secret from chain B's log and claims the source leg with it."""

    wallet = to_address(0xB0B)

    def lock_destination(
        self, world: World, order_hash: bytes, hashlock: bytes, amount: int
    ) -> str:
        immutables = Immutables(
            order_hash=order_hash,
            hashlock=hashlock,
            maker=MakerBot.wallet,
            taker=self.wallet,
            token=TOKEN_B,
            amount=amount,
            safety_deposit=0,
            timelocks=DST_TIMELOCKS,
        )
        address = world.service_b.create_dst_escrow(world.chain_b.context(self.wallet), immutables)
        logger.info("🟢 TAKER: Destination leg locked", chain="chain-b", escrow=address, amount=amount)
        return address

    def watch_for_secret(self, world: World, escrow: str) -> bytes | None:
        for entry in world.chain_b.logs:
            if isinstance(entry.event, EscrowWithdrawn) and entry.event.escrow == escrow:
                logger.info("🟢 TAKER: Secret observed", sequence=entry.sequence)
                return entry.event.secret
        return None

    def claim_source(self, world: World, escrow: str, secret: bytes) -> int:
        amount = world.service_a.withdraw(escrow, world.chain_a.context(self.wallet), secret)
        logger.info("🟢 TAKER: Source claimed", escrow=escrow, amount=amount)
        return amount

    def refund_destination(self, world: World, escrow: str) -> int:
        amount = world.service_b.cancel(escrow, world.chain_b.context(self.wallet))
        logger.info("🟢 TAKER: Destination refunded", escrow=escrow, amount=amount)
        return amount


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------
def banner(text: str) -> None:
    """Print a prominent banner."""
    width = 70
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width + "\n")


def section(text: str) -> None:
    """Print a section header."""
    print(f"\n--- {text} ---\n")


def print_balances(world: World) -> None:
    a, b = world.chain_a, world.chain_b
    print("  Balances:")
    print(
        f"    maker  chain-a native={a.balance_of(NATIVE_ASSET, MakerBot.wallet):>5}"
        f"   chain-b token={b.balance_of(TOKEN_B, MakerBot.wallet):>5}"
    )
    print(
        f"    taker  chain-a native={a.balance_of(NATIVE_ASSET, TakerBot.wallet):>5}"
        f"   chain-b token={b.balance_of(TOKEN_B, TakerBot.wallet):>5}"
    )


def expect_failure(label: str, action) -> None:  # noqa: ANN001
    """Run `action` and print the domain error it is expected to raise."""
    try:
        action()
    except SwapError as exc:
        print(f"  ❌ {label}: {exc.code} ({exc.message})")
        return
    raise RuntimeError(f"{label} unexpectedly succeeded")


async def index_and_print(world: World, escrows: list[str]) -> None:
    """Index both chains into a fresh SQLite read model and print the audit trail."""
    from sqlalchemy.ext.asyncio import create_async_engine

    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    try:
        await create_tables(engine)
        async with make_session_factory(engine)() as session:
            for ledger in (world.chain_a, world.chain_b):
                await EscrowIndexer(session, ledger).sync()
            await session.commit()

            escrow_repo = EscrowRecordRepository(session)
            event_repo = EventRecordRepository(session)
            print("\n  📜 Audit Trail (read model):")
            for address in escrows:
                record = await escrow_repo.get_by_address(address)
                if record is None:
                    continue
                print(f"    {record.chain_id} {record.side} {address[:12]}... -> {record.status}")
                for evt in await event_repo.get_by_escrow(address):
                    print(f"      #{evt.sequence} [{evt.event_type}] at t={evt.ledger_timestamp}")
            print()
    finally:
        await engine.dispose()


# ===========================================================================
# Scenario 1: Happy Path
# ===========================================================================
async def scenario_1_happy_path() -> None:
    """Both legs settle with the same secret."""
    banner("SCENARIO 1: Happy Path — Secret Revealed and Replayed")

    world = build_world()
    maker, taker = MakerBot(), TakerBot()
    order_hash = generate_secret()

    section("Step 1: Maker commits to a secret and locks the source leg")
    hashlock = maker.start_swap()
    src = maker.lock_source(world, order_hash, hashlock, amount=100)

    section("Step 2: Taker locks the destination leg with the same hashlock")
    dst = taker.lock_destination(world, order_hash, hashlock, amount=250)
    print_balances(world)

    section("Step 3: Maker claims the destination leg")
    advance(world, 60)
    maker.claim_destination(world, dst)

    section("Step 4: Taker reads the secret from chain B and claims the source leg")
    secret = taker.watch_for_secret(world, dst)
    if secret is None:
        raise RuntimeError("Secret was not revealed on chain B")
    advance(world, 60)
    taker.claim_source(world, src, secret)

    print_balances(world)
    await index_and_print(world, [src, dst])


# ===========================================================================
# Scenario 2: Refund
# ===========================================================================
async def scenario_2_refund() -> None:
    """The maker goes silent; both parties recover their deposits."""
    banner("SCENARIO 2: Refund — Secret Never Revealed")

    world = build_world()
    maker, taker = MakerBot(), TakerBot()
    order_hash = generate_secret()

    section("Step 1: Both legs are locked")
    hashlock = maker.start_swap()
    src = maker.lock_source(world, order_hash, hashlock, amount=100)
    dst = taker.lock_destination(world, order_hash, hashlock, amount=250)

    section("Step 2: Taker tries to refund too early")
    advance(world, DST_TIMELOCKS.total_period - 1)
    expect_failure("Early refund", lambda: taker.refund_destination(world, dst))

    section("Step 3: Destination deadline passes, taker refunds")
    advance(world, 1)
    taker.refund_destination(world, dst)

    section("Step 4: Source deadline passes, maker refunds")
    advance(world, SRC_TIMELOCKS.total_period - DST_TIMELOCKS.total_period)
    maker.refund_source(world, src)

    print_balances(world)
    await index_and_print(world, [src, dst])


# ===========================================================================
# Scenario 3: Wrong Secret and Wrong Caller
# ===========================================================================
async def scenario_3_rejections() -> None:
    """Guards reject bad secrets, wrong callers and double settlement."""
    banner("SCENARIO 3: Wrong Secret, Wrong Caller, Double Settlement")

    world = build_world()
    maker, taker = MakerBot(), TakerBot()
    order_hash = generate_secret()
    outsider = to_address(0xE7E)

    hashlock = maker.start_swap()
    src = maker.lock_source(world, order_hash, hashlock, amount=100)

    section("Attempt 1: Taker guesses the secret")
    expect_failure("Guessed secret", lambda: taker.claim_source(world, src, generate_secret()))

    section("Attempt 2: Outsider replays the real secret")
    expect_failure(
        "Outsider withdraw",
        lambda: world.service_a.withdraw(src, world.chain_a.context(outsider), maker.secret),
    )

    section("Attempt 3: Taker claims with the real secret, then tries again")
    taker.claim_source(world, src, maker.secret)
    expect_failure("Second withdraw", lambda: taker.claim_source(world, src, maker.secret))

    print_balances(world)
    await index_and_print(world, [src])


# ===========================================================================
# Main
# ===========================================================================
SCENARIOS = {
    1: scenario_1_happy_path,
    2: scenario_2_refund,
    3: scenario_3_rejections,
}


async def run_all() -> None:
    """Run all scenarios sequentially."""
    print("\n" + "🚀" * 35)
    print("  HTLC ESCROW — CROSS-CHAIN SWAP SIMULATION")
    print(f"  Hash algorithm: {_hash_algorithm}")
    print("🚀" * 35 + "\n")

    for scenario in SCENARIOS.values():
        await scenario()

    print("\n" + "=" * 70)
    print("  ✅ ALL SCENARIOS COMPLETED SUCCESSFULLY")
    print("=" * 70 + "\n")


async def run_scenario(num: int) -> None:
    """Run a specific scenario."""
    if num not in SCENARIOS:
        print(f"Unknown scenario {num}. Available: {', '.join(map(str, SCENARIOS))}")
        return
    await SCENARIOS[num]()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="HTLC Escrow Swap Simulation")
    parser.add_argument(
        "--scenario",
        type=int,
        default=0,
        help="Run a specific scenario (1, 2, or 3). Default: run all.",
    )
    parser.add_argument(
        "--hash-algorithm",
        choices=["sha256", "sha3_256", "blake2b"],
        default="sha256",
        help="Digest used for the hashlock on both legs.",
    )
    args = parser.parse_args()
    _hash_algorithm = args.hash_algorithm

    if args.scenario == 0:
        asyncio.run(run_all())
    else:
        asyncio.run(run_scenario(args.scenario))
