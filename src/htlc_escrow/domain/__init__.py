"""Domain layer: escrow state machine, factory and codecs, free of framework imports."""

from htlc_escrow.domain.addresses import NATIVE_ASSET, ZERO_ADDRESS, to_address, to_bytes32
from htlc_escrow.domain.enums import (
    EscrowSide,
    EscrowStatus,
    EventType,
    HashAlgorithm,
    Role,
)
from htlc_escrow.domain.escrow import (
    DEFAULT_POLICY,
    ROLE_MAPPINGS,
    Escrow,
    EscrowPolicy,
    RoleMapping,
)
from htlc_escrow.domain.events import (
    EscrowCancelled,
    EscrowCreated,
    EscrowWithdrawn,
    LogEntry,
)
from htlc_escrow.domain.exceptions import (
    AlreadySettledError,
    AssetTransferError,
    EscrowNotFoundError,
    InsufficientBalanceError,
    InvalidParametersError,
    InvalidSecretError,
    SwapError,
    TooEarlyError,
    TooLateError,
    UnauthorizedError,
)
from htlc_escrow.domain.factory import EscrowFactory
from htlc_escrow.domain.hashlock import generate_secret, make_hashlock, verify_secret
from htlc_escrow.domain.immutables import Immutables
from htlc_escrow.domain.ledger_protocol import CallContext, Ledger
from htlc_escrow.domain.state_machine import EscrowStateMachine
from htlc_escrow.domain.timelocks import Timelocks, decode_timelocks, encode_timelocks

__all__ = [
    "NATIVE_ASSET",
    "ZERO_ADDRESS",
    "to_address",
    "to_bytes32",
    "EscrowSide",
    "EscrowStatus",
    "EventType",
    "HashAlgorithm",
    "Role",
    "DEFAULT_POLICY",
    "ROLE_MAPPINGS",
    "Escrow",
    "EscrowPolicy",
    "RoleMapping",
    "EscrowCancelled",
    "EscrowCreated",
    "EscrowWithdrawn",
    "LogEntry",
    "AlreadySettledError",
    "AssetTransferError",
    "EscrowNotFoundError",
    "InsufficientBalanceError",
    "InvalidParametersError",
    "InvalidSecretError",
    "SwapError",
    "TooEarlyError",
    "TooLateError",
    "UnauthorizedError",
    "EscrowFactory",
    "generate_secret",
    "make_hashlock",
    "verify_secret",
    "Immutables",
    "CallContext",
    "Ledger",
    "EscrowStateMachine",
    "Timelocks",
    "decode_timelocks",
    "encode_timelocks",
]
