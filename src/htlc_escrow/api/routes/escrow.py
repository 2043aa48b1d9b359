"""Escrow read-model REST API routes.

The index is populated by the indexer from ledger logs; these endpoints only
read it. Creating and settling escrows happens against a ledger, not here.

Routes:
    GET    /api/v1/escrows                    — Search by order hash / hashlock / chain
    GET    /api/v1/escrows/{address}          — Get one indexed escrow
    GET    /api/v1/escrows/{address}/events   — Get its indexed log entries
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from htlc_escrow.api.deps import get_escrow_repo, get_event_repo
from htlc_escrow.domain.addresses import hex32, to_address, to_bytes32
from htlc_escrow.domain.enums import EscrowStatus
from htlc_escrow.domain.exceptions import EscrowNotFoundError, InvalidParametersError
from htlc_escrow.infrastructure.database.repositories import (
    EscrowRecordRepository,
    EventRecordRepository,
)
from htlc_escrow.logging_config import get_logger
from htlc_escrow.schemas.escrow import EscrowEventResponse, EscrowResponse

router = APIRouter(prefix="/api/v1/escrows", tags=["Escrows"])
logger = get_logger(__name__)


def _normalize_address(address: str) -> str:
    try:
        return to_address(address)
    except (TypeError, ValueError) as exc:
        raise InvalidParametersError(f"Malformed address: {address!r}") from exc


def _normalize_bytes32(value: str | None, field: str) -> str | None:
    if value is None:
        return None
    try:
        return hex32(to_bytes32(value))
    except (TypeError, ValueError) as exc:
        raise InvalidParametersError(f"Malformed {field}: {value!r}") from exc


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=list[EscrowResponse],
    summary="Search indexed escrows",
)
async def search_escrows(
    order_hash: str | None = Query(default=None, description="32-byte order id (hex)"),
    hashlock: str | None = Query(default=None, description="32-byte hashlock (hex)"),
    chain_id: str | None = Query(default=None),
    status: EscrowStatus | None = Query(default=None),
    repo: EscrowRecordRepository = Depends(get_escrow_repo),
) -> list[EscrowResponse]:
    """Both legs of a swap share the order hash and hashlock, so either finds the pair."""
    records = await repo.search(
        order_hash=_normalize_bytes32(order_hash, "order_hash"),
        hashlock=_normalize_bytes32(hashlock, "hashlock"),
        chain_id=chain_id,
        status=status,
    )
    return [EscrowResponse.model_validate(r) for r in records]


@router.get(
    "/{address}",
    response_model=EscrowResponse,
    summary="Get escrow details",
)
async def get_escrow(
    address: str,
    repo: EscrowRecordRepository = Depends(get_escrow_repo),
) -> EscrowResponse:
    record = await repo.get_by_address(_normalize_address(address))
    if record is None:
        raise EscrowNotFoundError(address)
    return EscrowResponse.model_validate(record)


@router.get(
    "/{address}/events",
    response_model=list[EscrowEventResponse],
    summary="Get indexed log entries",
)
async def get_escrow_events(
    address: str,
    escrow_repo: EscrowRecordRepository = Depends(get_escrow_repo),
    event_repo: EventRecordRepository = Depends(get_event_repo),
) -> list[EscrowEventResponse]:
    """Return every indexed entry for an escrow in log order."""
    normalized = _normalize_address(address)
    if await escrow_repo.get_by_address(normalized) is None:
        raise EscrowNotFoundError(address)
    events = await event_repo.get_by_escrow(normalized)
    return [EscrowEventResponse.model_validate(e) for e in events]
