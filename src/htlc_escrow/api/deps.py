"""FastAPI dependency injection providers.

These are used with Depends() in route handlers to inject database sessions
and repositories.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002 - resolved by FastAPI at runtime

from htlc_escrow.infrastructure.database.engine import get_async_session
from htlc_escrow.infrastructure.database.repositories import (
    EscrowRecordRepository,
    EventRecordRepository,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session for a request."""
    async for session in get_async_session():
        yield session


async def get_escrow_repo(
    session: AsyncSession = Depends(get_db_session),
) -> EscrowRecordRepository:
    """Provide an EscrowRecordRepository bound to the current session."""
    return EscrowRecordRepository(session)


async def get_event_repo(
    session: AsyncSession = Depends(get_db_session),
) -> EventRecordRepository:
    """Provide an EventRecordRepository bound to the current session."""
    return EventRecordRepository(session)
