"""Database infrastructure — engine, ORM models, and repositories."""

from htlc_escrow.infrastructure.database.engine import (
    close_db,
    create_tables,
    get_async_session,
    init_db,
    make_session_factory,
)
from htlc_escrow.infrastructure.database.orm_models import (
    Base,
    EscrowEventRecord,
    EscrowRecord,
)
from htlc_escrow.infrastructure.database.repositories import (
    EscrowRecordRepository,
    EventRecordRepository,
)

__all__ = [
    "Base",
    "EscrowEventRecord",
    "EscrowRecord",
    "EscrowRecordRepository",
    "EventRecordRepository",
    "close_db",
    "create_tables",
    "get_async_session",
    "init_db",
    "make_session_factory",
]
