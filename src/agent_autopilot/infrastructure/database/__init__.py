"""Database infrastructure — engine, ORM models, and repositories."""

from agent_autopilot.infrastructure.database.engine import (
    close_db,
    create_db_engine,
    create_session_factory,
    init_db,
    session_scope,
)
from agent_autopilot.infrastructure.database.orm_models import (
    Base,
    BidRecordRow,
    OversightRequestRow,
)
from agent_autopilot.infrastructure.database.repositories import (
    BidRepository,
    OversightRepository,
)

__all__ = [
    "Base",
    "BidRecordRow",
    "OversightRequestRow",
    "BidRepository",
    "OversightRepository",
    "create_db_engine",
    "create_session_factory",
    "session_scope",
    "init_db",
    "close_db",
]
