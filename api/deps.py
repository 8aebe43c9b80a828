from __future__ import annotations

from core.config import get_settings
from core.db import get_session_factory
from core.services.scheduling import SchedulingService
from core.stores.sql import SqlStore


def get_scheduling_service() -> SchedulingService:
    """One store adapter per request; each mutation runs in its own transaction."""
    return SchedulingService(SqlStore(get_session_factory()), get_settings())
