from arbiter.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from arbiter.database.engine import async_session, engine
from arbiter.database.session import get_db
from arbiter.database.transaction import unit_of_work

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "async_session",
    "engine",
    "get_db",
    "unit_of_work",
]
