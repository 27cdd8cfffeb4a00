"""Database module for SQLAlchemy models, session management and the timeline store."""

from .models import Base, Campaign, Event, StoryArc, TimelineRecord
from .repository import TimelineStore
from .session import close_db, get_session, init_db, session_scope

__all__ = [
    "Base",
    "Campaign",
    "Event",
    "StoryArc",
    "TimelineRecord",
    "TimelineStore",
    "close_db",
    "get_session",
    "init_db",
    "session_scope",
]
