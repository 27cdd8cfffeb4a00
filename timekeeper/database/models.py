"""SQLAlchemy database models for campaigns, timelines, story arcs and events."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship

from ..timeline.intervals import TimedEntity


def new_id(prefix: str) -> str:
    """Generate a prefixed random identifier, e.g. ``camp-3f2a9c1d04be``."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class Campaign(Base):
    """Campaign model - owns exactly one timeline."""

    __tablename__ = "campaigns"

    id = Column(String(64), primary_key=True, default=lambda: new_id("camp"))
    name = Column(String(100), nullable=False)
    summary = Column(Text, default="")
    world_id = Column(String(64), default="")  # Parent world, owned elsewhere

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    timeline = relationship(
        "TimelineRecord", back_populates="campaign", uselist=False, cascade="all, delete-orphan"
    )
    story_arcs = relationship("StoryArc", back_populates="campaign", cascade="all, delete-orphan")
    events = relationship("Event", back_populates="campaign", cascade="all, delete-orphan")


class TimelineRecord(Base):
    """Persisted timeline: current in-fiction moment and concurrency version."""

    __tablename__ = "campaign_timelines"

    campaign_id = Column(String(64), ForeignKey("campaigns.id"), primary_key=True)
    current_moment = Column(Date, nullable=False)
    version = Column(Integer, nullable=False, default=1)  # Bumped on every advance

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    campaign = relationship("Campaign", back_populates="timeline")


class StoryArc(Base):
    """Story arc model - a narrative thread with an optional interval."""

    __tablename__ = "story_arcs"

    id = Column(String(64), primary_key=True, default=lambda: new_id("arc"))
    campaign_id = Column(String(64), ForeignKey("campaigns.id"), nullable=False)
    name = Column(String(200), nullable=False)
    summary = Column(Text, default="")

    # Interval (None = open on that side)
    beginning = Column(Date, nullable=True)
    ending = Column(Date, nullable=True)

    # Relationships
    campaign = relationship("Campaign", back_populates="story_arcs")
    events = relationship("Event", back_populates="story_arc")

    def to_timed_entity(self) -> TimedEntity:
        """Convert to the engine's TimedEntity."""
        return TimedEntity(
            id=self.id,
            campaign_id=self.campaign_id,
            beginning=self.beginning,
            ending=self.ending,
            name=self.name,
        )


class Event(Base):
    """In-world event model, optionally attached to a story arc."""

    __tablename__ = "events"

    id = Column(String(64), primary_key=True, default=lambda: new_id("evt"))
    campaign_id = Column(String(64), ForeignKey("campaigns.id"), nullable=False)
    story_arc_id = Column(String(64), ForeignKey("story_arcs.id"), nullable=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, default="")

    # Interval (None = open on that side)
    beginning = Column(Date, nullable=True)
    ending = Column(Date, nullable=True)

    # Relationships
    campaign = relationship("Campaign", back_populates="events")
    story_arc = relationship("StoryArc", back_populates="events")

    def to_timed_entity(self) -> TimedEntity:
        """Convert to the engine's TimedEntity."""
        return TimedEntity(
            id=self.id,
            campaign_id=self.campaign_id,
            beginning=self.beginning,
            ending=self.ending,
            name=self.name,
        )
