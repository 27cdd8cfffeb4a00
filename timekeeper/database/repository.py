"""SQLAlchemy-backed store for campaign timelines and timed entities.

Each public method runs in its own transactional scope. The only write to a
timeline after creation is compare_and_swap, a conditional UPDATE keyed on
the version the caller read.
"""

import logging
from datetime import date

from sqlalchemy import func, select, update

from ..config import get_config
from ..timeline.errors import NotFoundError, ValidationError
from ..timeline.intervals import TimedEntity
from ..timeline.state import Timeline
from .models import Campaign, Event, StoryArc, TimelineRecord
from .session import session_scope

logger = logging.getLogger(__name__)


def _check_interval(beginning: date | None, ending: date | None) -> None:
    if beginning is not None and ending is not None and ending < beginning:
        raise ValidationError(
            f"beginning {beginning.isoformat()} is after ending {ending.isoformat()}"
        )


class TimelineStore:
    """Persistence for campaigns, their timelines, story arcs and events."""

    def create_campaign(
        self,
        name: str,
        summary: str = "",
        world_id: str = "",
        start: date | None = None,
        campaign_id: str | None = None,
    ) -> tuple[Campaign, Timeline]:
        """Create a campaign together with its timeline record.

        Args:
            name: Campaign name, unique per world (case-insensitive)
            summary: Short description
            world_id: Parent world identifier
            start: Initial moment. Defaults to timeline.default_start from config
            campaign_id: Explicit id. Generated when omitted

        Returns:
            Tuple of (Campaign, Timeline)

        Raises:
            ValidationError: If the name is blank or already used in the world
        """
        if not name.strip():
            raise ValidationError("Campaign name is required")

        timeline_config = get_config().timeline
        if start is None:
            start = timeline_config.default_start

        with session_scope() as session:
            existing = session.scalar(
                select(Campaign).where(
                    func.lower(Campaign.name) == name.lower(),
                    Campaign.world_id == world_id,
                )
            )
            if existing is not None:
                raise ValidationError(f"Campaign '{name}' already exists in this world")

            campaign = Campaign(name=name, summary=summary, world_id=world_id)
            if campaign_id is not None:
                campaign.id = campaign_id
            campaign.timeline = TimelineRecord(
                current_moment=start,
                version=timeline_config.initial_version,
            )
            session.add(campaign)
            session.flush()

            timeline = Timeline(
                campaign_id=campaign.id,
                current_moment=start,
                version=timeline_config.initial_version,
            )

        logger.info(f"Created campaign '{name}' ({timeline.campaign_id}) at {start.isoformat()}")
        return campaign, timeline

    def load_timeline(self, campaign_id: str) -> Timeline:
        """Load the persisted timeline for a campaign.

        Raises:
            NotFoundError: If no timeline record exists for the campaign
        """
        with session_scope() as session:
            record = session.get(TimelineRecord, campaign_id)
            if record is None:
                raise NotFoundError(f"Timeline for campaign {campaign_id} not found")
            return Timeline(
                campaign_id=record.campaign_id,
                current_moment=record.current_moment,
                version=record.version,
            )

    def compare_and_swap(self, campaign_id: str, expected_version: int, timeline: Timeline) -> bool:
        """Write a new timeline only if the stored version is still expected_version.

        Args:
            campaign_id: Campaign whose timeline is written
            expected_version: Version the new value was derived from
            timeline: New timeline value

        Returns:
            True if exactly one record was updated
        """
        with session_scope() as session:
            result = session.execute(
                update(TimelineRecord)
                .where(
                    TimelineRecord.campaign_id == campaign_id,
                    TimelineRecord.version == expected_version,
                )
                .values(current_moment=timeline.current_moment, version=timeline.version)
            )
            return result.rowcount == 1

    def _require_campaign(self, session, campaign_id: str) -> Campaign:
        campaign = session.get(Campaign, campaign_id)
        if campaign is None:
            raise NotFoundError(f"Campaign {campaign_id} not found")
        return campaign

    def add_story_arc(
        self,
        campaign_id: str,
        name: str,
        summary: str = "",
        beginning: date | None = None,
        ending: date | None = None,
        story_arc_id: str | None = None,
    ) -> TimedEntity:
        """Create a story arc in a campaign.

        Raises:
            ValidationError: Blank or duplicate name, or beginning after ending
            NotFoundError: If the campaign does not exist
        """
        if not name.strip():
            raise ValidationError("Story arc name is required")
        _check_interval(beginning, ending)

        with session_scope() as session:
            self._require_campaign(session, campaign_id)
            existing = session.scalar(
                select(StoryArc).where(
                    func.lower(StoryArc.name) == name.lower(),
                    StoryArc.campaign_id == campaign_id,
                )
            )
            if existing is not None:
                raise ValidationError(f"Story arc '{name}' already exists in this campaign")

            arc = StoryArc(
                campaign_id=campaign_id,
                name=name,
                summary=summary,
                beginning=beginning,
                ending=ending,
            )
            if story_arc_id is not None:
                arc.id = story_arc_id
            session.add(arc)
            session.flush()
            return arc.to_timed_entity()

    def add_event(
        self,
        campaign_id: str,
        name: str,
        description: str = "",
        beginning: date | None = None,
        ending: date | None = None,
        story_arc_id: str | None = None,
        event_id: str | None = None,
    ) -> TimedEntity:
        """Create an event in a campaign, optionally inside a story arc.

        Raises:
            ValidationError: Blank name, beginning after ending, or a story arc
                from a different campaign
            NotFoundError: If the campaign or story arc does not exist
        """
        if not name.strip():
            raise ValidationError("Event name is required")
        _check_interval(beginning, ending)

        with session_scope() as session:
            self._require_campaign(session, campaign_id)
            if story_arc_id is not None:
                arc = session.get(StoryArc, story_arc_id)
                if arc is None:
                    raise NotFoundError(f"Story arc {story_arc_id} not found")
                if arc.campaign_id != campaign_id:
                    raise ValidationError(f"Story arc {story_arc_id} belongs to another campaign")

            event = Event(
                campaign_id=campaign_id,
                story_arc_id=story_arc_id,
                name=name,
                description=description,
                beginning=beginning,
                ending=ending,
            )
            if event_id is not None:
                event.id = event_id
            session.add(event)
            session.flush()
            return event.to_timed_entity()

    def attach_event(self, story_arc_id: str, event_id: str) -> None:
        """Attach an existing event to a story arc.

        Raises:
            NotFoundError: If the story arc or event does not exist
            ValidationError: If the event is already in the story arc, or belongs
                to a different campaign
        """
        with session_scope() as session:
            arc = session.get(StoryArc, story_arc_id)
            if arc is None:
                raise NotFoundError(f"Story arc {story_arc_id} not found")
            event = session.get(Event, event_id)
            if event is None:
                raise NotFoundError(f"Event {event_id} not found")
            if event.story_arc_id == story_arc_id:
                raise ValidationError(f"Event {event_id} is already in story arc {story_arc_id}")
            if event.campaign_id != arc.campaign_id:
                raise ValidationError(f"Event {event_id} belongs to another campaign")
            event.story_arc_id = story_arc_id

    def list_story_arcs(self, campaign_id: str) -> list[TimedEntity]:
        """List all story arcs of a campaign."""
        with session_scope() as session:
            arcs = session.scalars(
                select(StoryArc).where(StoryArc.campaign_id == campaign_id).order_by(StoryArc.id)
            )
            return [arc.to_timed_entity() for arc in arcs]

    def list_events(self, campaign_id: str) -> list[TimedEntity]:
        """List all events of a campaign."""
        with session_scope() as session:
            events = session.scalars(
                select(Event).where(Event.campaign_id == campaign_id).order_by(Event.id)
            )
            return [event.to_timed_entity() for event in events]

    def list_story_arc_events(self, story_arc_id: str) -> list[TimedEntity]:
        """List the events attached to a story arc.

        Raises:
            NotFoundError: If the story arc does not exist
        """
        with session_scope() as session:
            arc = session.get(StoryArc, story_arc_id)
            if arc is None:
                raise NotFoundError(f"Story arc {story_arc_id} not found")
            return [event.to_timed_entity() for event in sorted(arc.events, key=lambda e: e.id)]
