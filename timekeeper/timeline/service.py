"""Timeline service - validated, optimistic-concurrency advances over a store.

The service holds no timeline state of its own. Each call reads the persisted
timeline, and a successful advance commits through a single compare-and-swap
write keyed on the version the caller presented. Conflicting callers get a
ConflictError and must re-read; nothing is retried here.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from .calendar_math import Direction, TimeUnit, format_moment, parse_direction, parse_unit
from .errors import ConflictError, RangeError, ValidationError
from .intervals import TimedEntity, compute_active, partition_by_moment
from .state import Timeline, advance

logger = logging.getLogger(__name__)


class TimelineStore(Protocol):
    """Persistence operations the service relies on."""

    def load_timeline(self, campaign_id: str) -> Timeline: ...

    def compare_and_swap(self, campaign_id: str, expected_version: int, timeline: Timeline) -> bool: ...

    def list_story_arcs(self, campaign_id: str) -> list[TimedEntity]: ...

    def list_events(self, campaign_id: str) -> list[TimedEntity]: ...


@dataclass
class AdvanceResult:
    """Committed timeline plus the active sets at its new moment."""

    timeline: Timeline
    active_story_arcs: list[TimedEntity] = field(default_factory=list)
    active_events: list[TimedEntity] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the advance response body."""
        return {
            **self.timeline.to_dict(),
            "activeStoryArcs": [arc.to_dict() for arc in self.active_story_arcs],
            "activeEvents": [event.to_dict() for event in self.active_events],
        }


@dataclass
class TimelineOverview:
    """Everything a timeline view shows for one campaign."""

    timeline: Timeline
    past_events: list[TimedEntity] = field(default_factory=list)
    current_events: list[TimedEntity] = field(default_factory=list)
    upcoming_events: list[TimedEntity] = field(default_factory=list)
    active_story_arcs: list[TimedEntity] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the overview response body."""
        return {
            **self.timeline.to_dict(),
            "pastEvents": [e.to_dict() for e in self.past_events],
            "currentEvents": [e.to_dict() for e in self.current_events],
            "upcomingEvents": [e.to_dict() for e in self.upcoming_events],
            "activeStoryArcs": [arc.to_dict() for arc in self.active_story_arcs],
        }


class TimelineService:
    """Boundary between callers and a campaign's persisted timeline."""

    def __init__(self, store: TimelineStore):
        """Initialize the service.

        Args:
            store: Persistence collaborator for timelines and timed entities
        """
        self.store = store

    def get_timeline(self, campaign_id: str) -> Timeline:
        """Get the persisted timeline for a campaign.

        Raises:
            NotFoundError: If the campaign has no timeline record
        """
        return self.store.load_timeline(campaign_id)

    def advance_timeline(
        self,
        campaign_id: str,
        unit: TimeUnit | str,
        direction: Direction | str,
        expected_version: int,
    ) -> AdvanceResult:
        """Move a campaign's timeline by one unit.

        Args:
            campaign_id: Campaign whose timeline moves
            unit: "day", "week" or "month"
            direction: "forward" or "backward"
            expected_version: Version the caller last read

        Returns:
            AdvanceResult with the committed timeline and active sets

        Raises:
            ValidationError: Unknown unit/direction or a non-integer version
            NotFoundError: The campaign has no timeline record
            ConflictError: The timeline's version is not expected_version
            RangeError: The moment would leave the supported calendar
        """
        try:
            unit = parse_unit(unit)
            direction = parse_direction(direction)
            if isinstance(expected_version, bool) or not isinstance(expected_version, int):
                raise ValidationError(f"Invalid expectedVersion: {expected_version!r}")
        except ValidationError as e:
            logger.warning(f"[{campaign_id}] Rejected advance: {e.message}")
            raise

        current = self.store.load_timeline(campaign_id)
        if current.version != expected_version:
            logger.warning(
                f"[{campaign_id}] Version conflict: expected {expected_version}, "
                f"found {current.version}"
            )
            raise ConflictError(campaign_id, expected_version, current.version)

        try:
            updated = advance(current, unit, direction)
        except RangeError as e:
            logger.warning(f"[{campaign_id}] Rejected advance: {e.message}")
            raise

        if not self.store.compare_and_swap(campaign_id, expected_version, updated):
            actual = self.store.load_timeline(campaign_id).version
            logger.warning(
                f"[{campaign_id}] Lost compare-and-swap at version {expected_version} "
                f"(now {actual})"
            )
            raise ConflictError(campaign_id, expected_version, actual)

        logger.info(
            f"[{campaign_id}] Timeline {direction.value} 1 {unit.value}: "
            f"{format_moment(current.current_moment)} -> "
            f"{format_moment(updated.current_moment)} (version {updated.version})"
        )

        return AdvanceResult(
            timeline=updated,
            active_story_arcs=compute_active(
                updated.current_moment, self.store.list_story_arcs(campaign_id)
            ),
            active_events=compute_active(
                updated.current_moment, self.store.list_events(campaign_id)
            ),
        )

    def active_story_arcs(self, campaign_id: str) -> list[TimedEntity]:
        """Story arcs active at the campaign's current moment."""
        timeline = self.store.load_timeline(campaign_id)
        return compute_active(timeline.current_moment, self.store.list_story_arcs(campaign_id))

    def active_events(self, campaign_id: str) -> list[TimedEntity]:
        """Events active at the campaign's current moment."""
        timeline = self.store.load_timeline(campaign_id)
        return compute_active(timeline.current_moment, self.store.list_events(campaign_id))

    def overview(self, campaign_id: str) -> TimelineOverview:
        """Build the full timeline view for a campaign.

        Returns:
            TimelineOverview with past/current/upcoming events and active arcs
        """
        timeline = self.store.load_timeline(campaign_id)
        past, current, upcoming = partition_by_moment(
            timeline.current_moment, self.store.list_events(campaign_id)
        )
        return TimelineOverview(
            timeline=timeline,
            past_events=past,
            current_events=current,
            upcoming_events=upcoming,
            active_story_arcs=compute_active(
                timeline.current_moment, self.store.list_story_arcs(campaign_id)
            ),
        )
