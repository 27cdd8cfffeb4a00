"""Interval membership queries for story arcs and events."""

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable

from .calendar_math import format_moment


@dataclass(frozen=True)
class TimedEntity:
    """A story arc or event with an optional in-fiction interval.

    A missing beginning means the entity has always already begun; a missing
    ending means it has not concluded yet.
    """

    id: str
    campaign_id: str
    beginning: date | None = None
    ending: date | None = None
    name: str = ""

    def is_active_at(self, moment: date) -> bool:
        """Check whether the interval contains the moment (bounds inclusive)."""
        if self.beginning is not None and moment < self.beginning:
            return False
        if self.ending is not None and self.ending < moment:
            return False
        return True

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        return {
            "id": self.id,
            "campaignId": self.campaign_id,
            "name": self.name,
            "beginning": format_moment(self.beginning),
            "ending": format_moment(self.ending),
        }


def _active_order(entity: TimedEntity) -> tuple:
    # Bounded beginnings first, earliest first, then id
    if entity.beginning is None:
        return (1, date.min, entity.id)
    return (0, entity.beginning, entity.id)


def compute_active(moment: date, entities: Iterable[TimedEntity]) -> list[TimedEntity]:
    """Select the entities whose interval contains the moment.

    Args:
        moment: Current virtual moment
        entities: Candidate story arcs or events

    Returns:
        Active entities ordered by beginning (unbounded last), then id
    """
    return sorted((e for e in entities if e.is_active_at(moment)), key=_active_order)


def partition_by_moment(
    moment: date, entities: Iterable[TimedEntity]
) -> tuple[list[TimedEntity], list[TimedEntity], list[TimedEntity]]:
    """Split entities into past, current and upcoming relative to a moment.

    Past entities ended before the moment, most recently concluded first.
    Upcoming entities begin after the moment, soonest first. Everything else
    is current and ordered like compute_active.

    Returns:
        Tuple of (past, current, upcoming)
    """
    entities = list(entities)
    past = [e for e in entities if e.ending is not None and e.ending < moment]
    upcoming = [e for e in entities if e.beginning is not None and moment < e.beginning]

    past.sort(key=lambda e: e.id)
    past.sort(key=lambda e: e.ending, reverse=True)
    upcoming.sort(key=lambda e: (e.beginning, e.id))

    return past, compute_active(moment, entities), upcoming
