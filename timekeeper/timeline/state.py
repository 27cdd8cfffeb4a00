"""Versioned timeline value and its single transition."""

from dataclasses import dataclass, replace
from datetime import date
from typing import Any

from .calendar_math import Direction, TimeUnit, apply, format_moment


@dataclass(frozen=True)
class Timeline:
    """A campaign's current moment plus its optimistic-concurrency version.

    Timelines are values: a transition returns a new Timeline and leaves the
    old one untouched. Every transition bumps the version by exactly one.
    """

    campaign_id: str
    current_moment: date
    version: int = 1

    def to_dict(self) -> dict[str, Any]:
        """Convert to the public JSON shape."""
        return {
            "currentMoment": format_moment(self.current_moment),
            "version": self.version,
        }


def advance(timeline: Timeline, unit: TimeUnit, direction: Direction) -> Timeline:
    """Move a timeline by one unit.

    Rewinding is advancing with ``Direction.BACKWARD``. There is no lower
    bound on how far back a timeline may go beyond the calendar itself.

    Args:
        timeline: Current timeline value
        unit: Day, week or month
        direction: Forward or backward

    Returns:
        New Timeline with the moved moment and version + 1

    Raises:
        RangeError: If the moment would leave the supported calendar
    """
    moment = apply(timeline.current_moment, unit, direction)
    return replace(timeline, current_moment=moment, version=timeline.version + 1)
