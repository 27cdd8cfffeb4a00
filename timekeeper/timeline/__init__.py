"""Timeline engine: calendar arithmetic, active sets, and versioned advances."""

from .calendar_math import Direction, TimeUnit, apply, parse_direction, parse_moment, parse_unit
from .errors import ConflictError, NotFoundError, RangeError, TimelineError, ValidationError
from .intervals import TimedEntity, compute_active, partition_by_moment
from .state import Timeline, advance
from .service import AdvanceResult, TimelineOverview, TimelineService

__all__ = [
    "Direction", "TimeUnit", "apply", "parse_direction", "parse_moment", "parse_unit",
    "TimelineError", "ValidationError", "RangeError", "NotFoundError", "ConflictError",
    "TimedEntity", "compute_active", "partition_by_moment",
    "Timeline", "advance",
    "AdvanceResult", "TimelineOverview", "TimelineService",
]
