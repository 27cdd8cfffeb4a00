"""Error taxonomy for timeline operations."""


class TimelineError(Exception):
    """Base class for all timeline errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TimelineError):
    """Malformed command or data, rejected before any state is touched."""


class RangeError(ValidationError):
    """Calendar arithmetic left the representable range of dates."""


class NotFoundError(TimelineError):
    """A campaign, timeline or story arc record does not exist."""


class ConflictError(TimelineError):
    """The timeline changed since the caller last read it."""

    def __init__(self, campaign_id: str, expected_version: int, actual_version: int):
        super().__init__("timeline changed, please refresh")
        self.campaign_id = campaign_id
        self.expected_version = expected_version
        self.actual_version = actual_version
