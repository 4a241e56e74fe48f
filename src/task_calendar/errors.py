"""Error types raised by the scheduler service."""


class SchedulerError(Exception):
    """Base class for all scheduler errors."""


class ValidationError(SchedulerError, ValueError):
    """Malformed task, holiday or settings input. Raised before any write."""


class NotFoundError(SchedulerError, LookupError):
    """Operation targets a task or holiday that does not exist."""

    def __init__(self, kind: str, item_id: int) -> None:
        """Initialize with the entity kind and the missing id."""
        super().__init__(f"{kind} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id


class ConcurrencyConflict(SchedulerError):
    """A transaction could not be serialized. Retried internally."""


class TransientFailure(SchedulerError):
    """Conflict retries were exhausted. Safe for the caller to retry later."""
