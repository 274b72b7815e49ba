from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from .errors import InvalidWindowError

_SECONDS_PER_HOUR = Decimal(3600)


@dataclass(frozen=True)
class Window:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_local_naive(self.start))
        object.__setattr__(self, "end", as_local_naive(self.end))
        if self.start >= self.end:
            raise InvalidWindowError("Window start time must be earlier than end time.")

    def covers(self, instant: datetime) -> bool:
        return self.start <= as_local_naive(instant) < self.end

    def duration_hours(self) -> Decimal:
        seconds = Decimal(str((self.end - self.start).total_seconds()))
        return seconds / _SECONDS_PER_HOUR


def as_local_naive(instant: datetime) -> datetime:
    """Convert an aware datetime to naive local time. Naive values pass through."""
    if instant.tzinfo is None or instant.utcoffset() is None:
        return instant
    return instant.astimezone().replace(tzinfo=None)


def has_time_overlap(new_start: datetime, new_end: datetime, exist_start: datetime, exist_end: datetime) -> bool:
    """Return True when two time intervals share any instant.

    Intervals are treated as half-open ranges: [start, end)
    so touching boundaries (e.g. 10:00-12:00 and 12:00-14:00) do not overlap.
    """
    if new_start >= new_end:
        raise InvalidWindowError("new_start must be earlier than new_end.")
    if exist_start >= exist_end:
        raise InvalidWindowError("exist_start must be earlier than exist_end.")

    return new_start < exist_end and exist_start < new_end

