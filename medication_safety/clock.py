"""Clock used for every look-back window in the engine."""

from datetime import datetime


class Clock:
    """Source of "now" for the engine."""

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock(Clock):
    """Wall-clock time (local, naive)."""

    def now(self) -> datetime:
        return datetime.now()


class FixedClock(Clock):
    """Clock pinned to a single instant, for deterministic evaluation."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant


def to_local_naive(value: datetime) -> datetime:
    """Return ``value`` as naive local time, converting aware values first."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value
