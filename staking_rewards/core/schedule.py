"""Emission schedule rules.

Only validation and record construction live here; refreshing every pool with
the old parameters before a change is the controller's job.
"""

from __future__ import annotations

from dataclasses import replace

from .errors import InvalidArgument
from .types import Schedule


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_rate(rate: int) -> int:
    if not _is_int(rate) or rate < 0:
        raise InvalidArgument(f"invalid reward rate: {rate!r}")
    return rate


def validate_cutoff(cutoff: int, now: int) -> int:
    """A cutoff may be moved anywhere except into the past."""
    if not _is_int(cutoff) or cutoff < 0:
        raise InvalidArgument(f"invalid reward cutoff: {cutoff!r}")
    if cutoff < now:
        raise InvalidArgument(f"reward cutoff {cutoff} is before current time {now}")
    return cutoff


def init_schedule(rate: int, cutoff: int, now: int) -> Schedule:
    return Schedule(rate_per_time_unit=validate_rate(rate), cutoff_time=validate_cutoff(cutoff, now))


def with_rate(schedule: Schedule, rate: int) -> Schedule:
    return replace(schedule, rate_per_time_unit=validate_rate(rate))


def with_cutoff(schedule: Schedule, cutoff: int, now: int) -> Schedule:
    return replace(schedule, cutoff_time=validate_cutoff(cutoff, now))


def is_expired(schedule: Schedule, now: int) -> bool:
    """True once emission has stopped for good."""
    return now >= schedule.cutoff_time
