"""
Threshold Classifier

Decides, for one candidate and one store-sourced "now", which reminder
(if any) is due. Bands are inclusive on both ends and deliberately wider
than the polling interval so a task cannot slip between two polls.

Known limitation: a task first seen below the 24h band (for example one
created with a deadline three hours away) only ever gets the final
reminder. The 24h reminder is never sent retroactively.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from server.enums import ReminderKind

from .scheduler_config import (
    REMINDER_24H_MIN_HOURS,
    REMINDER_24H_MAX_HOURS,
    REMINDER_1H_MIN_HOURS,
    REMINDER_1H_MAX_HOURS,
)
from .store import Candidate


@dataclass(frozen=True)
class ReminderBand:
    kind: ReminderKind
    min_hours: float
    max_hours: float

    def contains(self, hours: float) -> bool:
        return self.min_hours <= hours <= self.max_hours


# Checked in order, first match wins
REMINDER_BANDS = (
    ReminderBand(ReminderKind.twenty_four_hours, REMINDER_24H_MIN_HOURS, REMINDER_24H_MAX_HOURS),
    ReminderBand(ReminderKind.one_hour, REMINDER_1H_MIN_HOURS, REMINDER_1H_MAX_HOURS),
)


def hours_remaining(deadline: datetime, now: datetime) -> float:
    """Hours from ``now`` until ``deadline``; negative once overdue."""
    return (deadline - now).total_seconds() / 3600


def validate_bands(bands, grace_window: timedelta, lookahead_window: timedelta) -> None:
    """
    Reject band layouts that could double-classify a task or that the
    scan window would not fully cover.
    """
    ordered = sorted(bands, key=lambda b: b.min_hours)
    for lower, upper in zip(ordered, ordered[1:]):
        if lower.max_hours >= upper.min_hours:
            raise ValueError(f"Reminder bands {lower.kind.value} and {upper.kind.value} overlap")

    grace_hours = grace_window.total_seconds() / 3600
    lookahead_hours = lookahead_window.total_seconds() / 3600
    lowest = ordered[0].min_hours
    highest = ordered[-1].max_hours
    if lowest < 0 and grace_hours < -lowest:
        raise ValueError(
            f"Grace window of {grace_hours}h does not cover the {lowest}h overdue band"
        )
    if lookahead_hours < highest:
        raise ValueError(
            f"Lookahead window of {lookahead_hours}h does not cover the {highest}h band"
        )


def classify(candidate: Candidate, now: datetime, bands=REMINDER_BANDS) -> Optional[ReminderKind]:
    """Return the reminder kind to send now, or None."""
    task = candidate.task
    if task.is_completed or task.deadline is None:
        return None

    hours = hours_remaining(task.deadline, now)
    for band in bands:
        if band.contains(hours):
            if task.already_notified(band.kind):
                return None
            return band.kind
    return None
