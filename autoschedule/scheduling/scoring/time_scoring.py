"""
Time-based scoring functions for slot evaluation.
"""

from datetime import datetime, timedelta

from ...models import TimePreference
from ..core.constants import AFTERNOON_START_HOUR, EVENING_START_HOUR
from ..core.time_slot import TimeSlot


def time_of_day_bucket(hour: int) -> TimePreference:
    if hour < AFTERNOON_START_HOUR:
        return TimePreference.MORNING
    elif hour < EVENING_START_HOUR:
        return TimePreference.AFTERNOON
    return TimePreference.EVENING


def calculate_time_preference_score(task, local_start: datetime, weight: float) -> float:
    """
    Full weight when the slot starts inside the task's preferred part of the day.
    Tasks without a preference (or ANYTIME) always get the full weight.
    """
    preference = task.preferred_time
    if preference is None or preference == TimePreference.ANYTIME:
        return weight
    if time_of_day_bucket(local_start.hour) == preference:
        return weight
    return 0.0


def calculate_urgency_score(task, slot: TimeSlot, weight: float, due_lead: timedelta) -> float:
    """
    Due-date component, judged on when the task would finish.

    Finishing at or before (due - lead) earns the full weight, finishing after the
    due date earns nothing, and the lead window in between is interpolated linearly.
    Tasks without a due date get half the weight.
    """
    if task.due_date is None:
        return weight / 2

    due = task.due_date
    if slot.end > due:
        return 0.0
    if due_lead <= timedelta(0) or slot.end <= due - due_lead:
        return weight

    remaining = (due - slot.end) / due_lead
    return weight * max(0.0, min(1.0, remaining))


def calculate_earlier_bonus(rank: int, total: int, weight: float) -> float:
    """First candidate gets the full weight, decaying linearly over the candidate list."""
    if total <= 0:
        return 0.0
    return weight * (1 - rank / total)
