"""
Time-related constraint checking: input validation before a run,
per-candidate admission checks, and invariant verification after it.
"""

from datetime import timedelta
from typing import Iterable, List

from ...schemas import ScheduleSettings
from ..core.errors import InvalidInputError, InvariantViolationError
from ..core.time_slot import TimeSlot
from ..utils.slot_utils import find_conflict


ENERGY_WINDOWS = (
    ("high_energy_start", "high_energy_end"),
    ("medium_energy_start", "medium_energy_end"),
    ("low_energy_start", "low_energy_end"),
)


def validate_settings(settings: ScheduleSettings) -> None:
    """Cross-field checks the per-field schema validation cannot express."""
    if not settings.work_days:
        raise InvalidInputError("at least one work day is required", field="work_days")
    if settings.work_hour_start >= settings.work_hour_end:
        raise InvalidInputError(
            f"work hours {settings.work_hour_start}-{settings.work_hour_end} are empty: start must be before end",
            field="work_hour_start",
        )
    if settings.buffer_minutes < 0:
        raise InvalidInputError("buffer must not be negative", field="buffer_minutes")
    for start_field, end_field in ENERGY_WINDOWS:
        start, end = getattr(settings, start_field), getattr(settings, end_field)
        if start is not None and end is not None and start >= end:
            raise InvalidInputError(f"energy window {start}-{end} is empty", field=start_field)


def validate_tasks(tasks: Iterable) -> None:
    seen = set()
    for task in tasks:
        if task.duration is None or task.duration <= 0:
            raise InvalidInputError(
                f"task {task.id} has non-positive duration {task.duration}", field="duration", task_id=task.id
            )
        if task.id in seen:
            raise InvalidInputError(f"task {task.id} appears twice in the batch", field="id", task_id=task.id)
        seen.add(task.id)
        if task.schedule_locked and task.has_interval and task.scheduled_end <= task.scheduled_start:
            raise InvalidInputError(
                f"locked task {task.id} ends before it starts", field="scheduled_end", task_id=task.id
            )


def is_slot_allowed(index, task, slot: TimeSlot) -> bool:
    """
    Check if a slot is allowed for this task: not before its start/postponed date,
    inside one work window, and clear of busy time by the buffer.
    """
    not_before = task.not_before
    if not_before is not None and slot.start < not_before:
        return False
    if slot.duration() != timedelta(minutes=task.duration):
        return False
    return index.is_free(slot.start, slot.end)


def verify_placements(index, tasks: List) -> None:
    """
    Re-check every committed placement of the run. Any failure here means the
    engine double-booked or mis-sized a slot, which is never corrected silently.
    """
    placed = sorted((t for t in tasks if t.has_interval), key=lambda t: t.scheduled_start)

    for task in placed:
        if task.scheduled_end - task.scheduled_start != timedelta(minutes=task.duration):
            raise InvariantViolationError(f"task {task.id}: scheduled span does not equal its duration")
        window = index.window_containing(task.scheduled_start)
        if window is None or task.scheduled_end > window.end:
            raise InvariantViolationError(f"task {task.id}: placed outside work hours")
        if find_conflict(index.fixed, task.scheduled_start, task.scheduled_end, index.buffer) is not None:
            raise InvariantViolationError(f"task {task.id}: overlaps busy time or its buffer")

    for previous, current in zip(placed, placed[1:]):
        if current.scheduled_start - previous.scheduled_end < index.buffer:
            raise InvariantViolationError(
                f"tasks {previous.id} and {current.id} are closer than the {index.buffer} buffer"
            )
