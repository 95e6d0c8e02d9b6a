"""
Availability index for one scheduling run.

Holds the user's busy time as a canonical sorted list (external calendar time,
locked tasks, and every placement committed during the run) and answers
work-window questions in the user's own time zone.
"""

from bisect import insort
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional

from ...schemas import ScheduleSettings, ensure_utc
from .constants import AVAILABLE, BUSY
from .errors import InvalidInputError, InvariantViolationError
from .time_slot import TimeSlot
from ..utils.slot_utils import merge_slots, insert_merged, find_conflict, first_relevant_index


class TimeWindowIndex:
    """
    Work windows plus busy time for a single user.

    Busy intervals may arrive unsorted and overlapping; they are merged on the way in,
    together with any intervals closer to each other than the buffer.
    """
    def __init__(self, settings: ScheduleSettings, busy_intervals: Iterable = (), buffer_minutes: Optional[int] = None):
        self.settings = settings
        self.tz = settings.tz
        self.work_days = set(settings.work_days)
        minutes = settings.buffer_minutes if buffer_minutes is None else buffer_minutes
        self.buffer = timedelta(minutes=minutes)

        external = [TimeSlot(ensure_utc(b.start), ensure_utc(b.end), BUSY) for b in busy_intervals]
        self._fixed: List[TimeSlot] = merge_slots(external, self.buffer)
        self._busy: List[TimeSlot] = list(self._fixed)
        self._committed: List[TimeSlot] = []

    @property
    def busy(self) -> List[TimeSlot]:
        return list(self._busy)

    @property
    def fixed(self) -> List[TimeSlot]:
        return list(self._fixed)

    @property
    def committed(self) -> List[TimeSlot]:
        return list(self._committed)

# ================================
# WORK WINDOWS
# ================================

    def is_work_day(self, day: date) -> bool:
        # isoweekday: Monday=1 ... Sunday=7, settings use Sunday=0
        return (day.isoweekday() % 7) in self.work_days

    def local_time(self, instant: datetime) -> datetime:
        return ensure_utc(instant).astimezone(self.tz)

    def _localize(self, day: date, hour: int) -> datetime:
        if hour == 24:
            day, hour = day + timedelta(days=1), 0
        local = self.tz.localize(datetime.combine(day, time(hour)))
        return self.tz.normalize(local).astimezone(timezone.utc)

    def work_window(self, day: date) -> TimeSlot:
        """UTC bounds of the work window on a local calendar day (whether or not it is a work day)."""
        return TimeSlot(
            self._localize(day, self.settings.work_hour_start),
            self._localize(day, self.settings.work_hour_end),
            AVAILABLE,
        )

    def window_containing(self, instant: datetime) -> Optional[TimeSlot]:
        """The work window that contains `instant`, or None outside work time."""
        instant = ensure_utc(instant)
        day = self.local_time(instant).date()
        if not self.is_work_day(day):
            return None
        window = self.work_window(day)
        if window.start <= instant < window.end:
            return window
        return None

    def next_work_boundary(self, from_: datetime) -> datetime:
        """
        `from_` itself when it already falls inside work hours, otherwise the opening
        instant of the next work window. Lets the search jump over nights and weekends.
        """
        from_ = ensure_utc(from_)
        day = self.local_time(from_).date()
        for offset in range(8):
            current = day + timedelta(days=offset)
            if not self.is_work_day(current):
                continue
            window = self.work_window(current)
            if from_ < window.end:
                return max(from_, window.start)
        raise InvalidInputError("no work days configured", field="work_days")

# ================================
# AVAILABILITY
# ================================

    def is_free(self, start: datetime, end: datetime) -> bool:
        """True iff [start, end) sits inside one work window and keeps the buffer to all busy time."""
        start, end = ensure_utc(start), ensure_utc(end)
        if end <= start:
            return False
        window = self.window_containing(start)
        if window is None or end > window.end:
            return False
        return find_conflict(self._busy, start, end, self.buffer) is None

    def free_gaps(self, start: datetime, end: datetime) -> List[TimeSlot]:
        """Open sub-ranges of [start, end) once busy time and its buffer are cut out."""
        start, end = ensure_utc(start), ensure_utc(end)
        gaps: List[TimeSlot] = []
        cursor = start
        index = first_relevant_index(self._busy, start, self.buffer)
        while index < len(self._busy) and self._busy[index].start - self.buffer < end:
            busy = self._busy[index]
            gap_end = busy.start - self.buffer
            if gap_end > cursor:
                gaps.append(TimeSlot(cursor, gap_end, AVAILABLE))
            cursor = max(cursor, busy.end + self.buffer)
            index += 1
        if cursor < end:
            gaps.append(TimeSlot(cursor, end, AVAILABLE))
        return gaps

    def reserve(self, start: datetime, end: datetime, occupant=None) -> TimeSlot:
        """
        Commit [start, end) so later searches in the same run see it as busy.
        Reserving an already committed interval again is a no-op; reserving
        anything else that is not free is a double booking.
        """
        slot = TimeSlot(ensure_utc(start), ensure_utc(end), occupant)
        if slot in self._committed:
            return slot
        if not self.is_free(slot.start, slot.end):
            raise InvariantViolationError(
                f"cannot reserve {slot.start.isoformat()} - {slot.end.isoformat()}: interval is not free"
            )
        insert_merged(self._busy, slot, self.buffer)
        insort(self._committed, slot)
        return slot

    def __repr__(self):
        return f"TimeWindowIndex({len(self._busy)} busy, {len(self._committed)} committed, tz={self.settings.time_zone})"
