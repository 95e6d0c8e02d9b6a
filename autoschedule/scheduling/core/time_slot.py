"""
Time slot representation for the scheduling system.
"""

from datetime import datetime, timedelta
from typing import Any

from .constants import AVAILABLE, BUSY


class TimeSlot:
    """
    A half-open [start, end) range of UTC time with whatever occupies it:
    - a task snapshot (a committed or proposed placement)
    - BUSY (external calendar time or a locked task)
    - AVAILABLE (open time, e.g. a free gap)
    """
    __slots__ = ("start", "end", "occupant")

    def __init__(self, start: datetime, end: datetime, occupant: Any = AVAILABLE):
        self.start = start
        self.end = end
        self.occupant = occupant

    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "TimeSlot", gap: timedelta = timedelta(0)) -> bool:
        """True if the two slots are closer than `gap` (or intersect when gap is zero)."""
        return self.start < other.end + gap and other.start < self.end + gap

    def __lt__(self, other):
        return (self.start, self.end) < (other.start, other.end)

    def __eq__(self, other):
        if not isinstance(other, TimeSlot):
            return NotImplemented
        return self.start == other.start and self.end == other.end

    def __hash__(self):
        return hash((self.start, self.end))

    def __repr__(self):
        span = f"{self.start.strftime('%Y-%m-%d %H:%M')} - {self.end.strftime('%H:%M')}"
        if self.occupant == BUSY:
            return f"BusySlot({span})"
        elif self.occupant == AVAILABLE:
            return f"AvailableSlot({span})"
        elif self.occupant:
            occupant_name = getattr(self.occupant, 'title', None) or getattr(self.occupant, 'id', str(self.occupant))
            return f"TaskSlot({span}, {occupant_name})"
        else:
            return f"AvailableSlot({span})"
