"""
Interval utilities for keeping busy time as a sorted, non-overlapping list of slots.
"""

from bisect import bisect_left, bisect_right
from datetime import datetime, timedelta
from typing import Iterable, List

from ..core.time_slot import TimeSlot
from ..core.constants import BUSY


def merge_slots(slots: Iterable[TimeSlot], gap: timedelta = timedelta(0)) -> List[TimeSlot]:
    """
    Merge slots into a canonical sorted list. Slots that overlap or sit no more than
    `gap` apart collapse into one busy slot, since nothing could be placed between them.
    """
    merged: List[TimeSlot] = []
    for slot in sorted(slots):
        if merged and slot.start <= merged[-1].end + gap:
            if slot.end > merged[-1].end:
                merged[-1] = TimeSlot(merged[-1].start, slot.end, BUSY)
        else:
            merged.append(TimeSlot(slot.start, slot.end, BUSY))
    return merged


def insert_merged(slots: List[TimeSlot], new_slot: TimeSlot, gap: timedelta = timedelta(0)) -> None:
    """Insert into an already merged list in place, merging with neighbours within `gap`."""
    index = bisect_left(slots, new_slot.start, key=lambda s: s.start)
    start, end = new_slot.start, new_slot.end

    lo = index
    while lo > 0 and slots[lo - 1].end + gap >= start:
        lo -= 1
        start = min(start, slots[lo].start)
        end = max(end, slots[lo].end)

    hi = index
    while hi < len(slots) and slots[hi].start <= end + gap:
        end = max(end, slots[hi].end)
        hi += 1

    slots[lo:hi] = [TimeSlot(start, end, BUSY)]


def first_relevant_index(slots: List[TimeSlot], instant: datetime, gap: timedelta = timedelta(0)) -> int:
    """Index of the first slot whose end, padded by `gap`, lies after `instant`."""
    return bisect_right(slots, instant - gap, key=lambda s: s.end)


def find_conflict(slots: List[TimeSlot], start: datetime, end: datetime, gap: timedelta = timedelta(0)):
    """Return the first slot closer than `gap` to [start, end), or None."""
    index = first_relevant_index(slots, start, gap)
    if index < len(slots) and slots[index].start < end + gap:
        return slots[index]
    return None
