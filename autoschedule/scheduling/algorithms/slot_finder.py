"""
Candidate search: walks the work calendar forward and proposes feasible start times for one task.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from ..core.time_slot import TimeSlot
from ..core.time_window_index import TimeWindowIndex
from ..constraints.time_constraints import is_slot_allowed

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def round_up(instant: datetime, minutes: int) -> datetime:
    """Round up to the next multiple of `minutes` (unchanged if already aligned)."""
    step = timedelta(minutes=minutes)
    remainder = (instant - EPOCH) % step
    if remainder:
        return instant + (step - remainder)
    return instant


class SlotFinder:
    """
    Proposes candidate slots in chronological order.

    Inside each work window the free gaps are walked from their earliest start; after a
    proposal the next one starts right after it plus the buffer, as if the previous one
    had been taken. A window that cannot hold the task is skipped, and the search stops
    once `max_candidates` are found or the horizon runs out.
    """
    def __init__(self, index: TimeWindowIndex, max_candidates: int = 10, granularity_minutes: int = 5):
        self.index = index
        self.max_candidates = max_candidates
        self.granularity_minutes = granularity_minutes

    def search_origin(self, task, now: datetime, not_before: Optional[datetime] = None) -> datetime:
        origin = now
        for bound in (task.not_before, not_before):
            if bound is not None and bound > origin:
                origin = bound
        return round_up(origin, self.granularity_minutes)

    def find_candidates(self, task, now: datetime, horizon: timedelta,
                        not_before: Optional[datetime] = None,
                        preferred: Optional[Callable[[TimeSlot], bool]] = None) -> List[TimeSlot]:
        """
        The earliest `max_candidates` slots from the search origin. When `preferred` is
        given and none of them satisfies it, the first slot inside the horizon that does
        is added as well, so a task is never stuck with only its second-best choices.
        """
        duration = timedelta(minutes=task.duration)
        origin = self.search_origin(task, now, not_before)
        limit = origin + horizon
        candidates: List[TimeSlot] = []

        cursor = self.index.next_work_boundary(origin)
        while cursor < limit and len(candidates) < self.max_candidates:
            window = self.index.window_containing(cursor)
            if window.end - cursor >= duration:
                self._collect_from_window(task, cursor, window, duration, limit, candidates)
            cursor = self.index.next_work_boundary(window.end)

        if preferred is not None and not any(preferred(slot) for slot in candidates):
            match = self.first_matching(task, origin, limit, duration, preferred)
            if match is not None:
                candidates.append(match)
                candidates.sort()

        return candidates

    def first_matching(self, task, origin: datetime, limit: datetime, duration: timedelta,
                       preferred: Callable[[TimeSlot], bool]) -> Optional[TimeSlot]:
        """Scan free time at the slot granularity for the first allowed slot `preferred` accepts."""
        step = timedelta(minutes=self.granularity_minutes)
        cursor = self.index.next_work_boundary(origin)
        while cursor < limit:
            window = self.index.window_containing(cursor)
            for gap in self.index.free_gaps(cursor, window.end):
                start = round_up(gap.start, self.granularity_minutes)
                while start + duration <= gap.end and start < limit:
                    slot = TimeSlot(start, start + duration, task)
                    if preferred(slot) and is_slot_allowed(self.index, task, slot):
                        return slot
                    start = start + step
            cursor = self.index.next_work_boundary(window.end)
        return None

    def _collect_from_window(self, task, cursor: datetime, window: TimeSlot, duration: timedelta,
                             limit: datetime, candidates: List[TimeSlot]):
        for gap in self.index.free_gaps(cursor, window.end):
            start = gap.start
            while (start + duration <= gap.end and start < limit
                   and len(candidates) < self.max_candidates):
                slot = TimeSlot(start, start + duration, task)
                if is_slot_allowed(self.index, task, slot):
                    candidates.append(slot)
                start = start + duration + self.index.buffer
            if len(candidates) >= self.max_candidates:
                return


def find_candidates(index: TimeWindowIndex, task, now: datetime, horizon: timedelta,
                    max_candidates: int = 10, granularity_minutes: int = 5,
                    not_before: Optional[datetime] = None,
                    preferred: Optional[Callable[[TimeSlot], bool]] = None) -> List[TimeSlot]:
    finder = SlotFinder(index, max_candidates, granularity_minutes)
    return finder.find_candidates(task, now, horizon, not_before, preferred)
