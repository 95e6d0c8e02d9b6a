"""
Main scheduling service that orchestrates one auto-scheduling run.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ...models import TaskStatus
from ...schemas import BusyInterval, EngineConfig, ScheduleSettings, TaskSnapshot, ensure_utc
from .errors import SchedulingCancelledError
from .time_window_index import TimeWindowIndex
from ..algorithms.slot_finder import SlotFinder
from ..constraints.time_constraints import validate_settings, validate_tasks, verify_placements
from ..scoring.priority_scoring import order_tasks, placement_signature
from ..scoring.slot_scoring import PlacementScorer

logger = logging.getLogger(__name__)

# ================================
# INITIALIZATION & SETUP
# ================================

class SchedulingService:
    """
    Places a user's auto-scheduled tasks into free work time.

    A run is a pure function of (tasks, settings, busy intervals, now): it never
    mutates its inputs and returns fresh task snapshots. Tasks are placed one at
    a time in a fixed order because every placement changes what the next task
    can use.
    """
    def __init__(self, settings: ScheduleSettings, config: Optional[EngineConfig] = None):
        validate_settings(settings)
        self.settings = settings
        self.config = config or EngineConfig()
        self.scorer = PlacementScorer(settings, self.config.weights, self.config.due_lead)

    def partition(self, tasks: List[TaskSnapshot]) -> Tuple[List[TaskSnapshot], List[TaskSnapshot]]:
        """Split into (tasks to place, locked tasks whose interval is fixed busy time)."""
        schedulable, locked = [], []
        for task in tasks:
            if task.status == TaskStatus.COMPLETED:
                continue
            if task.schedule_locked:
                if task.has_interval:
                    locked.append(task)
                else:
                    logger.warning(f"Locked task {task.id} has no scheduled interval; leaving it untouched")
            elif task.is_auto_scheduled:
                schedulable.append(task)
        return schedulable, locked

    def build_index(self, busy_intervals: Iterable, locked: List[TaskSnapshot]) -> TimeWindowIndex:
        intervals = list(busy_intervals)
        intervals.extend(
            BusyInterval(start=task.scheduled_start, end=task.scheduled_end, source=f"task:{task.id}")
            for task in locked
        )
        return TimeWindowIndex(self.settings, intervals)

# ================================
# CORE SCHEDULING LOGIC
# ================================

    def schedule(self, tasks: Iterable[TaskSnapshot], busy_intervals: Iterable = (),
                 now: Optional[datetime] = None,
                 should_cancel: Optional[Callable[[], bool]] = None) -> List[TaskSnapshot]:
        """
        Run one scheduling pass and return every task, in input order.

        Placed tasks carry scheduled_start/end and a score; tasks with no feasible slot
        inside the horizon come back with all three cleared. Locked, completed and
        non-auto-scheduled tasks are returned unchanged.
        """
        tasks = list(tasks)
        validate_tasks(tasks)
        now = ensure_utc(now) or datetime.now(timezone.utc)

        schedulable, locked = self.partition(tasks)
        index = self.build_index(busy_intervals, locked)
        finder = SlotFinder(index, self.config.max_candidates, self.config.slot_granularity_minutes)

        logger.info(
            f"Scheduling {len(schedulable)} tasks ({len(locked)} locked, "
            f"{len(index.fixed)} busy blocks) from {now.isoformat()}"
        )

        results: Dict[str, TaskSnapshot] = {task.id: task for task in tasks}
        # A task never starts before an equal-signature task placed ahead of it
        floors: Dict[tuple, datetime] = {}
        for task in order_tasks(schedulable, self.settings.group_by_project):
            if should_cancel is not None and should_cancel():
                logger.info(f"Scheduling run cancelled before task {task.id}")
                raise SchedulingCancelledError(f"run cancelled before task {task.id}")
            signature = placement_signature(task)
            result = self._place(task, index, finder, now, floors.get(signature))
            if result.has_interval:
                floors[signature] = result.scheduled_start
            results[task.id] = result

        placed = [results[task.id] for task in schedulable]
        verify_placements(index, placed)

        placed_count = sum(1 for task in placed if task.has_interval)
        logger.info(f"Scheduling finished: {placed_count} placed, {len(placed) - placed_count} unplaced")
        return [results[task.id] for task in tasks]

    def _place(self, task: TaskSnapshot, index: TimeWindowIndex, finder: SlotFinder,
               now: datetime, not_before: Optional[datetime] = None) -> TaskSnapshot:
        candidates = finder.find_candidates(
            task, now, self.config.horizon, not_before,
            preferred=lambda slot: self.scorer.is_preferred(task, slot),
        )
        best = self.scorer.best(task, candidates)
        if best is None:
            logger.warning(f"No slot for task {task.id} ({task.duration} min) within {self.config.horizon_days} days")
            return task.model_copy(update={"scheduled_start": None, "scheduled_end": None, "schedule_score": None})

        index.reserve(best.slot.start, best.slot.end, task.id)
        logger.debug(f"Placed task {task.id} at {best.slot.start.isoformat()} (score {best.score})")
        return task.model_copy(update={
            "scheduled_start": best.slot.start,
            "scheduled_end": best.slot.end,
            "schedule_score": best.score,
        })


def schedule(tasks: Iterable[TaskSnapshot], settings: ScheduleSettings, busy_intervals: Iterable = (),
             now: Optional[datetime] = None, config: Optional[EngineConfig] = None,
             should_cancel: Optional[Callable[[], bool]] = None) -> List[TaskSnapshot]:
    """schedule(tasks, settings, busy_intervals) -> tasks"""
    return SchedulingService(settings, config).schedule(tasks, busy_intervals, now, should_cancel)


def summarize_run(tasks: Iterable[TaskSnapshot]) -> Dict[str, int]:
    """Placed/unplaced counts over the tasks a run was asked to place."""
    considered = [
        task for task in tasks
        if task.is_auto_scheduled and not task.schedule_locked and task.status != TaskStatus.COMPLETED
    ]
    placed = sum(1 for task in considered if task.has_interval)
    return {"placed": placed, "unplaced": len(considered) - placed}
