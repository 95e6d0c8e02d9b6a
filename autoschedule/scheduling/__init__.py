"""
Auto-Scheduling Engine

Takes a user's pending tasks and assigns each one a start/end time inside the
user's work hours, around existing calendar commitments and locked tasks.
The engine is a pure function: schedule(tasks, settings, busy_intervals) -> tasks.
"""

from .core.scheduler import SchedulingService, schedule, summarize_run
from .core.time_window_index import TimeWindowIndex
from .core.time_slot import TimeSlot
from .core.constants import AVAILABLE, BUSY, EnergyTier
from .core.errors import (
    SchedulingError, InvalidInputError, InvariantViolationError, SchedulingCancelledError
)
from .scoring.energy_profile import EnergyProfile
from .scoring.slot_scoring import PlacementScorer, ScoredCandidate
from .algorithms.slot_finder import SlotFinder, find_candidates

__version__ = "1.0.0"
