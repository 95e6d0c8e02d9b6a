"""
Placement scoring: combines the domain-specific components into one [0, 1] score.
"""

import logging
from datetime import timedelta
from typing import Dict, List, NamedTuple, Optional

from ...schemas import ScheduleSettings, ScoringWeights
from ..core.constants import SCORE_PRECISION
from ..core.errors import InvalidInputError
from ..core.time_slot import TimeSlot
from .energy_profile import EnergyProfile, calculate_energy_score
from .time_scoring import calculate_time_preference_score, calculate_urgency_score, calculate_earlier_bonus

logger = logging.getLogger(__name__)


class ScoredCandidate(NamedTuple):
    slot: TimeSlot
    score: float
    rank: int


class PlacementScorer:
    """
    Additive score for a candidate slot:

        energy match      (default 0.4)
        time of day       (default 0.3)
        due-date urgency  (default 0.2)
        earliness         (default 0.1)

    Weights must be non-negative and sum to at most 1.0 so the score stays in [0, 1].
    """
    def __init__(self, settings: ScheduleSettings, weights: Optional[ScoringWeights] = None,
                 due_lead: timedelta = timedelta(hours=24)):
        self.weights = weights or ScoringWeights()
        if self.weights.total > 1.0 + 1e-9:
            raise InvalidInputError(
                f"scoring weights sum to {self.weights.total:.3f}, must not exceed 1.0", field="weights"
            )
        self.energy = EnergyProfile(settings)
        self.tz = settings.tz
        self.due_lead = due_lead

    def breakdown(self, task, slot: TimeSlot, rank: int, total: int) -> Dict[str, float]:
        local_start = slot.start.astimezone(self.tz)
        tier = self.energy.tier_at(local_start.hour)
        return {
            "energy": calculate_energy_score(task, tier, self.weights.energy),
            "time_of_day": calculate_time_preference_score(task, local_start, self.weights.time_of_day),
            "due_date": calculate_urgency_score(task, slot, self.weights.due_date, self.due_lead),
            "earliness": calculate_earlier_bonus(rank, total, self.weights.earliness),
        }

    def score(self, task, slot: TimeSlot, rank: int, total: int) -> float:
        total_score = sum(self.breakdown(task, slot, rank, total).values())
        return round(min(1.0, max(0.0, total_score)), SCORE_PRECISION)

    def rank(self, task, candidates: List[TimeSlot]) -> List[ScoredCandidate]:
        """Score every candidate; best first, ties going to the earliest start."""
        total = len(candidates)
        scored = [
            ScoredCandidate(slot, self.score(task, slot, position, total), position)
            for position, slot in enumerate(candidates)
        ]
        scored.sort(key=lambda c: (-c.score, c.slot.start))
        for candidate in scored:
            logger.debug(f"task {task.id}: candidate {candidate.slot!r} scored {candidate.score}")
        return scored

    def is_preferred(self, task, slot: TimeSlot) -> bool:
        """
        True when the slot earns the full energy and time-of-day components. Energy
        only counts once the user has configured at least one energy window.
        """
        local_start = slot.start.astimezone(self.tz)
        if self.energy.is_configured:
            if calculate_energy_score(task, self.energy.tier_at(local_start.hour), 1.0) < 1.0:
                return False
        return calculate_time_preference_score(task, local_start, 1.0) == 1.0

    def best(self, task, candidates: List[TimeSlot]) -> Optional[ScoredCandidate]:
        """
        Highest-scoring candidate. A task with a due date only looks past the due
        date when none of its candidates finishes in time.
        """
        ranked = self.rank(task, candidates)
        if task.due_date is not None:
            on_time = [c for c in ranked if c.slot.end <= task.due_date]
            if on_time:
                return on_time[0]
        return ranked[0] if ranked else None
