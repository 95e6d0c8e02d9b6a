"""
Maps hours of the day to the energy tier the user configured for them.
"""

from typing import Dict, Optional

from ...schemas import ScheduleSettings
from ..core.constants import EnergyTier, ENERGY_LEVEL_TIER, TIER_PRECEDENCE, TIER_RANK


class EnergyProfile:
    """
    Energy windows are half-open [start, end) hour ranges. A window with a missing
    bound is unused. Overlapping windows resolve high > medium > low.
    """
    def __init__(self, settings: ScheduleSettings):
        windows = {
            EnergyTier.HIGH: (settings.high_energy_start, settings.high_energy_end),
            EnergyTier.MEDIUM: (settings.medium_energy_start, settings.medium_energy_end),
            EnergyTier.LOW: (settings.low_energy_start, settings.low_energy_end),
        }
        self.windows: Dict[EnergyTier, tuple] = {
            tier: bounds for tier, bounds in windows.items()
            if bounds[0] is not None and bounds[1] is not None
        }
        self._by_hour = [self._lookup(hour) for hour in range(24)]

    def _lookup(self, hour: int) -> EnergyTier:
        for tier in TIER_PRECEDENCE:
            bounds = self.windows.get(tier)
            if bounds and bounds[0] <= hour < bounds[1]:
                return tier
        return EnergyTier.NONE

    def tier_at(self, hour: int) -> EnergyTier:
        return self._by_hour[hour % 24]

    @property
    def is_configured(self) -> bool:
        return bool(self.windows)


def is_adjacent(a: Optional[EnergyTier], b: Optional[EnergyTier]) -> bool:
    """High/medium and medium/low are neighbours; NONE is nobody's neighbour."""
    if a not in TIER_RANK or b not in TIER_RANK:
        return False
    return abs(TIER_RANK[a] - TIER_RANK[b]) == 1


def calculate_energy_score(task, tier: EnergyTier, weight: float) -> float:
    """
    Full weight when the slot's tier matches what the task needs (or it needs nothing),
    half for an adjacent tier, zero otherwise.
    """
    if task.energy_level is None:
        return weight
    wanted = ENERGY_LEVEL_TIER[task.energy_level]
    if tier == wanted:
        return weight
    if is_adjacent(tier, wanted):
        return weight / 2
    return 0.0
