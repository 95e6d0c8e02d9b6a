"""
Constants shared across the scheduling engine.
"""

import enum

from ...models import Priority, EnergyLevel

# Slot occupant markers
AVAILABLE = "AVAILABLE"
BUSY = "BUSY"


class EnergyTier(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


# Precedence when energy windows overlap: first match wins
TIER_PRECEDENCE = (EnergyTier.HIGH, EnergyTier.MEDIUM, EnergyTier.LOW)

# Position of each tier on the energy scale; neighbours are "adjacent"
TIER_RANK = {
    EnergyTier.LOW: 0,
    EnergyTier.MEDIUM: 1,
    EnergyTier.HIGH: 2,
}

ENERGY_LEVEL_TIER = {
    EnergyLevel.LOW: EnergyTier.LOW,
    EnergyLevel.MEDIUM: EnergyTier.MEDIUM,
    EnergyLevel.HIGH: EnergyTier.HIGH,
}

# Lower sorts first; tasks without a priority go last
PRIORITY_ORDER = {
    Priority.HIGH: 0,
    Priority.MEDIUM: 1,
    Priority.LOW: 2,
}
UNSET_PRIORITY_ORDER = 3

# Local hour boundaries of the time-of-day buckets
AFTERNOON_START_HOUR = 12
EVENING_START_HOUR = 17

SCORE_PRECISION = 6
