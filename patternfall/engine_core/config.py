"""
Simulation configuration.

Constants that fix the kernel's time base. Frame count is the only clock:
every duration in the kernel is expressed in ticks.
"""

from __future__ import annotations
from dataclasses import dataclass
import math


@dataclass(frozen=True)
class SimulationConfig:
    """Tunable simulation constants."""
    tick_rate: int = 60  # Ticks per second, used to convert seconds/ms to ticks
    move_ticks: int = 11  # Ticks for a full tile traversal
    sequence_capacity: int = 64  # Bound on recorded color sequences
    max_pending_intents: int = 2
    default_grid_size: int = 6

    def ms_to_ticks(self, ms: int | float) -> int:
        """Convert a millisecond delay to a whole number of ticks (rounded up)."""
        if ms <= 0:
            return 0
        return math.ceil(ms * self.tick_rate / 1000)


DEFAULT_CONFIG = SimulationConfig()
