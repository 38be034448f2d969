"""
LightClock: a photon bouncing between two mirrors.

The clock's proper period is T₀ = 2L/c. It is driven by proper time only:
each step adds Δτ/T₀ to a phase in [0, 1) and every wrap through 1 is a
tick. Because one step can span several periods, the tick count for a
step is an integer, not a flag.

Key observation:
- A clock at rest in the lab ticks every T₀ of lab time
- A moving clock receives less proper time per lab second (Δτ = Δt/γ)
  and so ticks every γT₀ of lab time
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Literal

from rellab.core.physics import light_clock_period
from rellab.patterns.base import Pattern, PatternConfig

ClockOrientation = Literal["H", "V"]


def advance_phase(phase: float, period: float, dtau: float) -> tuple[float, int]:
    """
    Advance a periodic phase accumulator.

    Args:
        phase: Current phase in [0, 1)
        period: Proper period of the process
        dtau: Proper time elapsed this step (>= 0)

    Returns:
        (new_phase, ticks): the wrapped phase in [0, 1) and how many whole
        periods were completed during the step
    """
    phase += dtau / period
    ticks = math.floor(phase)
    return phase - ticks, ticks


@dataclass
class ClockConfig(PatternConfig):
    """Configuration for a light clock."""

    orientation: ClockOrientation = "H"  # Arm along x (H) or y (V)
    mirror_distance: float = 5.0         # L, in light-seconds


class LightClock(Pattern):
    """
    A light clock with a phase accumulator and a monotonic tick counter.

    The clock:
    1. Receives proper time increments from its owner
    2. Wraps its phase and counts ticks (possibly several per step)
    3. Tracks a presentation-only contracted arm length
    """

    def __init__(self, config: ClockConfig):
        super().__init__(config)
        if not config.mirror_distance > 0:
            raise ValueError(f"mirror_distance must be positive, got {config.mirror_distance}")

        self.orientation: ClockOrientation = config.orientation
        self.mirror_distance = config.mirror_distance
        self.period = light_clock_period(config.mirror_distance)

        self.phase: float = 0.0
        self.tick_count: int = 0

        # Arm length as seen from the reference frame (display only)
        self.current_length: float = config.mirror_distance

    def update(self, dtau: float) -> int:
        """
        Advance by dtau of proper time.

        Returns:
            Number of ticks completed during this step
        """
        self.phase, ticks = advance_phase(self.phase, self.period, dtau)
        self.tick_count += ticks
        return ticks

    def tick_offsets(self, phase_before: float, ticks: int) -> list[float]:
        """
        Proper-time offsets, from the start of a step, at which each tick fired.

        Args:
            phase_before: Phase at the start of the step
            ticks: Ticks completed during the step
        """
        return [(i - phase_before) * self.period for i in range(1, ticks + 1)]

    def photon_position(self) -> float:
        """Distance of the photon from the first mirror, along the current arm."""
        t = self.phase * 2 if self.phase < 0.5 else (1 - self.phase) * 2
        return t * self.current_length

    def set_contraction(self, factor: float) -> None:
        """Set the displayed arm length as a fraction of L (clamped to [0.1, 1])."""
        factor = max(0.1, min(1.0, factor))
        self.current_length = self.mirror_distance * factor

    def reset(self) -> None:
        self.phase = 0.0
        self.tick_count = 0
        self.current_length = self.mirror_distance

    def get_display_data(self) -> dict:
        return {
            "pattern_id": self.id,
            "orientation": self.orientation,
            "tick_count": self.tick_count,
            "phase": self.phase,
            "period": self.period,
            "current_length": self.current_length,
        }


def create_clock(
    pattern_id: str,
    orientation: ClockOrientation,
    mirror_distance: float,
) -> LightClock:
    """
    Convenience factory for creating a light clock.

    Args:
        pattern_id: Unique identifier for this clock
        orientation: "H" (arm along x) or "V" (arm along y)
        mirror_distance: Distance between the mirrors

    Returns:
        Configured LightClock
    """
    config = ClockConfig(
        pattern_id=pattern_id,
        orientation=orientation,
        mirror_distance=mirror_distance,
    )
    return LightClock(config)
