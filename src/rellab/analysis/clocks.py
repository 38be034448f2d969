"""
Clock recording and time-dilation measurement.

The recorder listens to a running Simulation through its update callback and
keeps one reading per observer per frame. Nothing here is read back by the
engine.

For an observer at constant speed β the recorded proper time is a straight
line in lab time with slope

    dτ/dt = 1/γ = √(1 - β²)

which measure_time_dilation recovers with a least-squares fit.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

import numpy as np
from scipy import stats

from rellab.core import physics

if TYPE_CHECKING:
    from rellab.core.simulation import Simulation


@dataclass
class TimeDilationResult:
    """Fitted proper-time rate of one observer."""

    observer_id: str
    slope: float          # Fitted dτ/dt
    intercept: float
    r_squared: float
    expected_slope: float  # 1/γ from the observer's current speed
    n_samples: int

    @property
    def relative_error(self) -> float:
        if self.expected_slope == 0:
            return float("inf")
        return abs(self.slope - self.expected_slope) / self.expected_slope


class ClockRecorder:
    """
    Records (lab_time, proper_time, x, y, z) for every observer each frame.

    Usage:
        recorder = ClockRecorder(sim)
        run_for(sim, 10.0)
        recorder.detach()
    """

    def __init__(self, sim: "Simulation", record_initial: bool = True):
        self.sim = sim
        self.readings: dict[str, list[tuple[float, float, float, float, float]]] = {}
        self.names: dict[str, str] = {}
        self.speeds: dict[str, float] = {}
        self._unsubscribe: Callable[[], None] | None = sim.on_update(self.record)
        if record_initial:
            self.record(sim)

    def record(self, sim: "Simulation") -> None:
        for observer in sim.observers:
            x, y, z = observer.position
            self.readings.setdefault(observer.id, []).append(
                (sim.lab_time, observer.proper_time, float(x), float(y), float(z))
            )
            self.names[observer.id] = observer.name
            self.speeds[observer.id] = observer.beta

    def detach(self) -> None:
        """Stop recording."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def observer_ids(self) -> list[str]:
        return list(self.readings)

    def get_arrays(self, observer_id: str) -> np.ndarray:
        """
        Readings of one observer as an array of shape [n, 5].

        Columns: lab_time, proper_time, x, y, z.
        """
        rows = self.readings.get(observer_id)
        if not rows:
            return np.empty((0, 5))
        return np.asarray(rows, dtype=float)


def measure_time_dilation(recorder: ClockRecorder, observer_id: str) -> TimeDilationResult:
    """
    Fit proper time against lab time for one observer.

    Raises:
        ValueError: if fewer than two distinct lab times were recorded
    """
    data = recorder.get_arrays(observer_id)
    if len(data) < 2 or np.ptp(data[:, 0]) == 0:
        raise ValueError(f"not enough readings for {observer_id!r} to fit a rate")

    slope, intercept, r_value, _, _ = stats.linregress(data[:, 0], data[:, 1])
    expected = 1.0 / physics.gamma(recorder.speeds[observer_id])

    return TimeDilationResult(
        observer_id=observer_id,
        slope=float(slope),
        intercept=float(intercept),
        r_squared=float(r_value**2),
        expected_slope=expected,
        n_samples=len(data),
    )
