"""
Per-source reception bookkeeping for an observer.

Two records are kept for every source an observer has heard from:

- ReceivedTicks: the highest H/V tick number received and when
- PingTracker: what the observer can infer from the cadence of arrivals

LOCAL RULE: the PingTracker never looks at the source's velocity. It
compares the gaps between receptions (receiver proper time) with the gaps
between emissions (emitter proper time, carried in the signal). Their ratio
is the period Doppler ratio

    D = Δτ_received / Δτ_emitted = √[(1 + β) / (1 - β)]

which is inverted to an estimate of the source's radial β and γ. This
estimate can drift from the simulation's authoritative Doppler factor
(finite frame steps, acceleration mid-window); the two are kept apart.
"""

from __future__ import annotations
import math
from collections import deque
from dataclasses import dataclass, field

from rellab.core.physics import gamma


def infer_beta_from_period_ratio(ratio: float) -> tuple[float, float]:
    """
    Invert D² = (1 + β) / (1 - β).

    Returns:
        (beta, gamma), falling back to (0, 1) when D is degenerate
    """
    if not math.isfinite(ratio) or ratio <= 0:
        return 0.0, 1.0
    d2 = ratio * ratio
    beta = (d2 - 1.0) / (d2 + 1.0)
    g = gamma(beta)
    if not math.isfinite(g):
        return 0.0, 1.0
    return beta, g


@dataclass
class ReceivedTicks:
    """Highest tick number received per clock from one source."""

    H: int = 0
    V: int = 0
    last_received_at: float | None = None  # Receiver proper time

    def record(self, clock_type: str, tick_number: int, tau: float) -> bool:
        """
        Register a received tick.

        Returns:
            True if the tick advanced the counter, False if it was stale
        """
        if clock_type not in ("H", "V"):
            raise ValueError(f"unknown clock type {clock_type!r}")
        self.last_received_at = tau
        if tick_number <= getattr(self, clock_type):
            return False
        setattr(self, clock_type, tick_number)
        return True

    def as_dict(self) -> dict:
        return {"H": self.H, "V": self.V, "last_received_at": self.last_received_at}


@dataclass
class PingTracker:
    """
    Cadence-based inference of a source's radial motion.

    Interval pairs are kept over a sliding window and the period ratio is
    the ratio of their sums, which averages out frame-step jitter.
    """

    window: int = 10
    last_reception_tau: float | None = None
    last_emission_tau: float | None = None
    estimated_distance: float = 0.0  # Light-travel time of the last signal
    round_trip_time: float = 0.0
    inferred_period_ratio: float = 1.0
    inferred_beta: float = 0.0
    inferred_gamma: float = 1.0
    reception_intervals: deque = field(default=None, init=False)
    emission_intervals: deque = field(default=None, init=False)

    def __post_init__(self):
        self.reception_intervals = deque(maxlen=self.window)
        self.emission_intervals = deque(maxlen=self.window)

    @property
    def inferred_doppler_factor(self) -> float:
        """Frequency ratio f_obs / f_emit implied by the observed cadence."""
        return 1.0 / self.inferred_period_ratio

    @property
    def has_estimate(self) -> bool:
        return len(self.emission_intervals) > 0

    def record(self, reception_tau: float, emission_tau: float, light_travel_time: float) -> None:
        """
        Fold one reception into the estimate.

        Receptions that carry an emission time no later than the previous
        one (e.g. the H and V signals of the same instant) do not form a new
        interval and only refresh the distance estimate.
        """
        self.estimated_distance = light_travel_time
        self.round_trip_time = 2.0 * light_travel_time

        if self.last_emission_tau is not None and emission_tau <= self.last_emission_tau:
            return

        if self.last_emission_tau is not None and self.last_reception_tau is not None:
            self.reception_intervals.append(reception_tau - self.last_reception_tau)
            self.emission_intervals.append(emission_tau - self.last_emission_tau)
            self._update_estimate()

        self.last_reception_tau = reception_tau
        self.last_emission_tau = emission_tau

    def _update_estimate(self) -> None:
        emitted = sum(self.emission_intervals)
        received = sum(self.reception_intervals)
        # All arrivals in the window landed in one frame: no usable cadence yet
        if emitted <= 0 or received <= 0:
            return
        self.inferred_period_ratio = received / emitted
        self.inferred_beta, self.inferred_gamma = infer_beta_from_period_ratio(
            self.inferred_period_ratio
        )

    def as_dict(self) -> dict:
        return {
            "last_reception_tau": self.last_reception_tau,
            "last_emission_tau": self.last_emission_tau,
            "estimated_distance": self.estimated_distance,
            "round_trip_time": self.round_trip_time,
            "reception_intervals": list(self.reception_intervals),
            "emission_intervals": list(self.emission_intervals),
            "inferred_period_ratio": self.inferred_period_ratio,
            "inferred_doppler_factor": self.inferred_doppler_factor,
            "inferred_beta": self.inferred_beta,
            "inferred_gamma": self.inferred_gamma,
        }
