"""
Doppler analysis of an observer's reception history.

Two Doppler figures exist for every source:

- authoritative: stored with each reception record, computed by the
  simulation from ground-truth velocities
- inferred: the observer's own PingTracker estimate from arrival cadence

compare_doppler_estimates puts them side by side.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

import numpy as np
from scipy import stats

from rellab.core.retention import ReceptionRecord

if TYPE_CHECKING:
    from rellab.patterns.observer import Observer


@dataclass
class DopplerComparison:
    """Authoritative versus inferred Doppler for one source."""

    source_id: str
    authoritative: float          # Latest stored factor f_obs / f_emit
    inferred: float               # 1 / inferred period ratio
    inferred_beta: float
    inferred_gamma: float
    has_estimate: bool

    @property
    def discrepancy(self) -> float:
        return abs(self.authoritative - self.inferred)


def _records_for(
    history: Sequence[ReceptionRecord],
    source_id: str,
    clock_type: str | None = None,
) -> list[ReceptionRecord]:
    return [
        r for r in history
        if r.source_id == source_id and (clock_type is None or r.clock_type == clock_type)
    ]


def doppler_series(
    history: Sequence[ReceptionRecord],
    source_id: str,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Doppler factor against receiver proper time for one source.

    Aggregated entries are included at their bucket centre.

    Returns:
        (tau, doppler, counts) arrays sorted by tau
    """
    records = sorted(_records_for(history, source_id), key=lambda r: r.tau)
    tau = np.array([r.tau for r in records], dtype=float)
    doppler = np.array([r.doppler_factor for r in records], dtype=float)
    counts = np.array([r.count for r in records], dtype=int)
    return tau, doppler, counts


def compare_doppler_estimates(observer: "Observer", source_id: str) -> DopplerComparison:
    """
    Compare the latest authoritative Doppler factor with the inferred one.

    Raises:
        KeyError: if the observer has never received from source_id
    """
    tracker = observer.ping_tracker.get(source_id)
    if tracker is None:
        raise KeyError(f"{observer.id} has no reception from {source_id!r}")

    records = _records_for(observer.reception_history, source_id)
    authoritative = max(records, key=lambda r: r.tau).doppler_factor if records else 1.0

    return DopplerComparison(
        source_id=source_id,
        authoritative=authoritative,
        inferred=tracker.inferred_doppler_factor,
        inferred_beta=tracker.inferred_beta,
        inferred_gamma=tracker.inferred_gamma,
        has_estimate=tracker.has_estimate,
    )


def measure_reception_rate(
    history: Sequence[ReceptionRecord],
    source_id: str,
    clock_type: str = "H",
) -> float:
    """
    Received tick numbers per unit of receiver proper time.

    Only raw entries are used; aggregated entries carry no tick number.
    Returns 0.0 when fewer than two usable receptions exist.
    """
    records = [r for r in _records_for(history, source_id, clock_type) if not r.aggregated]
    if len(records) < 2:
        return 0.0
    tau = np.array([r.tau for r in records], dtype=float)
    ticks = np.array([r.tick_number for r in records], dtype=float)
    if np.ptp(tau) == 0:
        return 0.0
    slope, _, _, _, _ = stats.linregress(tau, ticks)
    return float(slope)
