"""
Analysis layer: measurements taken from a running simulation.

IMPORTANT: This is NOT seen by the engine. One-way derivation only.

- ClockRecorder / measure_time_dilation: proper-time rate versus 1/γ
- doppler_series / compare_doppler_estimates: authoritative versus inferred
  Doppler per source
- measure_reception_rate: received ticks per unit receiver proper time
"""

from rellab.analysis.clocks import ClockRecorder, TimeDilationResult, measure_time_dilation
from rellab.analysis.doppler import (
    DopplerComparison,
    compare_doppler_estimates,
    doppler_series,
    measure_reception_rate,
)

__all__ = [
    "ClockRecorder",
    "TimeDilationResult",
    "measure_time_dilation",
    "DopplerComparison",
    "compare_doppler_estimates",
    "doppler_series",
    "measure_reception_rate",
]
