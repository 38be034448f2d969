"""
rellab: Special-Relativity Multi-Observer Simulator

A simulator of several independently moving observers in flat spacetime,
each carrying its own light clocks and broadcasting every tick at c.

Core concepts:
- Every observer accumulates its own proper time (Δτ = Δt/γ)
- Every clock tick leaves as a light sphere expanding at c
- An observer hears a tick only once the sphere has reached it
- The Doppler factor at reception follows from the relative motion
- Each observer also infers the others' motion from tick cadence alone
"""

__version__ = "0.1.0"

from rellab.core.simulation import (
    LAB_ID,
    PhotonReception,
    Simulation,
    SimulationConfig,
    SimulationState,
)

__all__ = [
    "LAB_ID",
    "PhotonReception",
    "Simulation",
    "SimulationConfig",
    "SimulationState",
]
