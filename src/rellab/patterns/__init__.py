"""
Patterns: stateful entities that live in the simulation.

Patterns see their own state and the signals that reach them.
- LightClock: phase accumulator that ticks every 2L of proper time
- Observer: moves, ages, carries two clocks, logs receptions
- ReceivedTicks / PingTracker: per-source reception bookkeeping
"""

from rellab.patterns.base import Pattern, PatternConfig
from rellab.patterns.clock import LightClock, ClockConfig, advance_phase, create_clock
from rellab.patterns.reception import PingTracker, ReceivedTicks, infer_beta_from_period_ratio
from rellab.patterns.observer import (
    Observer,
    ObserverConfig,
    ObserverStep,
    ThrustRecord,
    ThrustResult,
    TickEvent,
    create_observer,
)

__all__ = [
    "Pattern",
    "PatternConfig",
    "LightClock",
    "ClockConfig",
    "advance_phase",
    "create_clock",
    "PingTracker",
    "ReceivedTicks",
    "infer_beta_from_period_ratio",
    "Observer",
    "ObserverConfig",
    "ObserverStep",
    "ThrustRecord",
    "ThrustResult",
    "TickEvent",
    "create_observer",
]
