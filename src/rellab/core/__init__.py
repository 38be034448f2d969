"""
Core engine primitives.

This layer knows NOTHING about rendering, GUIs, or plots.
It only knows:
- Relativistic kinematics (pure functions in physics)
- Validated 3-vectors
- Broadcast signals expanding at c
- Bounded retention of reception histories

The Simulation orchestrator (core.simulation) drives observers from the
patterns layer, so it is not imported here; use `rellab.Simulation` or
`rellab.core.simulation` directly.
"""

from rellab.core import physics
from rellab.core.retention import ReceptionRecord, RetentionPolicy
from rellab.core.signals import BroadcastSignal, SignalPayload, signal_id

__all__ = [
    "physics",
    "ReceptionRecord",
    "RetentionPolicy",
    "BroadcastSignal",
    "SignalPayload",
    "signal_id",
]
