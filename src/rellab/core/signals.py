"""
Broadcast signals: expanding light spheres for clock-tick emissions.

Each time an observer's light clock ticks, a signal leaves the emission
point in every direction at c. Its state is the emission snapshot (where,
when, how fast the source was moving) plus a radius that is a pure
function of lab time. An observer receives the signal the first time the
wavefront has reached it:

    radius(t) = (t - t_emit) · c  >=  |x_observer(t) - origin|

The signal deactivates once every target has received it or once it has
grown past its horizon (max_radius).
"""

from __future__ import annotations
from dataclasses import dataclass, field

import numpy as np

from rellab.core.physics import C


def signal_id(source_id: str, clock_type: str, tick_number: int) -> str:
    """Deterministic identity of the emission (source, clock, tick)."""
    return f"{source_id}-{clock_type}-{tick_number}"


@dataclass(frozen=True)
class SignalPayload:
    """What a receiver learns from a signal: the emission snapshot."""

    source_id: str
    clock_type: str
    tick_number: int
    emission_proper_time: float
    emission_velocity: np.ndarray
    emission_position: np.ndarray


@dataclass
class BroadcastSignal:
    """
    One clock-tick emission propagating as a sphere centred on its origin.

    The emission fields are a snapshot taken at the instant of emission and
    are never updated afterwards.
    """

    source_id: str
    clock_type: str
    tick_number: int
    origin: np.ndarray
    emission_lab_time: float
    emission_proper_time: float
    emission_velocity: np.ndarray
    max_radius: float = 1e6

    radius: float = field(default=0.0, init=False)
    active: bool = field(default=True, init=False)
    target_count: int | None = field(default=None, init=False)
    received_by: set[str] = field(default_factory=set, init=False)

    def __post_init__(self):
        self.origin = np.array(self.origin, dtype=np.float64)
        self.emission_velocity = np.array(self.emission_velocity, dtype=np.float64)
        self.origin.flags.writeable = False
        self.emission_velocity.flags.writeable = False

    @property
    def id(self) -> str:
        return signal_id(self.source_id, self.clock_type, self.tick_number)

    def get_age(self, current_lab_time: float) -> float:
        return current_lab_time - self.emission_lab_time

    def update(self, current_lab_time: float) -> None:
        """Grow the wavefront to the given lab time, or retire the signal."""
        age = self.get_age(current_lab_time)
        if age < 0 or age * C > self.max_radius:
            self.active = False
            return
        self.radius = age * C

    def has_reached(self, position: np.ndarray) -> bool:
        return self.radius >= float(np.linalg.norm(np.asarray(position) - self.origin))

    def set_target_count(self, count: int) -> None:
        """
        Set how many observers (emitter excluded) must receive this signal.

        A signal with no targets has nobody to reach and retires at once.
        """
        self.target_count = max(0, count)
        self._retire_if_complete()

    def add_target(self, observer_id: str) -> None:
        """Count an observer that joined the simulation while in flight."""
        if observer_id == self.source_id or observer_id in self.received_by:
            return
        if self.target_count is not None:
            self.target_count += 1

    def drop_target(self, observer_id: str) -> None:
        """Forget a target that left the simulation before being reached."""
        if observer_id == self.source_id or observer_id in self.received_by:
            return
        if self.target_count is not None:
            self.set_target_count(self.target_count - 1)

    def check_reception(self, observer_id: str, position: np.ndarray) -> bool:
        """
        Report a first-time reception by an observer at `position`.

        Never true for the emitter itself or for an observer that already
        received this signal.
        """
        if observer_id == self.source_id or observer_id in self.received_by:
            return False
        if not self.has_reached(position):
            return False

        self.received_by.add(observer_id)
        self._retire_if_complete()
        return True

    def _retire_if_complete(self) -> None:
        if self.target_count is not None and len(self.received_by) >= self.target_count:
            self.active = False

    def get_payload(self) -> SignalPayload:
        return SignalPayload(
            source_id=self.source_id,
            clock_type=self.clock_type,
            tick_number=self.tick_number,
            emission_proper_time=self.emission_proper_time,
            emission_velocity=self.emission_velocity.copy(),
            emission_position=self.origin.copy(),
        )
