"""
Simulation: the orchestrator for observers and their broadcast signals.

Each call to update(Δt_real) while running:
1. Scales Δt_real by time_scale and advances lab time
2. Advances every observer (insertion order), emitting one signal per tick
   from the position and instant at which the tick fired
3. Grows every active signal to the new lab time
4. Checks every (active signal × observer) pair for a first reception, only
   after all positions for this step are committed
5. Prunes retired signals
6. Notifies update callbacks

The Doppler factor stored with a reception is authoritative: it comes from
the emitter's velocity at emission and the receiver's velocity at reception,
both ground truth. The receiver's own cadence-based estimate lives in its
PingTracker and is never mixed in.
"""

from __future__ import annotations
import enum
import itertools
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Sequence

import numpy as np

from rellab.core import physics
from rellab.core.retention import RetentionPolicy
from rellab.core.signals import BroadcastSignal, SignalPayload
from rellab.core.vectors import zero_vector
from rellab.patterns.observer import Observer, ThrustResult, TickEvent, create_observer

logger = logging.getLogger(__name__)

LAB_ID = "lab"


class SimulationState(str, enum.Enum):
    PAUSED = "paused"
    RUNNING = "running"


@dataclass
class SimulationConfig:
    """Configuration for the simulation."""

    time_scale: float = 1.0            # Lab seconds per real second
    max_signal_radius: float = 1e6     # Signal horizon (light-seconds)
    auto_emit_signals: bool = True     # Emit a signal on every clock tick
    default_arm_length: float = 5.0
    default_mass: float = 1000.0
    retention: RetentionPolicy = field(default_factory=RetentionPolicy)


@dataclass(frozen=True)
class ReceiverSnapshot:
    id: str
    proper_time: float
    position: np.ndarray


@dataclass(frozen=True)
class PhotonReception:
    """A first arrival of a signal at an observer."""

    payload: SignalPayload
    doppler_factor: float
    light_travel_time: float
    receiver: ReceiverSnapshot
    lab_time: float


UpdateCallback = Callable[["Simulation"], None]
ReceptionCallback = Callable[[PhotonReception], None]


def radial_doppler_factor(
    source_velocity: np.ndarray,
    receiver_velocity: np.ndarray,
    direction: np.ndarray,
) -> float:
    """
    Doppler factor f_obs / f_emit between a source and a receiver.

    The receiver's velocity is expressed in the source's rest frame and
    projected on the unit direction source → receiver, so a positive radial
    β means the two are separating (redshift, factor < 1).
    """
    relative = physics.relative_velocity(receiver_velocity, source_velocity)
    radial_beta = float(np.dot(relative, direction))
    return physics.doppler_factor(radial_beta)


class Simulation:
    """
    Owns observers and signals and advances them in lock step.

    The physics always runs in the single lab frame. The reference observer
    only changes how velocities are reported and how bodies are contracted
    for display.
    """

    def __init__(self, config: SimulationConfig | None = None):
        self.config = config or SimulationConfig()

        self.observers: list[Observer] = []
        self.signals: list[BroadcastSignal] = []
        self.lab_time: float = 0.0
        self.state = SimulationState.PAUSED
        self.time_scale: float = self.config.time_scale
        self.max_signal_radius: float = self.config.max_signal_radius
        self.auto_emit_signals: bool = self.config.auto_emit_signals
        self.reference_observer: Observer | None = None
        self._step_start: float = 0.0  # Lab time at the start of the current step

        self._update_callbacks: list[UpdateCallback] = []
        self._reception_callbacks: list[ReceptionCallback] = []
        self._next_id = itertools.count(1)

    # ═══════════════════════════════════════════════════════════════
    # OBSERVERS
    # ═══════════════════════════════════════════════════════════════

    def add_observer(
        self,
        name: str,
        position: Sequence[float] = (0.0, 0.0, 0.0),
        velocity: Sequence[float] = (0.0, 0.0, 0.0),
        *,
        id: str | None = None,
        color: int | None = None,
        mass: float | None = None,
        arm_length: float | None = None,
    ) -> Observer:
        """
        Add an observer. The first one added becomes the reference frame.

        Raises:
            ValueError: for a duplicate id or invalid kinematics
        """
        observer_id = id or self._generate_id()
        if self.get_observer(observer_id) is not None:
            raise ValueError(f"observer id {observer_id!r} already exists")

        observer = create_observer(
            observer_id,
            name,
            position=position,
            velocity=velocity,
            mass=mass if mass is not None else self.config.default_mass,
            arm_length=arm_length if arm_length is not None else self.config.default_arm_length,
            color=color,
            retention=self.config.retention,
        )
        self.observers.append(observer)
        for signal in self.signals:
            signal.add_target(observer.id)
        if len(self.observers) == 1:
            self.reference_observer = observer

        logger.info("Added observer %s (%s) at %s, |v|=%.3fc", observer.id, name,
                    observer.position.tolist(), observer.beta)
        return observer

    def _generate_id(self) -> str:
        while True:
            candidate = f"obs-{next(self._next_id)}"
            if self.get_observer(candidate) is None:
                return candidate

    def remove_observer(self, observer_id: str) -> bool:
        """
        Remove an observer. The lab observer cannot be removed.

        Returns:
            True if an observer was removed
        """
        if observer_id == LAB_ID:
            logger.warning("Refusing to remove the lab observer")
            return False

        observer = self.get_observer(observer_id)
        if observer is None:
            logger.warning("Cannot remove unknown observer %s", observer_id)
            return False

        self.observers.remove(observer)
        for signal in self.signals:
            signal.drop_target(observer_id)
        self._prune_inactive()

        if self.reference_observer is observer:
            self.reference_observer = self.observers[0] if self.observers else None

        logger.info("Removed observer %s", observer_id)
        return True

    def get_observer(self, observer_id: str) -> Observer | None:
        for observer in self.observers:
            if observer.id == observer_id:
                return observer
        return None

    def set_reference_frame(self, observer_id: str | None) -> None:
        """Select the observer whose frame is used for display (None for the lab)."""
        if observer_id is None:
            self.reference_observer = None
            logger.info("Reference frame set to lab coordinates")
            return
        observer = self.get_observer(observer_id)
        if observer is None:
            logger.warning("Unknown reference frame %s; keeping current", observer_id)
            return
        self.reference_observer = observer
        logger.info("Reference frame set to %s", observer_id)

    @property
    def reference_velocity(self) -> np.ndarray:
        if self.reference_observer is None:
            return zero_vector()
        return self.reference_observer.velocity.copy()

    def apply_thrust(self, observer_id: str, direction: Sequence[float], delta_mass: float) -> ThrustResult:
        observer = self.get_observer(observer_id)
        if observer is None:
            logger.warning("Thrust requested for unknown observer %s", observer_id)
            return ThrustResult(success=False, delta_v=0.0, new_mass=0.0)
        return observer.apply_thrust(direction, delta_mass)

    # ═══════════════════════════════════════════════════════════════
    # STATE MACHINE
    # ═══════════════════════════════════════════════════════════════

    def play(self) -> None:
        self.state = SimulationState.RUNNING

    def pause(self) -> None:
        self.state = SimulationState.PAUSED

    def toggle(self) -> None:
        if self.state is SimulationState.RUNNING:
            self.pause()
        else:
            self.play()

    @property
    def is_running(self) -> bool:
        return self.state is SimulationState.RUNNING

    def reset(self) -> None:
        """Back to lab time 0, paused, with no signals and every observer reset."""
        self.lab_time = 0.0
        self.state = SimulationState.PAUSED
        self._step_start = 0.0
        for observer in self.observers:
            observer.reset()
        self.signals = []
        logger.info("Simulation reset (%d observers)", len(self.observers))

    # ═══════════════════════════════════════════════════════════════
    # SIGNALS
    # ═══════════════════════════════════════════════════════════════

    def emit_signal(
        self,
        observer: Observer,
        clock_type: str,
        tick_number: int,
        tick: TickEvent | None = None,
    ) -> BroadcastSignal:
        """
        Emit a broadcast signal from an observer.

        Without a tick event the emission happens now, at the observer's
        current position and proper time.
        """
        if tick is None:
            origin = observer.position
            emission_lab_time = self.lab_time
            emission_proper_time = observer.proper_time
            emission_velocity = observer.velocity
        else:
            origin = tick.position
            emission_lab_time = self._step_start + tick.lab_offset
            emission_proper_time = tick.proper_time
            emission_velocity = tick.velocity

        signal = BroadcastSignal(
            source_id=observer.id,
            clock_type=clock_type,
            tick_number=tick_number,
            origin=origin,
            emission_lab_time=emission_lab_time,
            emission_proper_time=emission_proper_time,
            emission_velocity=emission_velocity,
            max_radius=self.max_signal_radius,
        )
        signal.set_target_count(len(self.observers) - 1)
        if signal.active:
            self.signals.append(signal)

        logger.debug("Emitted %s at t=%.6f from %s", signal.id, emission_lab_time, origin.tolist())
        return signal

    # ═══════════════════════════════════════════════════════════════
    # TIME EVOLUTION
    # ═══════════════════════════════════════════════════════════════

    def update(self, dt_real: float) -> None:
        """Advance by one frame of dt_real seconds (no-op while paused)."""
        if self.state is not SimulationState.RUNNING:
            return

        dt_lab = dt_real * self.time_scale
        if not math.isfinite(dt_lab) or dt_lab < 0:
            raise ValueError(f"lab time step must be finite and non-negative, got {dt_lab}")
        self._step_start = self.lab_time
        self.lab_time += dt_lab

        ref_velocity = self.reference_velocity
        for observer in self.observers:
            step = observer.update(dt_lab, ref_velocity)
            if not self.auto_emit_signals:
                continue
            for tick in step.ticks:
                self.emit_signal(observer, tick.clock_type, tick.tick_number, tick)

        for signal in self.signals:
            signal.update(self.lab_time)

        self._check_receptions()
        self._prune_inactive()

        for callback in list(self._update_callbacks):
            callback(self)

    def _check_receptions(self) -> None:
        for signal in self.signals:
            if not signal.active:
                continue
            for observer in self.observers:
                if not signal.check_reception(observer.id, observer.position):
                    continue
                self._deliver(signal, observer)
                if not signal.active:
                    break

    def _deliver(self, signal: BroadcastSignal, observer: Observer) -> None:
        offset = observer.position - signal.origin
        separation = float(np.linalg.norm(offset))
        direction = offset / separation if separation > 0 else zero_vector()

        doppler = radial_doppler_factor(signal.emission_velocity, observer.velocity, direction)
        light_travel_time = self.lab_time - signal.emission_lab_time

        observer.record_received_tick(
            signal.source_id,
            signal.clock_type,
            signal.tick_number,
            doppler,
            signal.emission_proper_time,
            light_travel_time,
        )
        logger.debug("%s received %s (D=%.4f, travel=%.4f)", observer.id, signal.id,
                     doppler, light_travel_time)

        if not self._reception_callbacks:
            return
        reception = PhotonReception(
            payload=signal.get_payload(),
            doppler_factor=doppler,
            light_travel_time=light_travel_time,
            receiver=ReceiverSnapshot(
                id=observer.id,
                proper_time=observer.proper_time,
                position=observer.position.copy(),
            ),
            lab_time=self.lab_time,
        )
        for callback in list(self._reception_callbacks):
            callback(reception)

    def _prune_inactive(self) -> None:
        self.signals = [signal for signal in self.signals if signal.active]

    # ═══════════════════════════════════════════════════════════════
    # CALLBACKS & PRESENTATION
    # ═══════════════════════════════════════════════════════════════

    def on_update(self, callback: UpdateCallback) -> Callable[[], None]:
        """Register a per-frame callback. Returns a function that unregisters it."""
        return self._subscribe(self._update_callbacks, callback)

    def on_photon_reception(self, callback: ReceptionCallback) -> Callable[[], None]:
        """Register a reception callback. Returns a function that unregisters it."""
        return self._subscribe(self._reception_callbacks, callback)

    @staticmethod
    def _subscribe(callbacks: list, callback: Callable) -> Callable[[], None]:
        callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def get_display_data(self) -> dict:
        """Read-only snapshot of the simulation for presentation layers."""
        ref_velocity = self.reference_velocity
        observers = []
        for observer in self.observers:
            data = observer.get_display_data()
            data["velocity_in_reference"] = physics.relative_velocity(observer.velocity, ref_velocity)
            observers.append(data)

        return {
            "lab_time": self.lab_time,
            "state": self.state.value,
            "time_scale": self.time_scale,
            "reference_id": self.reference_observer.id if self.reference_observer else None,
            "observers": observers,
            "signal_count": len(self.signals),
        }

    def get_available_frames(self) -> list[dict]:
        return [{"id": observer.id, "name": observer.name} for observer in self.observers]

    def dispose(self) -> None:
        """Drop every observer, signal and callback."""
        self.observers = []
        self.signals = []
        self.reference_observer = None
        self._update_callbacks.clear()
        self._reception_callbacks.clear()
