"""
Observer: a moving, clock-bearing participant in the simulation.

Each observer:
1. Moves in the lab frame at constant velocity between thrusts
2. Accumulates its own proper time (Δτ = Δt/γ)
3. Carries two light clocks, H (arm along x) and V (arm along y)
4. Spends mass as light to change velocity (ideal photon rocket)
5. Logs every tick it receives from other observers and infers their
   motion from the cadence of those ticks

The observer reports its ticks together with the exact instant each one
fired inside the step, so the emitted signal leaves from where the clock
was when it crossed its threshold rather than from the end-of-step position.
"""

from __future__ import annotations
import itertools
import logging
import math
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from rellab.core import physics
from rellab.core.retention import ReceptionRecord, RetentionPolicy
from rellab.core.vectors import as_vector, as_velocity, normalize
from rellab.patterns.base import Pattern, PatternConfig
from rellab.patterns.clock import LightClock, create_clock
from rellab.patterns.reception import PingTracker, ReceivedTicks

logger = logging.getLogger(__name__)

OBSERVER_COLORS = (
    0x4FC3F7,  # Light blue
    0xFF6B6B,  # Coral red
    0x4ADE80,  # Green
    0xFBBF24,  # Yellow
    0xA78BFA,  # Violet
    0xF472B6,  # Pink
)

_color_cycle = itertools.cycle(OBSERVER_COLORS)

# Below this relative speed the body is drawn uncontracted
_CONTRACTION_THRESHOLD = 0.01


@dataclass
class ObserverConfig(PatternConfig):
    """Configuration for an observer."""

    name: str = ""
    position: Sequence[float] = (0.0, 0.0, 0.0)
    velocity: Sequence[float] = (0.0, 0.0, 0.0)  # Fraction of c
    mass: float = 1000.0        # kg, all of it convertible to light
    arm_length: float = 5.0     # Light-clock mirror distance
    color: int | None = None    # Display only


@dataclass(frozen=True)
class TickEvent:
    """A clock tick, located at the instant the clock crossed its threshold."""

    clock_type: str
    tick_number: int
    lab_offset: float       # Lab time since the start of the step
    proper_time: float      # Emitter proper time at the tick
    position: np.ndarray    # Lab position at the tick
    velocity: np.ndarray


@dataclass
class ObserverStep:
    """Outcome of one Observer.update call."""

    ticked_h: bool = False
    ticked_v: bool = False
    ticks: list[TickEvent] = field(default_factory=list)


@dataclass(frozen=True)
class ThrustResult:
    success: bool
    delta_v: float
    new_mass: float


@dataclass(frozen=True)
class ThrustRecord:
    tau: float
    delta_mass: float
    delta_v: float
    direction: np.ndarray
    mass_after: float
    v_cmb_after: float


class Observer(Pattern):
    """
    A moving observer with two light clocks and a reception log.

    `velocity` is what the kinematics use. `velocity_cmb` is the velocity
    relative to the fixed universal rest frame and is what thrust composes
    onto; the two agree unless a caller overrides `velocity` directly.
    """

    def __init__(self, config: ObserverConfig, retention: RetentionPolicy | None = None):
        super().__init__(config)
        if not config.mass > 0 or not math.isfinite(config.mass):
            raise ValueError(f"mass must be positive and finite, got {config.mass}")

        self.name = config.name or config.pattern_id
        self.color = config.color if config.color is not None else next(_color_cycle)
        self.arm_length = config.arm_length
        self.retention = retention or RetentionPolicy()

        # Initial snapshot for reset()
        self.initial_position = as_vector(config.position, "position")
        self.initial_velocity = as_velocity(config.velocity)
        self.initial_mass = float(config.mass)

        # Kinematic state
        self.position = self.initial_position.copy()
        self.velocity = self.initial_velocity.copy()
        self.velocity_cmb = self.initial_velocity.copy()
        self.mass = self.initial_mass
        self.proper_time: float = 0.0

        self.clock_h: LightClock = create_clock(f"{self.id}/H", "H", self.arm_length)
        self.clock_v: LightClock = create_clock(f"{self.id}/V", "V", self.arm_length)

        # Presentation-only contraction relative to the reference frame
        self.contraction_h: float = 1.0
        self.contraction_v: float = 1.0
        self.body_scale = np.ones(3)

        self.acceleration_history: list[ThrustRecord] = []
        self.received_ticks: dict[str, ReceivedTicks] = {}
        self.ping_tracker: dict[str, PingTracker] = {}
        self.reception_history: list[ReceptionRecord] = []

    # ───────────────────────────────────────────────────────────────
    # Derived quantities
    # ───────────────────────────────────────────────────────────────

    @property
    def beta(self) -> float:
        return float(np.linalg.norm(self.velocity))

    @property
    def gamma(self) -> float:
        return physics.gamma(self.beta)

    @property
    def v_cmb(self) -> float:
        return float(np.linalg.norm(self.velocity_cmb))

    @property
    def fuel_fraction(self) -> float:
        """Remaining mass as a fraction of the initial mass."""
        return self.mass / self.initial_mass

    # ───────────────────────────────────────────────────────────────
    # Time evolution
    # ───────────────────────────────────────────────────────────────

    def update(self, dt_lab: float, reference_velocity: np.ndarray | None = None) -> ObserverStep:
        """
        Advance by dt_lab of lab time.

        Steps:
        1. Δτ = Δt·√(1-β²) added to proper time
        2. position += velocity·Δt
        3. both clocks advance by Δτ, possibly ticking several times
        4. display contraction recomputed against reference_velocity

        Raises:
            ValueError: for a negative or non-finite step, or if the
                velocity has been corrupted to |v| >= 1
        """
        if not math.isfinite(dt_lab) or dt_lab < 0:
            raise ValueError(f"dt_lab must be finite and non-negative, got {dt_lab}")
        velocity = as_velocity(self.velocity)

        dtau = physics.proper_time_delta(dt_lab, float(np.linalg.norm(velocity)))
        start_position = self.position.copy()
        start_tau = self.proper_time

        self.proper_time = start_tau + dtau
        self.position = start_position + velocity * dt_lab

        step = ObserverStep()
        for clock in (self.clock_h, self.clock_v):
            phase_before = clock.phase
            ticks = clock.update(dtau)
            if ticks == 0:
                continue
            if clock.orientation == "H":
                step.ticked_h = True
            else:
                step.ticked_v = True

            first_tick = clock.tick_count - ticks + 1
            for i, offset in enumerate(clock.tick_offsets(phase_before, ticks)):
                # Ticks need dtau > 0, so the lab conversion is well defined
                lab_offset = min(dt_lab, max(0.0, offset * dt_lab / dtau))
                step.ticks.append(TickEvent(
                    clock_type=clock.orientation,
                    tick_number=first_tick + i,
                    lab_offset=lab_offset,
                    proper_time=start_tau + min(offset, dtau),
                    position=start_position + velocity * lab_offset,
                    velocity=velocity.copy(),
                ))

        step.ticks.sort(key=lambda tick: tick.lab_offset)

        if reference_velocity is not None:
            self._apply_length_contraction(reference_velocity)

        return step

    def _apply_length_contraction(self, reference_velocity: np.ndarray) -> None:
        rel = physics.relative_velocity(self.velocity, reference_velocity)
        rel_beta = float(np.linalg.norm(rel))
        if rel_beta < _CONTRACTION_THRESHOLD:
            self.contraction_h = self.contraction_v = 1.0
            self.clock_h.set_contraction(1.0)
            self.clock_v.set_contraction(1.0)
            self.body_scale = np.ones(3)
            return

        g = physics.gamma(rel_beta)
        direction = rel / rel_beta

        # A rod at angle θ to the motion keeps its perpendicular part and
        # loses 1/γ of its parallel part
        def arm_factor(cos_angle: float) -> float:
            return math.sqrt(cos_angle**2 / g**2 + (1 - cos_angle**2))

        self.contraction_h = arm_factor(abs(direction[0]))
        self.contraction_v = arm_factor(abs(direction[1]))
        self.clock_h.set_contraction(self.contraction_h)
        self.clock_v.set_contraction(self.contraction_v)

        contraction = physics.length_contraction(1.0, rel_beta)
        self.body_scale = 1 - (1 - contraction) * np.abs(direction)

    # ───────────────────────────────────────────────────────────────
    # Thrust
    # ───────────────────────────────────────────────────────────────

    def apply_thrust(self, direction: Sequence[float], delta_mass: float) -> ThrustResult:
        """
        Convert delta_mass to light, pushing along direction.

        The velocity change is Δv = tanh(ln(m₀/m₁)) in the instantaneous
        frame, composed relativistically onto the CMB velocity.

        Returns:
            ThrustResult; success is False (and nothing changes) when
            delta_mass <= 0, delta_mass >= mass, the direction is zero, or
            the composed speed would round to c
        """
        failed = ThrustResult(success=False, delta_v=0.0, new_mass=self.mass)
        if not math.isfinite(delta_mass) or delta_mass <= 0 or delta_mass >= self.mass:
            logger.warning(
                "Thrust refused for %s: delta_mass=%s with mass=%s",
                self.id, delta_mass, self.mass,
            )
            return failed

        unit = normalize(as_vector(direction, "direction"))
        if not np.any(unit):
            logger.warning("Thrust refused for %s: zero direction", self.id)
            return failed

        m0 = self.mass
        m1 = m0 - delta_mass
        delta_v = physics.photon_rocket_delta_v(m0, m1)

        new_velocity = physics.velocity_addition_3d(self.velocity_cmb, unit * delta_v)
        if not float(np.linalg.norm(new_velocity)) < 1.0:
            logger.warning("Thrust refused for %s: resulting speed rounds to c", self.id)
            return failed

        self.mass = m1
        self.velocity_cmb = new_velocity
        self.velocity = new_velocity.copy()
        self.acceleration_history.append(ThrustRecord(
            tau=self.proper_time,
            delta_mass=delta_mass,
            delta_v=delta_v,
            direction=unit,
            mass_after=m1,
            v_cmb_after=self.v_cmb,
        ))
        logger.info(
            "Thrust on %s: dv=%.6fc, mass %.3f -> %.3f kg, |v|=%.6fc",
            self.id, delta_v, m0, m1, self.v_cmb,
        )
        return ThrustResult(success=True, delta_v=delta_v, new_mass=m1)

    def set_velocity(self, velocity: Sequence[float]) -> None:
        """Override the kinematic velocity (the CMB velocity is left alone)."""
        self.velocity = as_velocity(velocity)

    def set_position(self, position: Sequence[float]) -> None:
        self.position = as_vector(position, "position")

    # ───────────────────────────────────────────────────────────────
    # Reception
    # ───────────────────────────────────────────────────────────────

    def record_received_tick(
        self,
        source_id: str,
        clock_type: str,
        tick_number: int,
        doppler_factor: float = 1.0,
        emission_tau: float = 0.0,
        light_travel_time: float = 0.0,
    ) -> None:
        """
        Log a tick received from another observer.

        Updates the per-source tick counters (stale tick numbers do not move
        them back), appends to the reception history, feeds the cadence
        tracker, and compacts the history when it grows past the retention
        threshold.
        """
        ledger = self.received_ticks.get(source_id)
        if ledger is None:
            ledger = self.received_ticks[source_id] = ReceivedTicks()
        ledger.record(clock_type, tick_number, self.proper_time)

        self.reception_history.append(ReceptionRecord(
            tau=self.proper_time,
            source_id=source_id,
            clock_type=clock_type,
            tick_number=tick_number,
            doppler_factor=doppler_factor,
            emission_tau=emission_tau,
            light_travel_time=light_travel_time,
        ))

        tracker = self.ping_tracker.get(source_id)
        if tracker is None:
            tracker = self.ping_tracker[source_id] = PingTracker()
        tracker.record(self.proper_time, emission_tau, light_travel_time)

        if self.retention.needs_compaction(self.reception_history):
            self.reception_history = self.retention.apply(self.reception_history, self.proper_time)

    # ───────────────────────────────────────────────────────────────
    # Lifecycle
    # ───────────────────────────────────────────────────────────────

    def reset(self) -> None:
        self.position = self.initial_position.copy()
        self.velocity = self.initial_velocity.copy()
        self.velocity_cmb = self.initial_velocity.copy()
        self.mass = self.initial_mass
        self.proper_time = 0.0

        self.clock_h.reset()
        self.clock_v.reset()
        self.contraction_h = self.contraction_v = 1.0
        self.body_scale = np.ones(3)

        self.acceleration_history = []
        self.received_ticks.clear()
        self.ping_tracker.clear()
        self.reception_history = []

    def get_display_data(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "proper_time": self.proper_time,
            "gamma": self.gamma,
            "beta": self.beta,
            "mass": self.mass,
            "initial_mass": self.initial_mass,
            "v_cmb": self.v_cmb,
            "velocity_cmb": self.velocity_cmb.copy(),
            "clock_h": self.clock_h.tick_count,
            "clock_v": self.clock_v.tick_count,
            "clock_period": self.clock_h.period,
            "contraction_h": self.contraction_h,
            "contraction_v": self.contraction_v,
            "position": self.position.copy(),
            "velocity": self.velocity.copy(),
            "received_ticks": {k: v.as_dict() for k, v in self.received_ticks.items()},
            "reception_history": list(self.reception_history),
            "ping_tracker": {k: v.as_dict() for k, v in self.ping_tracker.items()},
            "acceleration_history": list(self.acceleration_history),
        }


def create_observer(
    observer_id: str,
    name: str,
    position: Sequence[float] = (0.0, 0.0, 0.0),
    velocity: Sequence[float] = (0.0, 0.0, 0.0),
    mass: float = 1000.0,
    arm_length: float = 5.0,
    color: int | None = None,
    retention: RetentionPolicy | None = None,
) -> Observer:
    """
    Convenience factory for creating an observer.

    Args:
        observer_id: Unique identifier
        name: Display name
        position: Initial lab position
        velocity: Initial velocity (fraction of c, |v| < 1)
        mass: Initial mass in kg
        arm_length: Mirror distance of both light clocks
        color: Display colour (picked from a palette if None)
        retention: History retention policy (default policy if None)

    Returns:
        Configured Observer
    """
    config = ObserverConfig(
        pattern_id=observer_id,
        name=name,
        position=position,
        velocity=velocity,
        mass=mass,
        arm_length=arm_length,
        color=color,
    )
    return Observer(config, retention=retention)
