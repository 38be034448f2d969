"""
Pre-built simulation scenarios.

Every scenario puts a lab observer (id "lab") at rest at the origin and makes
it the reference frame, so that lab time and the lab's proper time agree.
"""

from __future__ import annotations
import logging

from rellab.core.simulation import LAB_ID, Simulation, SimulationConfig

logger = logging.getLogger(__name__)


def create_default_scenario(config: SimulationConfig | None = None) -> Simulation:
    """
    The standard four-observer scene.

    - Lab: at rest at the origin
    - Alice: (-2, 0, 0), 0.3c along y
    - Bob: (3, 0, 0), 0.5c along x
    - Charlie: (0, 0, 3), 0.4c along z
    """
    sim = Simulation(config)
    sim.add_observer("Lab", (0.0, 0.0, 0.0), (0.0, 0.0, 0.0), id=LAB_ID)
    sim.add_observer("Alice", (-2.0, 0.0, 0.0), (0.0, 0.3, 0.0), id="alice")
    sim.add_observer("Bob", (3.0, 0.0, 0.0), (0.5, 0.0, 0.0), id="bob")
    sim.add_observer("Charlie", (0.0, 0.0, 3.0), (0.0, 0.0, 0.4), id="charlie")
    sim.set_reference_frame(LAB_ID)
    return sim


def create_two_observer_scenario(
    distance: float = 10.0,
    beta: float = 0.0,
    config: SimulationConfig | None = None,
) -> Simulation:
    """
    Lab at the origin and a single receiver on the +x axis.

    Args:
        distance: Initial separation along x (light-seconds)
        beta: Receiver velocity along +x (positive = receding)
        config: Simulation configuration
    """
    sim = Simulation(config)
    sim.add_observer("Lab", (0.0, 0.0, 0.0), (0.0, 0.0, 0.0), id=LAB_ID)
    sim.add_observer("Receiver", (distance, 0.0, 0.0), (beta, 0.0, 0.0), id="receiver")
    sim.set_reference_frame(LAB_ID)
    return sim


def create_twin_scenario(
    beta: float = 0.8,
    mass: float = 1000.0,
    config: SimulationConfig | None = None,
) -> Simulation:
    """
    Twin paradox: a stay-at-home lab twin and a traveller.

    Both start at the origin; the traveller leaves at beta along +x. Use
    Simulation.apply_thrust("traveller", ...) to turn the traveller around.
    """
    sim = Simulation(config)
    sim.add_observer("Earth twin", (0.0, 0.0, 0.0), (0.0, 0.0, 0.0), id=LAB_ID)
    sim.add_observer("Traveller", (0.0, 0.0, 0.0), (beta, 0.0, 0.0), id="traveller", mass=mass)
    sim.set_reference_frame(LAB_ID)
    return sim


def run_for(sim: Simulation, duration: float, dt: float = 0.01) -> int:
    """
    Run the simulation for `duration` seconds of real time in steps of dt.

    The simulation is started if paused and left running.

    Returns:
        Number of update calls made
    """
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    sim.play()
    n_steps = int(round(duration / dt))
    for _ in range(n_steps):
        sim.update(dt)
    logger.debug("Ran %d steps of %.4f s (lab time now %.4f)", n_steps, dt, sim.lab_time)
    return n_steps
