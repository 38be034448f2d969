#!/usr/bin/env python3
"""
Demo: Twin Paradox with a Photon Rocket

The traveller leaves Earth at 0.6c, fires its photon rocket halfway to turn
around, and comes home. The thrust costs mass: reversing from +0.6c to
-0.6c is a rapidity change of 2·ln 2, i.e. a mass ratio of 4.

Output: output/demo_twin_paradox/worldlines.png
        output/demo_twin_paradox/proper_times.png
"""

from pathlib import Path

import matplotlib.pyplot as plt

from rellab import LAB_ID
from rellab.analysis import ClockRecorder
from rellab.core import physics
from rellab.experiments import create_twin_scenario, run_for
from rellab.logging_config import setup_logging
from rellab.viz import plot_proper_times, plot_worldlines, save_figure

BETA = 0.6
LEG = 10.0  # Lab seconds per leg


def main():
    setup_logging()

    print("=" * 60)
    print("  TWIN PARADOX DEMONSTRATION")
    print("=" * 60)

    sim = create_twin_scenario(beta=BETA, mass=1000.0)
    recorder = ClockRecorder(sim)
    traveller = sim.get_observer("traveller")
    earth = sim.get_observer(LAB_ID)

    print(f"\n1. Outbound leg at {BETA}c for {LEG} s of lab time...")
    run_for(sim, LEG, dt=0.01)
    print(f"   Traveller at x = {traveller.position[0]:.3f}, τ = {traveller.proper_time:.3f}")

    print("\n2. Turnaround...")
    fuel = physics.photon_rocket_fuel_required(traveller.mass, physics.velocity_addition(BETA, BETA))
    result = sim.apply_thrust("traveller", (-1.0, 0.0, 0.0), fuel)
    print(f"   Burned {fuel:.1f} kg → Δv = {result.delta_v:.4f}c, mass {result.new_mass:.1f} kg")
    print(f"   New velocity: {traveller.velocity[0]:+.4f}c")

    print(f"\n3. Return leg for {LEG} s...")
    run_for(sim, LEG, dt=0.01)
    recorder.detach()

    print("\n4. Results:")
    expected = 2 * LEG / physics.gamma(BETA)
    print(f"   Earth twin aged:  {earth.proper_time:.3f} s")
    print(f"   Traveller aged:   {traveller.proper_time:.3f} s (expected {expected:.3f})")
    print(f"   Traveller back at x = {traveller.position[0]:.4f}")
    print(f"   Fuel remaining: {traveller.fuel_fraction:.1%}")

    print("\n5. Creating visualization...")
    output_dir = Path("output/demo_twin_paradox")

    fig, _ = plot_worldlines(recorder, axis=0, title="Twin paradox: worldlines")
    save_figure(fig, output_dir / "worldlines.png")
    plt.close(fig)

    fig, _ = plot_proper_times(recorder, title="Twin paradox: proper time")
    save_figure(fig, output_dir / "proper_times.png")
    plt.close(fig)
    print(f"   Saved: {output_dir}/worldlines.png, {output_dir}/proper_times.png")

    print("\n" + "=" * 60)
    print("  Twin paradox demonstration complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
