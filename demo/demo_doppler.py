#!/usr/bin/env python3
"""
Demo: Doppler Shift from Clock-Tick Broadcasts

A lab clock at rest broadcasts every tick. Three receivers sit 5
light-seconds away: one receding at 0.6c, one approaching at 0.6c, one
moving sideways at 0.6c.

1. Each receiver logs the authoritative Doppler factor of every tick
2. Each receiver also infers the factor from the arrival cadence alone
3. Receding: f_obs/f_emit = 0.5, approaching: 2.0

Output: output/demo_doppler/doppler_history.png
"""

from pathlib import Path

import matplotlib.pyplot as plt

from rellab import LAB_ID, Simulation, SimulationConfig
from rellab.analysis import compare_doppler_estimates, measure_reception_rate
from rellab.core import physics
from rellab.experiments import run_for
from rellab.logging_config import setup_logging
from rellab.viz import plot_doppler_history, save_figure


def main():
    setup_logging(level="WARNING")

    print("=" * 60)
    print("  DOPPLER SHIFT DEMONSTRATION")
    print("=" * 60)

    print("\n1. Setting up lab clock and receivers...")
    sim = Simulation(SimulationConfig(default_arm_length=0.5))  # T₀ = 1 s
    sim.add_observer("Lab", id=LAB_ID)
    receivers = [
        sim.add_observer("Receding", (5.0, 0.0, 0.0), (0.6, 0.0, 0.0), id="receding"),
        sim.add_observer("Approaching", (60.0, 0.0, 0.0), (-0.6, 0.0, 0.0), id="approaching"),
        sim.add_observer("Transverse", (0.0, 5.0, 0.0), (0.6, 0.0, 0.0), id="transverse"),
    ]
    for r in receivers:
        print(f"   {r.name:12s} at {r.position.tolist()}, v = {r.velocity.tolist()}")

    print("\n2. Running 60 s of lab time (dt = 0.01)...")
    run_for(sim, 60.0, dt=0.01)
    print(f"   Lab time: {sim.lab_time:.2f} s")

    print("\n3. Authoritative vs inferred Doppler factor:")
    print(f"   {'receiver':12s} {'stored':>8s} {'inferred':>9s} {'β_inf':>7s} {'ticks/τ':>8s}")
    for r in receivers:
        if LAB_ID not in r.ping_tracker:
            print(f"   {r.name:12s} (nothing received)")
            continue
        comparison = compare_doppler_estimates(r, LAB_ID)
        rate = measure_reception_rate(r.reception_history, LAB_ID, "H")
        print(f"   {r.name:12s} {comparison.authoritative:8.4f} {comparison.inferred:9.4f} "
              f"{comparison.inferred_beta:7.3f} {rate:8.4f}")

    print("\n   Theory (radial):")
    print(f"   receding β=+0.6    → {physics.doppler_factor(0.6):.4f}")
    print(f"   approaching β=-0.6 → {physics.doppler_factor(-0.6):.4f}")

    print("\n4. Creating visualization...")
    fig, axes = plt.subplots(1, len(receivers), figsize=(16, 5))
    for ax, r in zip(axes, receivers):
        plot_doppler_history(r, [LAB_ID], ax=ax, title=r.name)

    output_path = Path("output/demo_doppler/doppler_history.png")
    save_figure(fig, output_path)
    plt.close(fig)
    print(f"   Saved: {output_path}")

    print("\n" + "=" * 60)
    print("  Doppler demonstration complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
