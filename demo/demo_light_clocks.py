#!/usr/bin/env python3
"""
Demo: Light Clocks and Time Dilation

The default four-observer scene runs for two minutes of lab time. Each
observer's light clocks tick on proper time only, so faster observers tick
less often:

    dτ/dt = 1/γ = √(1 - β²)

Output: output/demo_light_clocks/proper_times.png
        output/demo_light_clocks/worldlines.png
"""

from pathlib import Path

import matplotlib.pyplot as plt

from rellab.analysis import ClockRecorder, measure_time_dilation
from rellab.experiments import create_default_scenario, run_for
from rellab.logging_config import setup_logging
from rellab.viz import plot_proper_times, plot_worldlines, save_figure

DURATION = 120.0


def main():
    setup_logging(level="WARNING")

    print("=" * 60)
    print("  LIGHT CLOCK DEMONSTRATION")
    print("=" * 60)

    print("\n1. Building default scenario...")
    sim = create_default_scenario()
    recorder = ClockRecorder(sim)
    for observer in sim.observers:
        print(f"   {observer.name:8s} β = {observer.beta:.2f}, γ = {observer.gamma:.4f}")

    print(f"\n2. Running {DURATION:.0f} s of lab time (dt = 0.02)...")
    run_for(sim, DURATION, dt=0.02)

    print("\n3. Measured proper-time rates:")
    print(f"   {'observer':8s} {'dτ/dt':>8s} {'1/γ':>8s} {'R²':>8s} {'H ticks':>8s} {'signals in':>11s}")
    for observer in sim.observers:
        result = measure_time_dilation(recorder, observer.id)
        received = len(observer.reception_history)
        print(f"   {observer.name:8s} {result.slope:8.5f} {result.expected_slope:8.5f} "
              f"{result.r_squared:8.5f} {observer.clock_h.tick_count:8d} {received:11d}")

    print("\n4. Creating visualization...")
    output_dir = Path("output/demo_light_clocks")

    fig, _ = plot_proper_times(recorder)
    save_figure(fig, output_dir / "proper_times.png")
    plt.close(fig)

    fig, _ = plot_worldlines(recorder, axis=0, title="Worldlines (x)")
    save_figure(fig, output_dir / "worldlines.png")
    plt.close(fig)
    print(f"   Saved: {output_dir}/proper_times.png, {output_dir}/worldlines.png")

    print("\n" + "=" * 60)
    print("  Light clock demonstration complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
