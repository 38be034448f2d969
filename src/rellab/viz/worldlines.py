"""
Spacetime diagrams and proper-time plots from a ClockRecorder.
"""

from __future__ import annotations
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from rellab.core import physics

if TYPE_CHECKING:
    from rellab.analysis.clocks import ClockRecorder

_AXIS_NAMES = ("x", "y", "z")


def plot_worldlines(
    recorder: "ClockRecorder",
    axis: int = 0,
    title: str = "Worldlines",
    ax: Axes | None = None,
    figsize: tuple[float, float] = (7, 7),
    show_light_cones: bool = True,
) -> tuple[Figure, Axes]:
    """
    Plot lab time against one spatial coordinate for every observer.

    Light-cone guides (slope ±1) are drawn from each observer's first
    recorded event.

    Args:
        recorder: ClockRecorder with readings
        axis: Spatial axis to plot (0 = x, 1 = y, 2 = z)
        title: Plot title
        ax: Existing axes (creates new if None)
        show_light_cones: Draw light-cone guides

    Returns:
        (fig, ax) tuple
    """
    if axis not in (0, 1, 2):
        raise ValueError(f"axis must be 0, 1 or 2, got {axis}")

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    t_max = 0.0
    for observer_id in recorder.observer_ids:
        data = recorder.get_arrays(observer_id)
        if len(data) == 0:
            continue
        t = data[:, 0]
        s = data[:, 2 + axis]
        t_max = max(t_max, float(t[-1]))
        ax.plot(s, t, linewidth=2, label=recorder.names.get(observer_id, observer_id))

        if show_light_cones:
            t0, s0 = t[0], s[0]
            dt = t[-1] - t0
            ax.plot([s0, s0 + dt], [t0, t0 + dt], color="gold", linestyle="--",
                    linewidth=0.8, alpha=0.6)
            ax.plot([s0, s0 - dt], [t0, t0 + dt], color="gold", linestyle="--",
                    linewidth=0.8, alpha=0.6)

    ax.set_xlabel(f"{_AXIS_NAMES[axis]} (light-seconds)")
    ax.set_ylabel("Lab time t (s)")
    ax.set_title(title)
    ax.set_ylim(0, t_max if t_max > 0 else 1.0)
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    return fig, ax


def plot_proper_times(
    recorder: "ClockRecorder",
    title: str = "Proper time vs lab time",
    ax: Axes | None = None,
    figsize: tuple[float, float] = (10, 6),
) -> tuple[Figure, Axes]:
    """
    Plot each observer's proper time against lab time, with the 1/γ
    reference slope for its final recorded speed.

    Returns:
        (fig, ax) tuple
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    for observer_id in recorder.observer_ids:
        data = recorder.get_arrays(observer_id)
        if len(data) == 0:
            continue
        t, tau = data[:, 0], data[:, 1]
        beta = recorder.speeds.get(observer_id, 0.0)
        label = f"{recorder.names.get(observer_id, observer_id)} (β={beta:.2f})"
        line, = ax.plot(t, tau, linewidth=2, label=label)

        slope = 1.0 / physics.gamma(beta)
        ax.plot(t, tau[0] + slope * (t - t[0]), color=line.get_color(),
                linestyle=":", alpha=0.7, label="_nolegend_")

    ax.plot(ax.get_xlim(), ax.get_xlim(), color="gray", linestyle="--", alpha=0.4,
            label="τ = t")
    ax.set_xlabel("Lab time t (s)")
    ax.set_ylabel("Proper time τ (s)")
    ax.set_title(title)
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    return fig, ax


def save_figure(fig: Figure, path: str | Path, dpi: int = 150, **kwargs) -> None:
    """Save figure to file, creating the parent directory."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=dpi, bbox_inches="tight", **kwargs)
