"""
Doppler colouring and reception-history plots.

Colour convention: receding sources (β > 0, factor < 1) run yellow → red,
approaching sources (β < 0, factor > 1) run green → blue.
"""

from __future__ import annotations
import math
from typing import TYPE_CHECKING, Sequence

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from rellab.analysis.doppler import doppler_series

if TYPE_CHECKING:
    from rellab.patterns.observer import Observer


def _to_hex(r: float, g: float, b: float) -> str:
    return "#" + "".join(f"{round(v * 255):02x}" for v in (r, g, b))


def doppler_color(beta: float) -> tuple[float, float, float, str]:
    """
    Colour for a radial velocity (positive = receding).

    β is clamped to [-0.99, 0.99]. The wavelength ratio
    √((1 + β)/(1 - β)) is mapped to yellow → red above 1 and
    green → blue below 1.

    Returns:
        (r, g, b, hex) with components in [0, 1]
    """
    beta = max(-0.99, min(0.99, beta))
    ratio = math.sqrt((1 + beta) / (1 - beta))

    if ratio >= 1:
        t = min(1.0, (ratio - 1) / 2)
        r, g, b = 1.0, 1.0 - t, 0.0
    else:
        t = min(1.0, (1 - ratio) / 0.5)
        r, g, b = 0.0, 1.0 - t * 0.5, t

    return r, g, b, _to_hex(r, g, b)


def doppler_factor_color(factor: float) -> str:
    """Hex colour for a frequency ratio f_obs / f_emit (1 = neutral)."""
    if not math.isfinite(factor) or factor <= 0:
        return _to_hex(1.0, 0.0, 0.0)
    d2 = factor * factor
    # Invert f = √((1 - β)/(1 + β)) to a radial β
    beta = (1 - d2) / (1 + d2)
    return doppler_color(beta)[3]


def plot_doppler_history(
    observer: "Observer",
    source_ids: Sequence[str] | None = None,
    title: str | None = None,
    ax: Axes | None = None,
    figsize: tuple[float, float] = (10, 5),
) -> tuple[Figure, Axes]:
    """
    Plot the authoritative Doppler factor of each source against the
    receiver's proper time.

    Args:
        observer: Receiving observer
        source_ids: Sources to plot (default: every source heard from)
        title: Plot title
        ax: Existing axes (creates new if None)

    Returns:
        (fig, ax) tuple
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    if source_ids is None:
        source_ids = sorted({r.source_id for r in observer.reception_history})

    for source_id in source_ids:
        tau, doppler, counts = doppler_series(observer.reception_history, source_id)
        if len(tau) == 0:
            continue
        ax.plot(tau, doppler, color="gray", alpha=0.4, linewidth=1)
        sizes = 10 + 4 * np.sqrt(counts)
        colors = [doppler_factor_color(d) for d in doppler]
        ax.scatter(tau, doppler, c=colors, s=sizes, edgecolors="black",
                   linewidths=0.3, label=source_id, zorder=3)

    ax.axhline(y=1.0, color="gray", linestyle=":", alpha=0.6)
    ax.set_xlabel("Receiver proper time τ")
    ax.set_ylabel("Doppler factor f_obs / f_emit")
    ax.set_title(title or f"Doppler history seen by {observer.name}")
    if source_ids:
        ax.legend(loc="best")
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    return fig, ax
