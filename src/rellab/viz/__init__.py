"""
Visualization utilities.

- Doppler colour mapping and per-source Doppler history
- Spacetime (worldline) diagrams
- Proper time versus lab time
"""

from rellab.viz.doppler import (
    doppler_color,
    doppler_factor_color,
    plot_doppler_history,
)

from rellab.viz.worldlines import (
    plot_worldlines,
    plot_proper_times,
    save_figure,
)

__all__ = [
    "doppler_color",
    "doppler_factor_color",
    "plot_doppler_history",
    "plot_worldlines",
    "plot_proper_times",
    "save_figure",
]
