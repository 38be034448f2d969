"""
Pytest configuration and shared fixtures.
"""

import matplotlib
import pytest
import numpy as np

matplotlib.use("Agg")


@pytest.fixture
def quiet_config():
    """Simulation config with automatic tick emission switched off."""
    from rellab import SimulationConfig
    return SimulationConfig(auto_emit_signals=False)


@pytest.fixture
def sim():
    """Empty simulation with default configuration."""
    from rellab import Simulation
    return Simulation()


@pytest.fixture
def two_observer_sim(quiet_config):
    """Lab at the origin and a receiver at rest 10 light-seconds along x."""
    from rellab.experiments import create_two_observer_scenario
    return create_two_observer_scenario(distance=10.0, beta=0.0, config=quiet_config)


@pytest.fixture
def rng():
    """Reproducible random number generator."""
    return np.random.default_rng(seed=42)
