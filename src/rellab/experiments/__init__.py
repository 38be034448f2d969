"""
Experiment harness: prebuilt scenarios.

Pre-built scenarios for:
- The default lab with three moving observers
- Two observers for Doppler and light-travel experiments
- Twin paradox with a thrusting traveller
"""

from rellab.experiments.scenarios import (
    create_default_scenario,
    create_two_observer_scenario,
    create_twin_scenario,
    run_for,
)

__all__ = [
    "create_default_scenario",
    "create_two_observer_scenario",
    "create_twin_scenario",
    "run_for",
]
