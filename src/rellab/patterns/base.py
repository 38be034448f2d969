"""
Base classes for patterns.

Patterns are the stateful entities that live in the simulation:
- Light clocks accumulate phase and count ticks
- Observers move, age, carry clocks and log what they receive

IMPORTANT: Patterns only ever see their own state plus what arrives as
signals. The authoritative lab-frame bookkeeping (which signal reached whom,
with what Doppler factor) belongs to the Simulation.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class PatternConfig:
    """Base configuration for patterns."""

    pattern_id: str  # Unique identifier


class Pattern(ABC):
    """
    Base class for patterns that live in the simulation.

    A pattern can be returned to its initial state and can describe itself
    as a plain dict for presentation layers.
    """

    def __init__(self, config: PatternConfig):
        self.config = config

    @property
    def id(self) -> str:
        return self.config.pattern_id

    @abstractmethod
    def reset(self) -> None:
        """Return to the state the pattern was created with."""
        ...

    @abstractmethod
    def get_display_data(self) -> dict:
        """
        Return a read-only snapshot of this pattern.

        Returns:
            Dict with pattern-specific fields (copies, never live arrays)
        """
        ...
