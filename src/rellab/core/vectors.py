"""
3-vector helpers for the engine.

Positions and velocities are numpy float64 arrays of shape (3,), expressed
in the lab frame with c = 1. Validation lives here so that the entity
classes fail fast on malformed input instead of propagating NaN.
"""

from __future__ import annotations
from typing import Sequence

import numpy as np


def zero_vector() -> np.ndarray:
    """Return a fresh (0, 0, 0) vector."""
    return np.zeros(3, dtype=np.float64)


def as_vector(value: Sequence[float] | np.ndarray, name: str = "vector") -> np.ndarray:
    """
    Convert a 3-sequence to a validated float64 copy.

    Raises:
        ValueError: if the value is not 3 components or is not finite
    """
    vec = np.array(value, dtype=np.float64).reshape(-1)
    if vec.shape != (3,):
        raise ValueError(f"{name} must have 3 components, got shape {vec.shape}")
    if not np.all(np.isfinite(vec)):
        raise ValueError(f"{name} must be finite, got {vec.tolist()}")
    return vec


def as_velocity(value: Sequence[float] | np.ndarray, name: str = "velocity") -> np.ndarray:
    """
    Convert to a validated velocity: finite and strictly slower than light.

    Raises:
        ValueError: if |v| >= 1 or any component is not finite
    """
    vec = as_vector(value, name)
    speed = float(np.linalg.norm(vec))
    if speed >= 1.0:
        raise ValueError(f"{name} must satisfy |v| < 1 (c = 1), got |v| = {speed}")
    return vec


def norm(vec: np.ndarray) -> float:
    return float(np.linalg.norm(vec))


def normalize(vec: np.ndarray) -> np.ndarray:
    """Unit vector along vec; the zero vector maps to itself."""
    length = norm(vec)
    if length == 0.0:
        return np.zeros_like(vec, dtype=np.float64)
    return np.asarray(vec, dtype=np.float64) / length


def distance(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.linalg.norm(np.asarray(a) - np.asarray(b)))
