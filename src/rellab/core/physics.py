"""
Special-relativity kernel: pure functions, no state.

Conventions:
- Velocities are fractions of c (β = v/c), and c = 1 in simulation units
- Vectors are numpy arrays of shape (3,)
- Scalars are plain floats

Nothing here raises on physically limiting input. At |β| >= 1 the formulas
return their limiting values (γ = ∞, Δτ = 0, Doppler 0 or ∞, rapidity ±∞)
and callers must treat those as results, not failures.
"""

from __future__ import annotations
import math
from typing import Literal

import numpy as np

C = 1.0

EventClass = Literal["past", "future", "elsewhere", "lightcone"]

_LIGHTCONE_EPSILON = 1e-10
_ZERO_VELOCITY = 1e-10


# ═══════════════════════════════════════════════════════════════
# KINEMATICS
# ═══════════════════════════════════════════════════════════════


def gamma(beta: float) -> float:
    """
    Lorentz factor γ = 1 / √(1 - β²).

    Returns +∞ for |β| >= 1.
    """
    if abs(beta) >= 1.0:
        return math.inf
    return 1.0 / math.sqrt(1.0 - beta * beta)


def gamma_from_velocity(velocity: np.ndarray) -> float:
    """γ for a velocity vector (uses its magnitude)."""
    return gamma(float(np.linalg.norm(velocity)))


def proper_time_delta(lab_dt: float, beta: float) -> float:
    """
    Proper time elapsed on a moving clock during lab interval Δt.

    Δτ = Δt · √(1 - β²), and 0 for |β| >= 1.
    """
    if abs(beta) >= 1.0:
        return 0.0
    return lab_dt * math.sqrt(1.0 - beta * beta)


def time_dilation(proper_dt: float, beta: float) -> float:
    """Dilated interval Δt' = γ · Δτ seen from a frame where the clock moves at β."""
    return proper_dt * gamma(beta)


def length_contraction(proper_length: float, beta: float) -> float:
    """
    Contracted length L = L₀ · √(1 - β²) along the direction of motion.

    Returns 0 for |β| >= 1.
    """
    if abs(beta) >= 1.0:
        return 0.0
    return proper_length * math.sqrt(1.0 - beta * beta)


def lorentz_transform_1d(x: float, t: float, beta: float) -> tuple[float, float]:
    """
    Boost an event (x, t) into a frame moving at β along x.

        x' = γ(x - βt)
        t' = γ(t - βx)
    """
    g = gamma(beta)
    return g * (x - beta * C * t), g * (t - beta * x / C)


def lorentz_transform_inverse_1d(x_prime: float, t_prime: float, beta: float) -> tuple[float, float]:
    """Inverse boost: the same transform with -β."""
    return lorentz_transform_1d(x_prime, t_prime, -beta)


def velocity_addition(u: float, v: float) -> float:
    """
    Collinear velocity composition w = (u + v) / (1 + uv).

    u is measured in a frame that moves at v relative to the lab. When
    1 + uv = 0 (light against an opposing light-speed frame) the composition
    is undefined and nan is returned.
    """
    denom = 1.0 + u * v
    if denom == 0.0:
        return math.nan
    return (u + v) / denom


def velocity_addition_3d(u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """
    Compose a velocity u (measured in a frame moving at v) into the lab frame.

        w = [u∥ + v + u⊥/γ(v)] / (1 + u·v)

    Reduces to velocity_addition() when u ∥ v and returns u when v = 0.
    Where 1 + u·v = 0 every component is nan.
    """
    u = np.asarray(u, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    v_norm = float(np.linalg.norm(v))
    if v_norm < _ZERO_VELOCITY:
        return u.copy()

    g = gamma(v_norm)
    v_hat = v / v_norm

    u_parallel = np.dot(u, v_hat) * v_hat
    u_perp = u - u_parallel

    denom = 1.0 + float(np.dot(u, v))
    if denom == 0.0:
        return np.full(3, np.nan)
    return (u_parallel + v + u_perp / g) / denom


def relative_velocity(velocity: np.ndarray, frame_velocity: np.ndarray) -> np.ndarray:
    """Velocity of a body as measured from a frame moving at frame_velocity."""
    return velocity_addition_3d(velocity, -np.asarray(frame_velocity, dtype=np.float64))


# ═══════════════════════════════════════════════════════════════
# DOPPLER & ABERRATION
# ═══════════════════════════════════════════════════════════════


def doppler_shift(source_frequency: float, beta: float) -> float:
    """
    Longitudinal Doppler shift, β > 0 meaning the source recedes.

        f_obs = f₀ · √[(1 - β) / (1 + β)]

    Limits: 0 at β = 1, ∞ at β = -1.
    """
    if abs(beta) >= 1.0:
        return 0.0 if beta > 0 else math.inf
    return source_frequency * math.sqrt((1.0 - beta) / (1.0 + beta))


def doppler_factor(radial_beta: float) -> float:
    """f_obs / f_emit for a radial velocity (positive when receding)."""
    return doppler_shift(1.0, radial_beta)


def doppler_shift_general(source_frequency: float, beta: float, theta: float) -> float:
    """
    Doppler shift at an arbitrary angle.

        f_obs = f₀ / [γ(1 - β cos θ)]

    θ is measured from direct approach: θ = 0 approaching head-on,
    θ = π receding, θ = π/2 purely transverse.
    """
    if abs(beta) >= 1.0:
        return 0.0
    return source_frequency / (gamma(beta) * (1.0 - beta * math.cos(theta)))


def doppler_transverse(source_frequency: float, beta: float) -> float:
    """Transverse Doppler (θ = π/2): f_obs = f₀ / γ, always a redshift."""
    if abs(beta) >= 1.0:
        return 0.0
    return source_frequency * math.sqrt(1.0 - beta * beta)


def aberration(theta_source: float, beta: float) -> float:
    """
    Apparent angle of a light source for an observer moving at β.

        cos θ_obs = (cos θ_src - β) / (1 - β cos θ_src)

    Everything collapses forward (θ_obs = 0) for |β| >= 1.
    """
    if abs(beta) >= 1.0:
        return 0.0
    cos_src = math.cos(theta_source)
    cos_obs = (cos_src - beta) / (1.0 - beta * cos_src)
    return math.acos(max(-1.0, min(1.0, cos_obs)))


# ═══════════════════════════════════════════════════════════════
# SPACETIME INTERVALS
# ═══════════════════════════════════════════════════════════════


def spacetime_interval(dt: float, dr: np.ndarray) -> float:
    """s² = c²Δt² - |Δr|²; positive is timelike, negative spacelike."""
    dr = np.asarray(dr, dtype=np.float64)
    return C * C * dt * dt - float(np.dot(dr, dr))


def classify_event(dt: float, dr: np.ndarray) -> EventClass:
    """Place an event relative to the light cone of the origin event."""
    s2 = spacetime_interval(dt, dr)
    if abs(s2) < _LIGHTCONE_EPSILON:
        return "lightcone"
    if s2 > 0:
        return "future" if dt > 0 else "past"
    return "elsewhere"


def light_clock_period(mirror_distance: float) -> float:
    """Proper period of a light clock, T₀ = 2L/c."""
    return 2.0 * mirror_distance / C


# ═══════════════════════════════════════════════════════════════
# ENERGY, MOMENTUM, RAPIDITY
# ═══════════════════════════════════════════════════════════════


def relativistic_energy(rest_mass: float, beta: float) -> float:
    """E = γmc²."""
    return gamma(beta) * rest_mass * C * C


def relativistic_momentum(rest_mass: float, beta: float) -> float:
    """p = γmβc."""
    return gamma(beta) * rest_mass * beta * C


def rapidity(beta: float) -> float:
    """φ = atanh(β); additive under collinear velocity composition."""
    if abs(beta) >= 1.0:
        return math.inf if beta > 0 else -math.inf
    return math.atanh(beta)


def beta_from_rapidity(phi: float) -> float:
    return math.tanh(phi)


# ═══════════════════════════════════════════════════════════════
# PHOTON ROCKET
# ═══════════════════════════════════════════════════════════════


def photon_rocket_delta_v(m0: float, m1: float) -> float:
    """
    Δv of an ideal photon rocket going from mass m0 to m1.

        Δv = tanh(ln(m₀/m₁))

    Zero unless 0 < m1 < m0.
    """
    if m1 >= m0 or m1 <= 0:
        return 0.0
    return math.tanh(math.log(m0 / m1))


def photon_rocket_mass_required(m0: float, delta_v: float) -> float:
    """Final mass after reaching delta_v: m₁ = m₀ · exp(-atanh(Δv)). Zero for |Δv| >= 1."""
    if abs(delta_v) >= 1.0:
        return 0.0
    return m0 * math.exp(-math.atanh(delta_v))


def photon_rocket_fuel_required(m0: float, delta_v: float) -> float:
    """Mass that must be converted to light to reach delta_v."""
    return m0 - photon_rocket_mass_required(m0, delta_v)
