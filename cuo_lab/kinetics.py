"""
Temperature-driven kinetics for the reduction demo.

Two numbers come out of every evaluation: the motion speed applied to the gas
populations (pixels per reference frame, per unit velocity) and the per-tick
probability that a gas/lattice contact turns into a reaction.

Unit conventions:
    - Temperature: degrees Celsius (user-facing), converted with a fixed
      Kelvin offset for the Arrhenius term
    - Activation energy: J/mol
    - Elapsed time: seconds since the last restart
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Tuple

GAS_CONSTANT_J_MOL_K = 8.314


@dataclass(frozen=True)
class KineticsParameters:
    kelvin_offset: float = 273.15
    temperature_min_c: float = 10.0
    temperature_max_c: float = 120.0
    speed_at_min: float = 1.0
    speed_span: float = 6.0
    speed_floor: float = 0.9
    speed_ceiling: float = 7.0
    absolute_speed_floor: float = 0.1
    activation_energy_j_mol: float = 18_000.0
    prefactor: float = 300.0
    speed_levels: Tuple[float, ...] = (0.25, 0.5, 1.0, 2.0, 4.0)
    default_speed_level: int = 2
    boost_initial: float = 3.0
    boost_initial_window_s: float = 4.0
    boost_intermediate: float = 1.6
    boost_intermediate_window_s: float = 10.0
    low_temperature_threshold_c: float = 25.0
    low_speed_damping: float = 0.7
    low_probability_damping: float = 0.35
    trap_speed_damping: float = 0.35
    trap_probability_damping: float = 0.01
    probability_cap: float = 0.85

    @property
    def speed_bounds(self) -> Tuple[float, float]:
        return self.absolute_speed_floor, self.speed_ceiling


@dataclass(frozen=True)
class KineticsResult:
    speed: float
    probability: float
    boost: float = 1.0
    level_multiplier: float = 1.0
    damped: bool = False


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def kinetic_speed(temperature_c: float, params: KineticsParameters) -> float:
    """Linear speed ramp between the reference temperatures."""
    span_c = params.temperature_max_c - params.temperature_min_c
    if span_c <= 0:
        return params.speed_floor
    speed = params.speed_at_min + ((temperature_c - params.temperature_min_c) / span_c) * params.speed_span
    return _clamp(speed, params.speed_floor, params.speed_ceiling)


def arrhenius_probability(temperature_c: float, params: KineticsParameters) -> float:
    temperature_k = max(temperature_c + params.kelvin_offset, 1.0)
    exponent = -params.activation_energy_j_mol / (GAS_CONSTANT_J_MOL_K * temperature_k)
    return params.prefactor * math.exp(exponent)


def early_boost(elapsed_s: float, params: KineticsParameters) -> float:
    """
    Step-down multiplier for the first seconds after a restart.

    `elapsed_s` is simulated time as summed by `Simulation.advance(dt)`, not
    wall-clock time: it stands still while paused and is reproducible under a
    fixed time step.
    """
    if elapsed_s < params.boost_initial_window_s:
        return params.boost_initial
    if elapsed_s < params.boost_intermediate_window_s:
        return params.boost_intermediate
    return 1.0


def speed_level_multiplier(level: int, params: KineticsParameters) -> float:
    if not params.speed_levels:
        return 1.0
    index = int(_clamp(level, 0, len(params.speed_levels) - 1))
    return params.speed_levels[index]


def cycle_speed_level(level: int, params: KineticsParameters) -> int:
    count = len(params.speed_levels)
    if count == 0:
        return 0
    return (level + 1) % count


def evaluate_kinetics(
    temperature_c: float,
    elapsed_s: float,
    speed_level: int,
    trap_mode: bool,
    params: KineticsParameters,
) -> KineticsResult:
    """Compute (speed, probability) for one tick; pure apart from its inputs."""
    speed = kinetic_speed(temperature_c, params)
    boost = early_boost(elapsed_s, params)
    level_multiplier = speed_level_multiplier(speed_level, params)
    probability = arrhenius_probability(temperature_c, params) * level_multiplier * boost

    damped = temperature_c < params.low_temperature_threshold_c
    if damped:
        if trap_mode:
            speed *= params.trap_speed_damping
            probability *= params.trap_probability_damping
        else:
            speed *= params.low_speed_damping
            probability *= params.low_probability_damping

    low, high = params.speed_bounds
    return KineticsResult(
        speed=_clamp(speed, low, high),
        probability=_clamp(probability, 0.0, params.probability_cap),
        boost=boost,
        level_multiplier=level_multiplier,
        damped=damped,
    )
