"""Tests for the temperature-driven speed and reaction-probability model."""

from __future__ import annotations

import pytest

from cuo_lab.kinetics import (
    KineticsParameters,
    arrhenius_probability,
    cycle_speed_level,
    early_boost,
    evaluate_kinetics,
    kinetic_speed,
    speed_level_multiplier,
)

PARAMS = KineticsParameters()


def test_outputs_stay_in_documented_ranges() -> None:
    low, high = PARAMS.speed_bounds
    for temperature in range(-300, 1001, 7):
        for level in range(-1, len(PARAMS.speed_levels) + 1):
            for trap in (False, True):
                for elapsed in (0.0, 5.0, 60.0):
                    result = evaluate_kinetics(float(temperature), elapsed, level, trap, PARAMS)
                    assert low <= result.speed <= high
                    assert 0.0 <= result.probability <= PARAMS.probability_cap


def test_speed_ramp_endpoints() -> None:
    assert kinetic_speed(10.0, PARAMS) == pytest.approx(1.0)
    assert kinetic_speed(120.0, PARAMS) == pytest.approx(7.0)
    assert kinetic_speed(65.0, PARAMS) == pytest.approx(4.0)
    assert kinetic_speed(-40.0, PARAMS) == pytest.approx(PARAMS.speed_floor)
    assert kinetic_speed(400.0, PARAMS) == pytest.approx(PARAMS.speed_ceiling)


def test_arrhenius_term_grows_with_temperature() -> None:
    values = [arrhenius_probability(t, PARAMS) for t in (10.0, 40.0, 80.0, 120.0)]
    assert values == sorted(values)
    assert arrhenius_probability(-1000.0, PARAMS) == pytest.approx(0.0)


def test_early_boost_decays_in_steps() -> None:
    assert early_boost(0.0, PARAMS) == 3.0
    assert early_boost(3.99, PARAMS) == 3.0
    assert early_boost(4.0, PARAMS) == 1.6
    assert early_boost(9.5, PARAMS) == 1.6
    assert early_boost(10.0, PARAMS) == 1.0
    assert early_boost(300.0, PARAMS) == 1.0


def test_boost_multiplies_probability() -> None:
    early = evaluate_kinetics(30.0, 0.0, 2, False, PARAMS)
    late = evaluate_kinetics(30.0, 30.0, 2, False, PARAMS)
    assert early.probability < PARAMS.probability_cap
    assert early.probability == pytest.approx(late.probability * 3.0)
    assert early.speed == late.speed


def test_speed_levels_are_clamped_and_cycle() -> None:
    assert speed_level_multiplier(-3, PARAMS) == PARAMS.speed_levels[0]
    assert speed_level_multiplier(99, PARAMS) == PARAMS.speed_levels[-1]
    assert speed_level_multiplier(2, PARAMS) == 1.0
    assert cycle_speed_level(2, PARAMS) == 3
    assert cycle_speed_level(len(PARAMS.speed_levels) - 1, PARAMS) == 0


def test_probability_is_capped() -> None:
    result = evaluate_kinetics(120.0, 0.0, len(PARAMS.speed_levels) - 1, False, PARAMS)
    assert result.probability == pytest.approx(PARAMS.probability_cap)


def test_low_temperature_damping_and_trap_mode() -> None:
    warm = evaluate_kinetics(30.0, 30.0, 2, False, PARAMS)
    cold = evaluate_kinetics(15.0, 30.0, 2, False, PARAMS)
    trapped = evaluate_kinetics(15.0, 30.0, 2, True, PARAMS)
    assert not warm.damped
    assert cold.damped and trapped.damped
    assert trapped.speed < cold.speed < warm.speed
    assert trapped.probability * 10 < cold.probability
    assert cold.probability < warm.probability


def test_trap_mode_has_no_effect_when_warm() -> None:
    assert evaluate_kinetics(80.0, 1.0, 2, True, PARAMS) == evaluate_kinetics(80.0, 1.0, 2, False, PARAMS)
