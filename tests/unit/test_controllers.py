"""Tests for the front-end independent simulation controller."""

from __future__ import annotations

import pytest

from cuo_lab.ui.controllers import TEMPERATURE_STEP_C, SimulationController

FRAME_DT = 1.0 / 60.0


@pytest.fixture
def controller(make_simulation) -> SimulationController:
    return SimulationController(make_simulation(initial_gas=8, initial_lattice=6))


def test_pending_counts_default_to_current_run(controller: SimulationController) -> None:
    assert controller.pending_gas == 8
    assert controller.pending_lattice == 6


def test_update_advances_unless_paused(controller: SimulationController) -> None:
    controller.update(FRAME_DT)
    assert controller.simulation.step_index == 1
    controller.toggle_pause()
    assert controller.is_paused
    controller.update(FRAME_DT)
    assert controller.simulation.step_index == 1


def test_pending_counts_apply_only_on_restart(controller: SimulationController) -> None:
    original = controller.simulation
    controller.pending_gas = 3
    controller.pending_lattice = 14
    assert original.initial_diatomic == 8

    controller.toggle_pause()
    fresh = controller.restart(seed=4)

    assert fresh is controller.simulation
    assert fresh is not original
    assert (fresh.initial_diatomic, fresh.initial_lattice) == (3, 14)
    assert not controller.is_paused


def test_temperature_is_clamped_to_slider_range(controller: SimulationController) -> None:
    params = controller.simulation.settings.kinetics
    controller.set_temperature(500.0)
    assert controller.controls.temperature_c == params.temperature_max_c
    controller.set_temperature(-40.0)
    assert controller.controls.temperature_c == params.temperature_min_c
    controller.nudge_temperature(TEMPERATURE_STEP_C)
    assert controller.controls.temperature_c == params.temperature_min_c + TEMPERATURE_STEP_C


def test_speed_level_cycles_and_labels(controller: SimulationController) -> None:
    assert controller.speed_level_label() == "x1 (3/5)"
    assert controller.cycle_speed_level() == 3
    assert controller.speed_level_label() == "x2 (4/5)"
    controller.cycle_speed_level()
    assert controller.cycle_speed_level() == 0
    assert controller.speed_level_label() == "x0.25 (1/5)"


def test_trap_toggle_survives_restart(controller: SimulationController) -> None:
    controller.toggle_trap()
    controller.restart()
    assert controller.controls.trap_mode
    assert controller.snapshot().counts.reaction_events == 0
