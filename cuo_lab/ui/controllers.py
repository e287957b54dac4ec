"""
Controller scaffolding connecting pygame UI and simulation layer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

try:
    import pygame
except ImportError:  # pragma: no cover
    pygame = None  # type: ignore

from cuo_sim import Simulation, SimulationSnapshot, restart_simulation
from .viewport import ReactionViewport
from .panels import ControlDockPanel, DiagnosticsPanel

if TYPE_CHECKING:  # pragma: no cover
    from cuo_sim import ControlInputs

logger = logging.getLogger(__name__)

TEMPERATURE_STEP_C = 5.0


@dataclass
class SimulationController:
    """
    Drives one `Simulation` from a periodic callback.

    Initial counts set here only take effect on the next restart.
    """

    simulation: Simulation
    pending_gas: Optional[int] = None
    pending_lattice: Optional[int] = None

    def __post_init__(self) -> None:
        if self.pending_gas is None:
            self.pending_gas = self.simulation.initial_diatomic
        if self.pending_lattice is None:
            self.pending_lattice = self.simulation.requested_lattice

    @property
    def controls(self) -> "ControlInputs":
        return self.simulation.controls

    @property
    def is_paused(self) -> bool:
        return self.controls.paused

    def toggle_pause(self) -> None:
        self.controls.toggle_pause()

    def update(self, dt_seconds: float) -> None:
        self.simulation.advance(dt_seconds)

    def restart(self, seed: Optional[int] = None) -> Simulation:
        self.simulation = restart_simulation(
            self.simulation,
            initial_gas=self.pending_gas,
            initial_lattice=self.pending_lattice,
            seed=seed,
        )
        logger.info("Restarted with %s H2 and %s CuO.", self.pending_gas, self.pending_lattice)
        return self.simulation

    def set_temperature(self, temperature_c: float) -> None:
        params = self.simulation.settings.kinetics
        self.controls.temperature_c = max(params.temperature_min_c, min(params.temperature_max_c, temperature_c))

    def nudge_temperature(self, delta_c: float) -> None:
        self.set_temperature(self.controls.temperature_c + delta_c)

    def cycle_speed_level(self) -> int:
        return self.controls.cycle_speed_level(self.simulation.settings.kinetics)

    def speed_level_label(self) -> str:
        levels = self.simulation.settings.kinetics.speed_levels
        index = max(0, min(len(levels) - 1, self.controls.speed_level))
        return f"x{levels[index]:g} ({index + 1}/{len(levels)})"

    def toggle_trap(self) -> None:
        self.controls.toggle_trap()

    def snapshot(self) -> SimulationSnapshot:
        return self.simulation.snapshot()


class UIController:
    """
    Routes pygame events to panels and keyboard shortcuts.
    """

    def __init__(
        self,
        simulation_controller: SimulationController,
        viewport: ReactionViewport,
        control_panel: ControlDockPanel,
        diagnostics_panel: DiagnosticsPanel,
    ):
        if pygame is None:
            raise RuntimeError("pygame must be installed to use UIController.")
        self.simulation_controller = simulation_controller
        self.viewport = viewport
        self.control_panel = control_panel
        self.diagnostics_panel = diagnostics_panel

    def handle_event(self, event: "pygame.event.Event") -> None:
        if event.type == pygame.KEYDOWN:
            self._handle_key(event.key)
        self.control_panel.handle_event(event)

    def update(self, dt_seconds: float) -> SimulationSnapshot:
        controller = self.simulation_controller
        controller.update(dt_seconds)
        snapshot = controller.snapshot()
        controls = controller.controls
        self.control_panel.is_paused = controls.paused
        self.control_panel.labels_on = controls.show_labels
        temperature = self.control_panel.slider("temperature")
        if temperature is not None:
            temperature.value = controls.temperature_c
        self.viewport.show_labels = controls.show_labels
        self.diagnostics_panel.visible = controls.show_diagnostics
        self.diagnostics_panel.update(snapshot, controller.speed_level_label(), controls.trap_mode)
        return snapshot

    def render(self, screen: "pygame.Surface", snapshot: SimulationSnapshot) -> None:
        viewport_surface = screen.subsurface(self.viewport.rect)
        self.viewport.render(viewport_surface, snapshot)
        self.control_panel.render(screen)
        self.diagnostics_panel.render(screen)

    def on_slider_change(self, key: str, value: float) -> None:
        controller = self.simulation_controller
        if key == "temperature":
            controller.set_temperature(value)
        elif key == "gas":
            controller.pending_gas = int(value)
        elif key == "lattice":
            controller.pending_lattice = int(value)

    def _handle_key(self, key: int) -> None:
        controller = self.simulation_controller
        controls = controller.controls
        if key == pygame.K_SPACE:
            controller.toggle_pause()
        elif key == pygame.K_r:
            controller.restart()
        elif key == pygame.K_a:
            controls.show_labels = not controls.show_labels
        elif key == pygame.K_d:
            controls.show_diagnostics = not controls.show_diagnostics
        elif key == pygame.K_s:
            controller.cycle_speed_level()
        elif key == pygame.K_t:
            controller.toggle_trap()
        elif key == pygame.K_UP:
            controller.nudge_temperature(TEMPERATURE_STEP_C)
        elif key == pygame.K_DOWN:
            controller.nudge_temperature(-TEMPERATURE_STEP_C)
