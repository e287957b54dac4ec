"""
pygame front-end for the CuO + H2 reduction simulator.

Keyboard:
    space  pause / resume
    R      restart with the slider counts
    A      toggle atom labels
    D      toggle the diagnostics overlay
    S      cycle the reaction-speed level
    T      toggle low-temperature trap mode
    Up/Dn  temperature +/- 5 °C
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


try:
    import pygame
except ImportError:  # pragma: no cover
    pygame = None  # type: ignore

from cuo_sim import Simulation, SimulationSnapshot
from cuo_lab.config_loader import create_simulation, load_bundle_from_yaml
from .viewport import ReactionViewport, ViewportConfig
from .panels import ControlDockPanel, DiagnosticsPanel, Slider
from .controllers import SimulationController, UIController

logger = logging.getLogger(__name__)

MAX_INITIAL_COUNT = 30


@dataclass
class AppConfig:
    width: int = 900
    height: int = 740
    title: str = "CuO + H2 -> Cu + H2O"
    target_fps: int = 60
    dock_height: int = 140
    enable_vsync: bool = False


@dataclass
class AppState:
    running: bool = True
    clock: Optional["pygame.time.Clock"] = field(default=None, repr=False)


class ReductionApp:
    """
    High-level pygame application manager.

    Owns the window and the main loop; simulation state lives in the
    `SimulationController`, which is the only thing that touches it.
    """

    def __init__(self, config: AppConfig | None = None, simulation: Optional[Simulation] = None):
        if pygame is None:
            raise RuntimeError("pygame is not installed. Install it to run the visualization.")
        self.config = config or AppConfig()
        self.state = AppState()
        self.screen: Optional["pygame.Surface"] = None
        self.sim_controller = SimulationController(simulation or Simulation())
        self.ui_controller: Optional[UIController] = None
        self._latest_snapshot: Optional[SimulationSnapshot] = None

    def setup(self) -> None:
        """Initialize pygame context and create root surfaces."""
        pygame.init()
        flags = pygame.SCALED if self.config.enable_vsync else 0
        self.screen = pygame.display.set_mode((self.config.width, self.config.height), flags)
        pygame.display.set_caption(self.config.title)
        self.state.clock = pygame.time.Clock()

        font = pygame.font.SysFont("Helvetica", 16)
        small_font = pygame.font.SysFont("Arial", 11)
        dock_height = self.config.dock_height

        viewport_rect = pygame.Rect(0, 0, self.config.width, self.config.height - dock_height)
        dock_rect = pygame.Rect(0, self.config.height - dock_height, self.config.width, dock_height)
        diagnostics_rect = pygame.Rect(8, 8, 420, 170)

        simulation = self.sim_controller.simulation
        settings = simulation.settings
        kinetics = settings.kinetics
        viewport = ReactionViewport(
            viewport_rect,
            ViewportConfig(domain_size=settings.bounds, radii=settings.radii),
            font=small_font,
        )
        sliders = [
            Slider("temperature", "Temperature", kinetics.temperature_min_c, kinetics.temperature_max_c,
                   simulation.controls.temperature_c),
            Slider("gas", "H2 molecules", 0, MAX_INITIAL_COUNT, self.sim_controller.pending_gas or 0, integer=True),
            Slider("lattice", "CuO units", 0, MAX_INITIAL_COUNT, self.sim_controller.pending_lattice or 0,
                   integer=True),
        ]
        control_panel = ControlDockPanel(
            rect=dock_rect,
            font=font,
            on_toggle_pause=self.sim_controller.toggle_pause,
            on_restart=self._restart,
            on_slider_change=self._on_slider_change,
            sliders=sliders,
        )
        diagnostics_panel = DiagnosticsPanel(rect=diagnostics_rect, font=font)
        self.ui_controller = UIController(
            simulation_controller=self.sim_controller,
            viewport=viewport,
            control_panel=control_panel,
            diagnostics_panel=diagnostics_panel,
        )
        self._latest_snapshot = self.sim_controller.snapshot()

    def handle_event(self, event: "pygame.event.Event") -> None:
        """Dispatch a single pygame event."""
        if event.type == pygame.QUIT:
            self.state.running = False
            return
        if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
            self.state.running = False
            return
        if self.ui_controller:
            self.ui_controller.handle_event(event)

    def update(self, dt_seconds: float) -> None:
        """Advance simulation and UI state."""
        if self.ui_controller:
            self._latest_snapshot = self.ui_controller.update(dt_seconds)

    def render(self) -> None:
        """Render the current frame; a paused run keeps redrawing its frozen state."""
        if self.screen is None or self._latest_snapshot is None or self.ui_controller is None:
            return
        self.screen.fill((10, 10, 30))
        self.ui_controller.render(self.screen, self._latest_snapshot)
        pygame.display.flip()

    def run(self) -> None:
        """Main loop entry point."""
        if self.screen is None or self.state.clock is None:
            self.setup()

        assert self.state.clock is not None
        while self.state.running:
            dt_ms = self.state.clock.tick(self.config.target_fps)
            dt_seconds = dt_ms / 1000.0
            for event in pygame.event.get():
                self.handle_event(event)
            self.update(dt_seconds)
            self.render()

        pygame.quit()

    def _restart(self) -> None:
        self.sim_controller.restart()

    def _on_slider_change(self, key: str, value: float) -> None:
        if self.ui_controller:
            self.ui_controller.on_slider_change(key, value)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Animated CuO reduction by hydrogen.")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional YAML scenario (see config/template.yaml).",
    )
    parser.add_argument("--verbose", action="store_true", help="Log every reaction event.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    simulation = None
    if args.config is not None:
        simulation = create_simulation(load_bundle_from_yaml(args.config))
    app = ReductionApp(simulation=simulation)
    app.run()


if __name__ == "__main__":
    main()
