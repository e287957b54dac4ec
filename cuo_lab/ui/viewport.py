"""
Reaction viewport rendering helpers for the pygame UI.

The viewport consumes `SimulationSnapshot` objects from `cuo_sim.py` and draws
lattice units and gas molecules with basic pygame primitives. Simulation
coordinates are pixels of the simulation domain; the viewport scales them to
fit its rect.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Tuple, Optional, TYPE_CHECKING

try:
    import pygame
except ImportError:  # pragma: no cover
    pygame = None  # type: ignore

from cuo_lab.chem_data import AtomRadii
from cuo_sim import GasKind, SiteKind

if TYPE_CHECKING:  # pragma: no cover
    from cuo_sim import SimulationSnapshot, LatticeState, GasState

Color = Tuple[int, int, int]


DEFAULT_ELEMENT_COLORS: Dict[str, Color] = {
    "H": (255, 255, 255),
    "O": (229, 57, 53),
    "Cu": (184, 115, 51),
}

WATER_HALF_ANGLE = math.radians(52.0)


@dataclass
class ViewportConfig:
    domain_size: Tuple[float, float]
    background_color: Color = (248, 248, 252)
    outline_color: Color = (0, 0, 0)
    bond_color: Color = (119, 119, 119)
    label_color: Color = (0, 0, 0)
    ground_color: Color = (90, 90, 110)
    radii: AtomRadii = field(default_factory=AtomRadii)
    element_colors: Dict[str, Color] = field(default_factory=lambda: DEFAULT_ELEMENT_COLORS.copy())


class ReactionViewport:
    """
    Manages domain-to-screen transforms and rendering calls for the reaction scene.
    """

    def __init__(self, rect: "pygame.Rect", config: ViewportConfig, font: Optional["pygame.font.Font"] = None):
        if pygame is None:
            raise RuntimeError("pygame must be installed to use ReactionViewport.")
        self.rect = rect
        self.config = config
        self.font = font
        self.show_labels = False
        width, height = config.domain_size
        self.scale = min(rect.width / width, rect.height / height)

    def world_to_screen(self, position: Tuple[float, float]) -> Tuple[int, int]:
        x, y = position
        return int(x * self.scale), int(y * self.scale)

    def render(self, surface: "pygame.Surface", snapshot: "SimulationSnapshot") -> None:
        surface.fill(self.config.background_color)
        width, height = self.config.domain_size
        ground_y = int(height * self.scale) - 1
        pygame.draw.line(surface, self.config.ground_color, (0, ground_y), (int(width * self.scale), ground_y), 2)

        # Solid first so gas molecules drift over it.
        for unit in snapshot.lattice:
            self._draw_lattice_unit(surface, unit)
        for gas in snapshot.gases:
            self._draw_gas(surface, gas)

    def _draw_lattice_unit(self, surface: "pygame.Surface", unit: "LatticeState") -> None:
        radii = self.config.radii
        cx = unit.x + unit.offset[0]
        cy = unit.y + unit.offset[1]
        if unit.kind is SiteKind.REACTANT:
            self._draw_bond(surface, (cx - radii.copper + 1, cy), (cx + radii.oxygen - 1, cy))
            self._draw_atom(surface, (cx - radii.copper, cy), "Cu")
            self._draw_atom(surface, (cx + radii.oxygen, cy), "O")
        elif unit.kind is SiteKind.PRODUCT:
            self._draw_atom(surface, (cx, cy), "Cu")
        else:
            raise ValueError(f"Unknown site kind: {unit.kind!r}")

    def _draw_gas(self, surface: "pygame.Surface", gas: "GasState") -> None:
        radii = self.config.radii
        x, y = gas.position
        if gas.kind is GasKind.DIATOMIC:
            self._draw_bond(surface, (x - radii.hydrogen + 1, y), (x + radii.hydrogen - 1, y))
            self._draw_atom(surface, (x - radii.hydrogen, y), "H")
            self._draw_atom(surface, (x + radii.hydrogen, y), "H")
        elif gas.kind is GasKind.TRIATOMIC:
            reach = radii.oxygen + radii.hydrogen - 2
            dx = math.sin(WATER_HALF_ANGLE) * reach
            dy = math.cos(WATER_HALF_ANGLE) * reach
            for hx in (x - dx, x + dx):
                self._draw_bond(surface, (x, y), (hx, y + dy))
            self._draw_atom(surface, (x - dx, y + dy), "H")
            self._draw_atom(surface, (x + dx, y + dy), "H")
            self._draw_atom(surface, (x, y), "O")
        else:
            raise ValueError(f"Unknown gas kind: {gas.kind!r}")

    def _draw_atom(self, surface: "pygame.Surface", position: Tuple[float, float], symbol: str) -> None:
        center = self.world_to_screen(position)
        radius = max(1, int(self.config.radii.get(symbol) * self.scale))
        color = self.config.element_colors.get(symbol, (200, 200, 200))
        pygame.draw.circle(surface, color, center, radius)
        pygame.draw.circle(surface, self.config.outline_color, center, radius, width=1)
        if self.show_labels and self.font is not None:
            label = self.font.render(symbol, True, self.config.label_color)
            surface.blit(label, label.get_rect(center=center))

    def _draw_bond(
        self, surface: "pygame.Surface", start: Tuple[float, float], end: Tuple[float, float]
    ) -> None:
        pygame.draw.line(
            surface,
            self.config.bond_color,
            self.world_to_screen(start),
            self.world_to_screen(end),
            width=2,
        )
