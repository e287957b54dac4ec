"""
Panel scaffolding for pygame UI components (control dock, diagnostics overlay).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, TYPE_CHECKING

try:
    import pygame
except ImportError:  # pragma: no cover
    pygame = None  # type: ignore

if TYPE_CHECKING:  # pragma: no cover
    from cuo_sim import SimulationSnapshot

Color = Tuple[int, int, int]


@dataclass
class Slider:
    key: str
    label: str
    minimum: float
    maximum: float
    value: float
    integer: bool = False
    track: Optional["pygame.Rect"] = None

    def set_from_position(self, x_pos: int) -> float:
        if self.track is None:
            return self.value
        normalized = (x_pos - self.track.x) / self.track.width
        normalized = max(0.0, min(1.0, normalized))
        value = self.minimum + normalized * (self.maximum - self.minimum)
        self.value = float(round(value)) if self.integer else value
        return self.value

    def normalized(self) -> float:
        span = self.maximum - self.minimum
        if span <= 0:
            return 0.0
        return max(0.0, min(1.0, (self.value - self.minimum) / span))

    def text(self) -> str:
        if self.integer:
            return f"{self.label}: {int(self.value)}"
        return f"{self.label}: {self.value:.0f} °C"


@dataclass
class ControlDockPanel:
    rect: "pygame.Rect"
    font: "pygame.font.Font"
    on_toggle_pause: Callable[[], None]
    on_restart: Callable[[], None]
    on_slider_change: Callable[[str, float], None]
    sliders: List[Slider] = field(default_factory=list)
    is_paused: bool = False
    labels_on: bool = False
    _button_rects: Dict[str, "pygame.Rect"] = field(default_factory=dict, init=False, repr=False)
    _active_slider: Optional[Slider] = field(default=None, init=False, repr=False)

    def render(self, surface: "pygame.Surface") -> None:
        if pygame is None:
            return
        pygame.draw.rect(surface, (25, 25, 45), self.rect)
        button_labels = [
            ("pause", "Play" if self.is_paused else "Pause"),
            ("restart", "Restart"),
        ]
        self._button_rects = {}
        for idx, (key, label) in enumerate(button_labels):
            rect = pygame.Rect(self.rect.x + 16 + idx * 112, self.rect.y + 16, 100, 36)
            pygame.draw.rect(surface, (45, 45, 70), rect, border_radius=6)
            text_surface = self.font.render(label, True, (240, 240, 255))
            surface.blit(text_surface, text_surface.get_rect(center=rect.center))
            self._button_rects[key] = rect

        atoms_text = self.font.render(f"Atoms: {'ON' if self.labels_on else 'OFF'}", True, (200, 200, 220))
        surface.blit(atoms_text, (self.rect.x + 250, self.rect.y + 24))

        for idx, slider in enumerate(self.sliders):
            track_x = self.rect.x + 16 + idx * 260
            track_rect = pygame.Rect(track_x, self.rect.y + 100, 220, 12)
            pygame.draw.rect(surface, (60, 60, 90), track_rect, border_radius=6)
            slider.track = track_rect
            handle_x = track_rect.x + int(slider.normalized() * track_rect.width)
            handle_rect = pygame.Rect(handle_x - 6, track_rect.y - 4, 12, 20)
            pygame.draw.rect(surface, (200, 200, 255), handle_rect, border_radius=4)
            label = self.font.render(slider.text(), True, (220, 220, 235))
            surface.blit(label, (track_rect.x, track_rect.y - 28))

    def handle_event(self, event: "pygame.event.Event") -> None:
        if pygame is None:
            return

        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if hasattr(event, "pos"):
                pos = event.pos
                for key, rect in self._button_rects.items():
                    if rect.collidepoint(pos):
                        if key == "pause":
                            self.on_toggle_pause()
                        elif key == "restart":
                            self.on_restart()
                        return
                for slider in self.sliders:
                    if slider.track is not None and slider.track.inflate(0, 16).collidepoint(pos):
                        self._active_slider = slider
                        self._set_slider(slider, pos[0])
                        return

        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            self._active_slider = None

        elif event.type == pygame.MOUSEMOTION and self._active_slider is not None:
            self._set_slider(self._active_slider, event.pos[0])

    def slider(self, key: str) -> Optional[Slider]:
        return next((s for s in self.sliders if s.key == key), None)

    def _set_slider(self, slider: Slider, x_pos: int) -> None:
        value = slider.set_from_position(x_pos)
        self.on_slider_change(slider.key, value)


@dataclass
class DiagnosticsPanel:
    rect: "pygame.Rect"
    font: "pygame.font.Font"
    visible: bool = False
    lines: List[str] = field(default_factory=list)

    def update(self, snapshot: "SimulationSnapshot", speed_level_label: str, trap_mode: bool) -> None:
        counts = snapshot.counts
        self.lines = [
            f"t = {snapshot.elapsed_s:5.1f} s   step {snapshot.step_index}",
            f"CuO: {counts.reactant_units}   Cu: {counts.product_units}   (initial {counts.initial_lattice})",
            f"H2: {counts.diatomic_remaining}   H2O: {counts.triatomic_produced}   (initial {counts.initial_diatomic})",
            f"Reactions: {counts.reaction_events}",
            f"Reaction speed: {speed_level_label}   Trap: {'ON' if trap_mode else 'OFF'}",
        ]
        if counts.requested_lattice > counts.initial_lattice:
            self.lines.append(f"Lattice truncated: {counts.requested_lattice} requested")
        kinetics = snapshot.kinetics
        if kinetics is not None:
            self.lines.append(
                f"speed {kinetics.speed:.2f}   p {kinetics.probability:.4f}   boost x{kinetics.boost:.1f}"
            )

    def render(self, surface: "pygame.Surface") -> None:
        if pygame is None or not self.visible:
            return
        overlay = pygame.Surface(self.rect.size, pygame.SRCALPHA)
        overlay.fill((18, 18, 32, 200))
        surface.blit(overlay, self.rect.topleft)
        y = self.rect.y + 10
        for line in self.lines:
            label = self.font.render(line, True, (220, 220, 230))
            surface.blit(label, (self.rect.x + 12, y))
            y += 20
