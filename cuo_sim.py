"""
Particle engine for the CuO + H2 -> Cu + H2O classroom visualization.

Unit conventions:
    - Positions: pixels, origin top-left, y grows downwards
    - Velocities: unit direction vectors, scaled each tick by the
      temperature-derived speed (pixels per reference frame)
    - Time: seconds; one reference frame is 1 / reference_fps
    - Temperature: degrees Celsius

One tick runs kinetics -> motion -> H2 overlap relaxation -> reactions, in that
order, and is driven by `Simulation.advance(dt)` from any scheduler (the pygame
loop, the headless runner, or a test calling it in a loop).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
import math
import random
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from cuo_lab.chem_data import (
    AtomRadii,
    FORMULA_LABELS,
    diatomic_envelope_radius,
    lattice_site_radius,
    triatomic_envelope_radius,
    unit_bond_span,
)
from cuo_lab.kinetics import (
    KineticsParameters,
    KineticsResult,
    cycle_speed_level,
    evaluate_kinetics,
)

logger = logging.getLogger(__name__)

Vector = Tuple[float, float]
Bounds = Tuple[float, float]

TWO_PI = math.pi * 2
PRODUCT_OFFSET_X = (-10.0, 10.0)
PRODUCT_OFFSET_Y = (20.0, 30.0)


def random_range(rng: random.Random, lo: float, hi: float) -> float:
    return rng.random() * (hi - lo) + lo


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def distance(ax: float, ay: float, bx: float, by: float) -> float:
    return math.hypot(bx - ax, by - ay)


def normalize(dx: float, dy: float) -> Vector:
    length = math.hypot(dx, dy)
    if length == 0.0:
        return (0.0, 0.0)
    return (dx / length, dy / length)


def random_direction(rng: random.Random) -> Vector:
    """Unit vector at a uniformly random angle; every molecule moves at the kinetic speed."""
    angle = random_range(rng, 0.0, TWO_PI)
    return (math.cos(angle), math.sin(angle))


class SiteKind(Enum):
    REACTANT = FORMULA_LABELS["reactant_site"]
    PRODUCT = FORMULA_LABELS["product_site"]


class GasKind(Enum):
    DIATOMIC = FORMULA_LABELS["diatomic_gas"]
    TRIATOMIC = FORMULA_LABELS["triatomic_gas"]


@dataclass
class LatticeUnit:
    x: float
    y: float
    phase: float = 0.0
    kind: SiteKind = SiteKind.REACTANT
    exposed: bool = False
    row: int = 0
    column: int = 0

    @property
    def is_reactive(self) -> bool:
        if self.kind is SiteKind.REACTANT:
            return True
        if self.kind is SiteKind.PRODUCT:
            return False
        raise ValueError(f"Unknown site kind: {self.kind!r}")

    def convert(self) -> None:
        """Flip CuO -> Cu. A unit converts once and never reverts."""
        if self.kind is SiteKind.PRODUCT:
            raise ValueError(f"Lattice unit at ({self.x:.1f}, {self.y:.1f}) already converted.")
        self.kind = SiteKind.PRODUCT

    def vibration_offset(self, temperature_c: float) -> Vector:
        amplitude = clamp(0.15 + (temperature_c / 120.0) * 0.35, 0.0, 0.5)
        return (math.cos(self.phase) * amplitude, math.sin(self.phase) * amplitude)


@dataclass
class GasParticle:
    kind: GasKind
    x: float
    y: float
    vx: float
    vy: float
    radius: float
    consumed: bool = False

    @property
    def position(self) -> Vector:
        return (self.x, self.y)


@dataclass(frozen=True)
class LatticeLayout:
    ground_offset: float = 18.0
    column_spacing: float = 60.0
    row_height: float = 28.0
    max_columns: int = 7
    min_columns: int = 3
    max_rows: int = 11

    def columns_for_row(self, row: int) -> int:
        return max(self.min_columns, self.max_columns - row // 2)

    def validate(self, radii: AtomRadii) -> None:
        span = unit_bond_span(radii)
        if self.column_spacing <= span or self.row_height <= span:
            raise ValueError(
                f"Lattice spacing ({self.column_spacing}, {self.row_height}) must exceed the "
                f"Cu + O radius sum {span}."
            )
        if self.max_columns < 1 or self.min_columns < 1:
            raise ValueError("Lattice rows need at least one column.")


def lattice_capacity(layout: LatticeLayout) -> int:
    return sum(layout.columns_for_row(row) for row in range(layout.max_rows))


@dataclass(frozen=True)
class SimulationSettings:
    width: float = 900.0
    height: float = 600.0
    reference_fps: float = 60.0
    radii: AtomRadii = field(default_factory=AtomRadii)
    envelope_margin: float = 6.0
    layout: LatticeLayout = field(default_factory=LatticeLayout)
    kinetics: KineticsParameters = field(default_factory=KineticsParameters)
    contact_widening: float = 1.6
    surface_boost: float = 1.8
    presettle_passes: int = 120
    spawn_margin: float = 50.0
    spawn_ceiling: float = 220.0
    vibration_rate: float = 0.03
    overlap_epsilon: float = 1e-6

    @property
    def diatomic_radius(self) -> float:
        return diatomic_envelope_radius(self.radii, self.envelope_margin)

    @property
    def triatomic_radius(self) -> float:
        return triatomic_envelope_radius(self.radii, self.envelope_margin)

    @property
    def site_radius(self) -> float:
        return lattice_site_radius(self.radii)

    @property
    def bounds(self) -> Bounds:
        return (self.width, self.height)

    def contact_threshold(self, envelope_radius: float) -> float:
        return (envelope_radius + self.site_radius) * self.contact_widening


@dataclass
class ControlInputs:
    """
    Values the front-end writes and the engine only reads.

    `speed_level=None` means "use `KineticsParameters.default_speed_level`";
    `Simulation` resolves it against its own settings.
    """

    temperature_c: float = 60.0
    paused: bool = False
    trap_mode: bool = False
    speed_level: Optional[int] = None
    show_diagnostics: bool = False
    show_labels: bool = False

    def toggle_pause(self) -> None:
        self.paused = not self.paused

    def toggle_trap(self) -> None:
        self.trap_mode = not self.trap_mode

    def cycle_speed_level(self, params: KineticsParameters) -> int:
        current = params.default_speed_level if self.speed_level is None else self.speed_level
        self.speed_level = cycle_speed_level(current, params)
        return self.speed_level


@dataclass
class SimulationCounts:
    reactant_units: int
    product_units: int
    diatomic_remaining: int
    triatomic_produced: int
    reaction_events: int
    initial_diatomic: int
    initial_lattice: int
    requested_lattice: int

    def is_conserved(self) -> bool:
        return (
            self.reactant_units + self.product_units == self.initial_lattice
            and self.diatomic_remaining + self.reaction_events == self.initial_diatomic
            and self.triatomic_produced == self.reaction_events
        )


@dataclass
class LatticeState:
    x: float
    y: float
    kind: SiteKind
    exposed: bool
    offset: Vector


@dataclass
class GasState:
    kind: GasKind
    position: Vector
    velocity: Vector
    radius: float


@dataclass
class SimulationSnapshot:
    step_index: int
    elapsed_s: float
    temperature_c: float
    paused: bool
    lattice: List[LatticeState]
    gases: List[GasState]
    counts: SimulationCounts
    kinetics: Optional[KineticsResult] = None


def build_lattice(
    count: int,
    width: float,
    height: float,
    layout: LatticeLayout,
    rng: Optional[random.Random] = None,
) -> List[LatticeUnit]:
    """
    Stack `count` units on the ground line, rows narrowing upwards.

    Units that do not fit below `layout.max_rows` are dropped.
    """
    if count <= 0:
        return []
    rng = rng or random.Random()
    ground_y = height - layout.ground_offset
    units: List[LatticeUnit] = []
    remaining = count
    row = 0
    while remaining > 0 and row < layout.max_rows:
        columns = min(remaining, layout.columns_for_row(row))
        y = ground_y - row * layout.row_height
        x0 = width / 2 - (columns - 1) * layout.column_spacing / 2
        for column in range(columns):
            units.append(
                LatticeUnit(
                    x=x0 + column * layout.column_spacing,
                    y=y,
                    phase=random_range(rng, 0.0, TWO_PI),
                    row=row,
                    column=column,
                )
            )
        remaining -= columns
        row += 1
    if remaining > 0:
        logger.warning(
            "Lattice row cap reached: placed %d of %d units (%d dropped).",
            len(units),
            count,
            remaining,
        )
    classify_surface(units, layout)
    return units


def classify_surface(units: Sequence[LatticeUnit], layout: LatticeLayout) -> None:
    """Mark row ends and units with nothing stacked directly above as exposed."""
    rows: Dict[int, List[LatticeUnit]] = {}
    for unit in units:
        rows.setdefault(unit.row, []).append(unit)
    for row, members in rows.items():
        above = rows.get(row + 1, [])
        last_column = len(members) - 1
        for unit in members:
            covered = any(abs(other.x - unit.x) < layout.column_spacing for other in above)
            unit.exposed = unit.column in (0, last_column) or not covered


def integrate_motion(
    particles: Iterable[GasParticle],
    speed: float,
    bounds: Bounds,
    frame_scale: float = 1.0,
) -> None:
    width, height = bounds
    step = speed * frame_scale
    for particle in particles:
        if particle.consumed:
            continue
        particle.x += particle.vx * step
        particle.y += particle.vy * step
        r = particle.radius
        if particle.x < r:
            particle.x = r
            particle.vx *= -1
        elif particle.x > width - r:
            particle.x = width - r
            particle.vx *= -1
        if particle.y < r:
            particle.y = r
            particle.vy *= -1
        elif particle.y > height - r:
            particle.y = height - r
            particle.vy *= -1


def resolve_overlaps(
    particles: Sequence[GasParticle],
    bounds: Optional[Bounds] = None,
    epsilon: float = 1e-6,
) -> None:
    """One symmetric relaxation pass over every intersecting pair."""
    active = [p for p in particles if not p.consumed]
    for i, a in enumerate(active):
        for j in range(i + 1, len(active)):
            b = active[j]
            dx = b.x - a.x
            dy = b.y - a.y
            dist = math.hypot(dx, dy)
            min_dist = a.radius + b.radius
            if dist <= epsilon or dist >= min_dist:
                continue
            nx, ny = normalize(dx, dy)
            half = (min_dist - dist) / 2
            a.x -= nx * half
            a.y -= ny * half
            b.x += nx * half
            b.y += ny * half
    if bounds is not None:
        width, height = bounds
        for p in active:
            p.x = clamp(p.x, p.radius, width - p.radius)
            p.y = clamp(p.y, p.radius, height - p.radius)


def presettle(
    particles: Sequence[GasParticle],
    passes: int,
    bounds: Optional[Bounds] = None,
    epsilon: float = 1e-6,
) -> None:
    for _ in range(max(0, passes)):
        resolve_overlaps(particles, bounds, epsilon)


def max_overlap(particles: Sequence[GasParticle]) -> float:
    worst = 0.0
    active = [p for p in particles if not p.consumed]
    for i, a in enumerate(active):
        for b in active[i + 1 :]:
            penetration = a.radius + b.radius - distance(a.x, a.y, b.x, b.y)
            worst = max(worst, penetration)
    return worst


class Simulation:
    """
    Owns one run of the reduction: lattice, gas populations and counters.

    Restarting never mutates an existing context; `restart_simulation` builds
    a fresh one from the same settings and controls.
    """

    def __init__(
        self,
        settings: Optional[SimulationSettings] = None,
        controls: Optional[ControlInputs] = None,
        initial_gas: int = 10,
        initial_lattice: int = 10,
        seed: Optional[int] = None,
    ):
        self.settings = settings or SimulationSettings()
        self.controls = controls or ControlInputs()
        if self.controls.speed_level is None:
            self.controls.speed_level = self.settings.kinetics.default_speed_level
        self.settings.layout.validate(self.settings.radii)
        self.seed = seed
        self.random = random.Random(seed)
        self.step_index: int = 0
        self.elapsed_s: float = 0.0
        self.reaction_events: int = 0
        self.last_kinetics: Optional[KineticsResult] = None

        self.requested_lattice = max(0, int(initial_lattice))
        self.lattice: List[LatticeUnit] = build_lattice(
            self.requested_lattice,
            self.settings.width,
            self.settings.height,
            self.settings.layout,
            self.random,
        )
        self.diatomic: List[GasParticle] = [
            self._spawn_diatomic() for _ in range(max(0, int(initial_gas)))
        ]
        self.triatomic: List[GasParticle] = []
        presettle(
            self.diatomic,
            self.settings.presettle_passes,
            self.settings.bounds,
            self.settings.overlap_epsilon,
        )
        self.initial_diatomic = len(self.diatomic)
        self.initial_lattice = len(self.lattice)
        logger.info(
            "Simulation started: %d H2, %d CuO units (seed=%s).",
            self.initial_diatomic,
            self.initial_lattice,
            seed,
        )

    def advance(self, dt: float) -> Optional[KineticsResult]:
        """Run one tick of `dt` seconds. A paused simulation is left untouched."""
        if self.controls.paused:
            return None
        settings = self.settings
        kinetics = evaluate_kinetics(
            self.controls.temperature_c,
            self.elapsed_s,
            self.controls.speed_level,
            self.controls.trap_mode,
            settings.kinetics,
        )
        frame_scale = dt * settings.reference_fps
        integrate_motion(self.diatomic, kinetics.speed, settings.bounds, frame_scale)
        integrate_motion(self.triatomic, kinetics.speed, settings.bounds, frame_scale)
        resolve_overlaps(self.diatomic, settings.bounds, settings.overlap_epsilon)
        self.run_reactions(kinetics.probability)
        for unit in self.lattice:
            unit.phase = (unit.phase + settings.vibration_rate * frame_scale) % TWO_PI
        self.step_index += 1
        self.elapsed_s += dt
        self.last_kinetics = kinetics
        return kinetics

    def run(self, ticks: int, dt: float) -> None:
        for _ in range(ticks):
            self.advance(dt)

    def run_reactions(self, probability: float) -> int:
        """Test each H2 against reactive lattice sites; returns reactions committed."""
        settings = self.settings
        cap = settings.kinetics.probability_cap
        committed = 0
        for gas in self.diatomic:
            if gas.consumed:
                continue
            threshold = settings.contact_threshold(gas.radius)
            for unit in self.lattice:
                if not unit.is_reactive:
                    continue
                if distance(gas.x, gas.y, unit.x, unit.y) > threshold:
                    continue
                gas.vx *= -1
                gas.vy *= -1
                effective = min(probability * settings.surface_boost, cap) if unit.exposed else probability
                if self.random.random() < effective:
                    self._commit_reaction(gas, unit)
                    committed += 1
                    break
        if committed:
            self.diatomic = [gas for gas in self.diatomic if not gas.consumed]
        return committed

    def counts(self) -> SimulationCounts:
        reactant = sum(1 for unit in self.lattice if unit.kind is SiteKind.REACTANT)
        return SimulationCounts(
            reactant_units=reactant,
            product_units=len(self.lattice) - reactant,
            diatomic_remaining=len(self.diatomic),
            triatomic_produced=len(self.triatomic),
            reaction_events=self.reaction_events,
            initial_diatomic=self.initial_diatomic,
            initial_lattice=self.initial_lattice,
            requested_lattice=self.requested_lattice,
        )

    def snapshot(self) -> SimulationSnapshot:
        temperature = self.controls.temperature_c
        lattice = [
            LatticeState(
                x=unit.x,
                y=unit.y,
                kind=unit.kind,
                exposed=unit.exposed,
                offset=unit.vibration_offset(temperature),
            )
            for unit in self.lattice
        ]
        gases = [
            GasState(kind=p.kind, position=p.position, velocity=(p.vx, p.vy), radius=p.radius)
            for p in (*self.diatomic, *self.triatomic)
        ]
        return SimulationSnapshot(
            step_index=self.step_index,
            elapsed_s=self.elapsed_s,
            temperature_c=temperature,
            paused=self.controls.paused,
            lattice=lattice,
            gases=gases,
            counts=self.counts(),
            kinetics=self.last_kinetics,
        )

    def _commit_reaction(self, gas: GasParticle, unit: LatticeUnit) -> None:
        gas.consumed = True
        unit.convert()
        self.triatomic.append(self._spawn_triatomic(unit))
        self.reaction_events += 1
        logger.debug(
            "Reaction %d at site (%.1f, %.1f), exposed=%s.",
            self.reaction_events,
            unit.x,
            unit.y,
            unit.exposed,
        )

    def _spawn_diatomic(self) -> GasParticle:
        settings = self.settings
        r = settings.diatomic_radius
        margin = settings.spawn_margin
        x = random_range(self.random, margin, settings.width - margin)
        y = random_range(self.random, margin, settings.height - settings.spawn_ceiling)
        vx, vy = random_direction(self.random)
        return GasParticle(
            kind=GasKind.DIATOMIC,
            x=clamp(x, r, settings.width - r),
            y=clamp(y, r, settings.height - r),
            vx=vx,
            vy=vy,
            radius=r,
        )

    def _spawn_triatomic(self, unit: LatticeUnit) -> GasParticle:
        settings = self.settings
        r = settings.triatomic_radius
        x = unit.x + random_range(self.random, *PRODUCT_OFFSET_X)
        y = unit.y - random_range(self.random, *PRODUCT_OFFSET_Y)
        vx, vy = random_direction(self.random)
        return GasParticle(
            kind=GasKind.TRIATOMIC,
            x=clamp(x, r, settings.width - r),
            y=clamp(y, r, settings.height - r),
            vx=vx,
            vy=vy,
            radius=r,
        )


def restart_simulation(
    previous: Simulation,
    initial_gas: Optional[int] = None,
    initial_lattice: Optional[int] = None,
    seed: Optional[int] = None,
) -> Simulation:
    """Discard `previous` and build a fresh context with the same settings and controls."""
    gas = previous.initial_diatomic if initial_gas is None else initial_gas
    lattice = previous.requested_lattice if initial_lattice is None else initial_lattice
    previous.controls.paused = False
    return Simulation(previous.settings, previous.controls, gas, lattice, seed=seed)
