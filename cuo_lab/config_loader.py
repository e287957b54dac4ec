"""
Utilities for loading reduction scenarios from YAML configuration files.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple, Type, TypeVar

import yaml

from cuo_lab.chem_data import AtomRadii
from cuo_lab.kinetics import KineticsParameters
from cuo_sim import ControlInputs, LatticeLayout, Simulation, SimulationSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SimulationBundle:
    """Container returned by configuration loader."""

    settings: SimulationSettings
    controls: ControlInputs
    initial_gas: int
    initial_lattice: int
    seed: Optional[int]
    metadata: Dict[str, Any]


def load_bundle_from_yaml(path: Path) -> SimulationBundle:
    """Load settings, controls and initial counts from a YAML scenario."""
    data = _load_yaml(path)
    settings = _build_settings(data)
    controls = _build_controls(_section(data, "controls"), settings.kinetics)
    initial = _section(data, "initial")
    bundle = SimulationBundle(
        settings=settings,
        controls=controls,
        initial_gas=max(0, int(initial.get("gas", 10))),
        initial_lattice=max(0, int(initial.get("lattice", 10))),
        seed=_optional_int(initial.get("seed")),
        metadata=data.get("metadata", {}) or {},
    )
    logger.info(
        "Loaded scenario %r from %s (%d H2, %d CuO).",
        bundle.metadata.get("name", path.stem),
        path,
        bundle.initial_gas,
        bundle.initial_lattice,
    )
    return bundle


def create_simulation(bundle: SimulationBundle) -> Simulation:
    return Simulation(
        bundle.settings,
        bundle.controls,
        bundle.initial_gas,
        bundle.initial_lattice,
        seed=bundle.seed,
    )


def _load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        content = yaml.safe_load(handle)
    if not isinstance(content, dict):
        raise ValueError(f"YAML file {path} must contain a mapping at the root.")
    return content


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Section '{name}' must be a mapping.")
    return section


def _build_settings(data: Dict[str, Any]) -> SimulationSettings:
    domain = _section(data, "domain")
    reaction = _section(data, "reaction")
    radii = _from_mapping(AtomRadii, _section(data, "atoms"))
    layout = _from_mapping(LatticeLayout, _section(data, "lattice"))
    kinetics_config = dict(_section(data, "kinetics"))
    if "speed_levels" in kinetics_config:
        kinetics_config["speed_levels"] = _float_tuple(kinetics_config["speed_levels"])
    kinetics = _from_mapping(KineticsParameters, kinetics_config)

    overrides: Dict[str, Any] = {}
    for key in ("width", "height", "reference_fps", "envelope_margin", "spawn_margin", "spawn_ceiling"):
        if key in domain:
            overrides[key] = float(domain[key])
    for key in ("contact_widening", "surface_boost", "vibration_rate", "overlap_epsilon"):
        if key in reaction:
            overrides[key] = float(reaction[key])
    if "presettle_passes" in reaction:
        overrides["presettle_passes"] = int(reaction["presettle_passes"])

    settings = SimulationSettings(radii=radii, layout=layout, kinetics=kinetics, **overrides)
    settings.layout.validate(settings.radii)
    return settings


def _build_controls(config: Dict[str, Any], kinetics: KineticsParameters) -> ControlInputs:
    return ControlInputs(
        temperature_c=float(config.get("temperature_c", 60.0)),
        paused=bool(config.get("paused", False)),
        trap_mode=bool(config.get("trap_mode", False)),
        speed_level=int(config.get("speed_level", kinetics.default_speed_level)),
        show_diagnostics=bool(config.get("show_diagnostics", False)),
        show_labels=bool(config.get("show_labels", False)),
    )


def _from_mapping(cls: Type[T], config: Dict[str, Any]) -> T:
    """Build a dataclass from the keys it knows; unknown keys are rejected."""
    known = {f.name: f for f in fields(cls)}  # type: ignore[arg-type]
    unknown = set(config) - set(known)
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} keys: {sorted(unknown)}")
    values: Dict[str, Any] = {}
    for key, value in config.items():
        default = getattr(cls, key, None)
        if isinstance(default, bool) or isinstance(default, tuple):
            values[key] = value
        elif isinstance(default, int):
            values[key] = int(value)
        elif isinstance(default, float):
            values[key] = float(value)
        else:
            values[key] = value
    return cls(**values)


def _float_tuple(value: Any) -> Tuple[float, ...]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise ValueError("speed_levels must be a list of numbers.")
    values = tuple(float(item) for item in value)
    if not values:
        raise ValueError("speed_levels must contain at least one entry.")
    return values


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(value)
