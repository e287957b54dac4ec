"""
Shared pytest fixtures for the reduction simulator tests.

These fixtures expose parsed configuration and ready-made simulations so
tests do not duplicate setup logic.
"""

from __future__ import annotations

import pathlib
import sys
from typing import Any, Dict

import pytest
import yaml

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from cuo_sim import ControlInputs, Simulation, SimulationSettings  # noqa: E402

FRAME_DT = 1.0 / 60.0


@pytest.fixture(scope="session")
def project_root() -> pathlib.Path:
    """Return repository root directory."""
    return REPO_ROOT


def _load_yaml(path: pathlib.Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)


@pytest.fixture(scope="session")
def config_template(project_root: pathlib.Path) -> Dict[str, Any]:
    """Parsed representation of the default scenario template."""
    return _load_yaml(project_root / "config" / "template.yaml")


@pytest.fixture
def settings() -> SimulationSettings:
    return SimulationSettings()


@pytest.fixture
def make_simulation(settings: SimulationSettings):
    """Factory for seeded simulations with fresh controls."""

    def factory(
        initial_gas: int = 10,
        initial_lattice: int = 10,
        seed: int = 1234,
        custom_settings: SimulationSettings | None = None,
        **control_values: Any,
    ) -> Simulation:
        controls = ControlInputs(**control_values)
        return Simulation(custom_settings or settings, controls, initial_gas, initial_lattice, seed=seed)

    return factory
