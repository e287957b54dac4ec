"""Atomic radii and formula metadata for the CuO + H2 reduction."""

from __future__ import annotations

from dataclasses import dataclass

FORMULA_LABELS = {
    "reactant_site": "CuO",
    "product_site": "Cu",
    "diatomic_gas": "H2",
    "triatomic_gas": "H2O",
}

ELEMENT_NAMES = {
    "H": "hydrogen",
    "O": "oxygen",
    "Cu": "copper",
}


@dataclass(frozen=True)
class AtomRadii:
    """Drawing radii (pixels) for the three elements in the reaction."""

    hydrogen: float = 6.0
    oxygen: float = 8.0
    copper: float = 10.0

    def get(self, symbol: str) -> float:
        name = ELEMENT_NAMES.get(symbol)
        if name is None:
            raise ValueError(f"Unknown element symbol: {symbol!r}")
        return getattr(self, name)


def diatomic_envelope_radius(radii: AtomRadii, margin: float = 6.0) -> float:
    """Contact radius of an H2 molecule: two H atoms side by side plus margin."""

    return radii.hydrogen * 2 + margin


def triatomic_envelope_radius(radii: AtomRadii, margin: float = 6.0) -> float:
    """Contact radius of an H2O molecule (one O flanked by two H)."""

    return radii.oxygen + radii.hydrogen * 2 + margin


def lattice_site_radius(radii: AtomRadii) -> float:
    return max(radii.copper, radii.oxygen)


def unit_bond_span(radii: AtomRadii) -> float:
    """Minimum spacing that keeps the Cu and O atoms of two units apart."""

    return radii.copper + radii.oxygen
