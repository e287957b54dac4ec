"""Tests for contact detection and the stochastic reaction rule."""

from __future__ import annotations

import random

import pytest

from cuo_sim import GasKind, GasParticle, LatticeUnit, SiteKind, Simulation


class FixedRandom(random.Random):
    """Returns the same draw every time and counts how often it was asked."""

    def __init__(self, value: float):
        super().__init__(0)
        self.value = value
        self.draws = 0

    def random(self) -> float:
        self.draws += 1
        return self.value


def empty_simulation(make_simulation, draw: float) -> Simulation:
    sim = make_simulation(initial_gas=0, initial_lattice=0)
    sim.random = FixedRandom(draw)
    return sim


def h2(x: float, y: float, vx: float = 0.4, vy: float = 0.7) -> GasParticle:
    return GasParticle(kind=GasKind.DIATOMIC, x=x, y=y, vx=vx, vy=vy, radius=18.0)


def test_successful_draw_converts_site_and_emits_water(make_simulation) -> None:
    sim = empty_simulation(make_simulation, draw=0.0)
    unit = LatticeUnit(x=450.0, y=582.0, exposed=True)
    sim.lattice = [unit]
    sim.diatomic = [h2(450.0, 552.0)]
    sim.initial_diatomic = sim.initial_lattice = 1

    assert sim.run_reactions(0.5) == 1

    assert unit.kind is SiteKind.PRODUCT
    assert sim.diatomic == []
    assert sim.reaction_events == 1
    assert len(sim.triatomic) == 1
    water = sim.triatomic[0]
    assert water.kind is GasKind.TRIATOMIC
    assert water.radius > 18.0
    assert water.position == pytest.approx((440.0, 562.0))
    assert sim.counts().is_conserved()


def test_failed_draw_bounces_without_reacting(make_simulation) -> None:
    sim = empty_simulation(make_simulation, draw=0.99)
    unit = LatticeUnit(x=450.0, y=582.0, exposed=True)
    sim.lattice = [unit]
    gas = h2(450.0, 552.0, vx=0.4, vy=0.7)
    sim.diatomic = [gas]

    assert sim.run_reactions(0.5) == 0

    assert unit.kind is SiteKind.REACTANT
    assert (gas.vx, gas.vy) == (-0.4, -0.7)
    assert sim.diatomic == [gas]
    assert sim.reaction_events == 0


def test_out_of_range_gas_is_untouched(make_simulation) -> None:
    sim = empty_simulation(make_simulation, draw=0.0)
    sim.lattice = [LatticeUnit(x=450.0, y=582.0, exposed=True)]
    threshold = sim.settings.contact_threshold(18.0)
    gas = h2(450.0, 582.0 - threshold - 0.5)
    sim.diatomic = [gas]

    assert sim.run_reactions(0.85) == 0
    assert (gas.vx, gas.vy) == (0.4, 0.7)
    assert sim.random.draws == 0


def test_product_sites_are_ignored(make_simulation) -> None:
    sim = empty_simulation(make_simulation, draw=0.0)
    unit = LatticeUnit(x=450.0, y=582.0, kind=SiteKind.PRODUCT, exposed=True)
    sim.lattice = [unit]
    gas = h2(450.0, 560.0)
    sim.diatomic = [gas]

    assert sim.run_reactions(0.85) == 0
    assert (gas.vx, gas.vy) == (0.4, 0.7)


def test_only_first_passing_site_reacts(make_simulation) -> None:
    sim = empty_simulation(make_simulation, draw=0.0)
    first = LatticeUnit(x=440.0, y=582.0, exposed=True)
    second = LatticeUnit(x=470.0, y=582.0, exposed=True)
    sim.lattice = [first, second]
    sim.diatomic = [h2(455.0, 570.0)]

    assert sim.run_reactions(0.5) == 1
    assert first.kind is SiteKind.PRODUCT
    assert second.kind is SiteKind.REACTANT
    assert sim.random.draws == 1 + 3  # one reaction draw, three for the water spawn


def test_failed_draws_keep_scanning_and_bounce_each_time(make_simulation) -> None:
    sim = empty_simulation(make_simulation, draw=0.99)
    sim.lattice = [
        LatticeUnit(x=440.0, y=582.0, exposed=True),
        LatticeUnit(x=470.0, y=582.0, exposed=True),
    ]
    gas = h2(455.0, 570.0, vx=0.4, vy=0.7)
    sim.diatomic = [gas]

    sim.run_reactions(0.5)

    assert sim.random.draws == 2
    # Two bounces cancel out.
    assert (gas.vx, gas.vy) == (0.4, 0.7)


def test_surface_sites_get_boosted_probability(make_simulation) -> None:
    sim = empty_simulation(make_simulation, draw=0.4)
    buried = LatticeUnit(x=450.0, y=582.0, exposed=False)
    sim.lattice = [buried]
    sim.diatomic = [h2(450.0, 560.0)]
    assert sim.run_reactions(0.3) == 0
    assert buried.kind is SiteKind.REACTANT

    exposed = LatticeUnit(x=450.0, y=582.0, exposed=True)
    sim.lattice = [exposed]
    assert sim.run_reactions(0.3) == 1
    assert exposed.kind is SiteKind.PRODUCT


def test_surface_boost_never_exceeds_cap(make_simulation) -> None:
    sim = empty_simulation(make_simulation, draw=0.86)
    unit = LatticeUnit(x=450.0, y=582.0, exposed=True)
    sim.lattice = [unit]
    sim.diatomic = [h2(450.0, 560.0)]
    assert sim.run_reactions(0.8) == 0
    assert unit.kind is SiteKind.REACTANT


def test_each_gas_reacts_at_most_once_per_tick(make_simulation) -> None:
    sim = empty_simulation(make_simulation, draw=0.0)
    sim.lattice = [LatticeUnit(x=300.0 + 40.0 * i, y=582.0, exposed=True) for i in range(3)]
    sim.diatomic = [h2(300.0, 560.0), h2(390.0, 560.0)]

    assert sim.run_reactions(0.5) == 2
    kinds = [unit.kind for unit in sim.lattice]
    assert kinds.count(SiteKind.PRODUCT) == 2
    assert sim.reaction_events == 2
    assert len(sim.triatomic) == 2
    assert sim.diatomic == []
