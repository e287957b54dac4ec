"""
Headless runner for the CuO + H2 reduction engine.

Drives `Simulation.advance` at a fixed time step without pygame and records
the aggregate counts every `--every` ticks.

- `--out` writes the sampled counts as CSV (one row per sample).
- A JSON summary of the final counts is printed to stdout.
- Command-line overrides win over the values in `--config`.
"""

from __future__ import annotations

import argparse
import csv
import json
import logging
import pathlib
import sys
from dataclasses import asdict
from typing import Any, Dict, List, Optional

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from cuo_lab.config_loader import create_simulation, load_bundle_from_yaml  # noqa: E402
from cuo_sim import Simulation  # noqa: E402

logger = logging.getLogger("run_headless")

CSV_COLUMNS = [
    "step",
    "elapsed_s",
    "reactant_units",
    "product_units",
    "diatomic_remaining",
    "triatomic_produced",
    "reaction_events",
    "speed",
    "probability",
]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the reduction simulation without a window.")
    parser.add_argument(
        "--config",
        type=pathlib.Path,
        default=REPO_ROOT / "config" / "template.yaml",
        help="YAML scenario to load.",
    )
    parser.add_argument("--ticks", type=int, default=600, help="Number of ticks to simulate.")
    parser.add_argument("--dt", type=float, default=1.0 / 60.0, help="Seconds per tick.")
    parser.add_argument("--seed", type=int, default=None, help="Override the scenario seed.")
    parser.add_argument("--temperature", type=float, default=None, help="Temperature in °C.")
    parser.add_argument("--trap", action="store_true", help="Enable low-temperature trap mode.")
    parser.add_argument("--speed-level", type=int, default=None, help="Reaction-speed preset index.")
    parser.add_argument("--every", type=int, default=30, help="Sample counts every N ticks.")
    parser.add_argument(
        "--out",
        type=pathlib.Path,
        default=None,
        help="Optional CSV destination for the sampled counts.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log every reaction event.")
    return parser.parse_args(argv)


def build_simulation(args: argparse.Namespace) -> Simulation:
    bundle = load_bundle_from_yaml(args.config)
    if args.seed is not None:
        bundle.seed = args.seed
    if args.temperature is not None:
        bundle.controls.temperature_c = args.temperature
    if args.trap:
        bundle.controls.trap_mode = True
    if args.speed_level is not None:
        bundle.controls.speed_level = args.speed_level
    bundle.controls.paused = False
    return create_simulation(bundle)


def sample_row(simulation: Simulation) -> Dict[str, Any]:
    counts = simulation.counts()
    kinetics = simulation.last_kinetics
    return {
        "step": simulation.step_index,
        "elapsed_s": round(simulation.elapsed_s, 4),
        "reactant_units": counts.reactant_units,
        "product_units": counts.product_units,
        "diatomic_remaining": counts.diatomic_remaining,
        "triatomic_produced": counts.triatomic_produced,
        "reaction_events": counts.reaction_events,
        "speed": round(kinetics.speed, 4) if kinetics else None,
        "probability": round(kinetics.probability, 6) if kinetics else None,
    }


def trace_counts(simulation: Simulation, ticks: int, dt: float, every: int = 30) -> List[Dict[str, Any]]:
    every = max(1, every)
    rows = [sample_row(simulation)]
    for tick in range(1, ticks + 1):
        simulation.advance(dt)
        if tick % every == 0 or tick == ticks:
            rows.append(sample_row(simulation))
    return rows


def write_csv(rows: List[Dict[str, Any]], path: pathlib.Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        writer.writerows(rows)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    simulation = build_simulation(args)
    rows = trace_counts(simulation, args.ticks, args.dt, args.every)
    if args.out is not None:
        write_csv(rows, args.out)
        logger.info("Wrote %d samples to %s", len(rows), args.out)

    counts = simulation.counts()
    summary = {
        "ticks": args.ticks,
        "dt": args.dt,
        "temperature_c": simulation.controls.temperature_c,
        "trap_mode": simulation.controls.trap_mode,
        "counts": asdict(counts),
        "conserved": counts.is_conserved(),
    }
    print(json.dumps(summary, indent=2))  # noqa: T201 (informational)


if __name__ == "__main__":
    main()
