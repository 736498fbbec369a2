"""Entry point for ``python -m formicary``.

Loads the default YAML config, optionally an adopted genome, and either
opens a Pygame window or runs a fixed number of ticks headless.
"""

from __future__ import annotations

import argparse
import logging
import pathlib

import yaml

from formicary.brain.genome import Genome
from formicary.simulation.config import SimulationConfig
from formicary.simulation.engine import Simulation
from formicary.simulation.runner import Runner, Viewport

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)


def load_genome(path: pathlib.Path) -> Genome:
    """Read a genome saved by the viewer (or any ``Genome.to_dict`` dump)."""
    with path.open("r") as f:
        return Genome.from_dict(yaml.safe_load(f) or {})


def main() -> None:
    """Parse CLI args, create simulation, launch renderer or headless run."""
    parser = argparse.ArgumentParser(
        prog="formicary",
        description="Formicary - neural ant artificial-life simulator",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "-g",
        "--genome",
        type=pathlib.Path,
        default=None,
        help="YAML genome to seed the initial population with",
    )
    parser.add_argument(
        "--cell-size",
        type=int,
        default=10,
        help="Pixel size per grid cell (default: 10)",
    )
    parser.add_argument(
        "--fps",
        type=int,
        default=30,
        help="Target frames per second (default: 30)",
    )
    parser.add_argument(
        "--speed",
        type=float,
        default=30.0,
        help="Simulation ticks per second (default: 30)",
    )
    parser.add_argument(
        "--headless",
        type=int,
        metavar="TICKS",
        default=None,
        help="Run TICKS ticks without a window and print population stats",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = SimulationConfig.from_yaml(args.config)
    seed_genome = load_genome(args.genome) if args.genome is not None else None

    if args.headless is not None:
        runner = Runner(Simulation(config=config, seed_genome=seed_genome))
        runner.run(args.headless, Viewport.centred(0, 0, config.spawn_radius))
        counts = runner.simulation.stage_counts()
        summary = ", ".join(f"{s.name.lower()}={n}" for s, n in counts.items())
        print(f"tick={runner.tick_count} population={len(runner.simulation.ants)} {summary}")
        return

    from formicary.ui.pygame_client import PygameRenderer

    renderer = PygameRenderer(
        config=config,
        seed_genome=seed_genome,
        cell_size=args.cell_size,
        ticks_per_second=args.speed,
    )
    renderer.run(fps=args.fps)


if __name__ == "__main__":
    main()
