"""Runner — caller-side tick counter and periodic world events.

The Simulation itself has no notion of elapsed time.  Whoever drives it
(the Pygame viewer, the headless CLI, a test) owns a Runner, which counts
ticks and drops fresh food into the region the caller is looking at every
``food_spawn_interval`` ticks.  Pausing is simply not calling ``advance``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from numpy.random import Generator

    from formicary.simulation.engine import Simulation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Viewport:
    """A rectangle of grid cells, usually what is on screen.

    Attributes:
        left: Leftmost column.
        top: Topmost row.
        width: Number of columns (>= 1).
        height: Number of rows (>= 1).
    """

    left: int
    top: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            msg = f"viewport must be at least 1x1, got {self.width}x{self.height}"
            raise ValueError(msg)

    @classmethod
    def centred(cls, cx: int, cy: int, radius: int) -> Viewport:
        """Square viewport spanning ``radius`` cells either side of a centre."""
        return cls(
            left=cx - radius,
            top=cy - radius,
            width=2 * radius + 1,
            height=2 * radius + 1,
        )


def spawn_food(
    simulation: Simulation,
    viewport: Viewport,
    count: int,
    rng: Generator,
) -> list[tuple[int, int]]:
    """Force ``count`` random cells inside ``viewport`` to hold food.

    Returns:
        The coordinates that were set (duplicates possible).
    """
    placed: list[tuple[int, int]] = []
    for _ in range(count):
        x = viewport.left + int(rng.integers(viewport.width))
        y = viewport.top + int(rng.integers(viewport.height))
        simulation.set_food(x, y)
        placed.append((x, y))
    return placed


@dataclass
class Runner:
    """Drives a Simulation and fires periodic food spawns.

    Attributes:
        simulation: The simulation being advanced.
        tick_count: Ticks advanced through this runner.
    """

    simulation: Simulation
    tick_count: int = 0

    def advance(self, viewport: Viewport) -> None:
        """Tick once; spawn food into ``viewport`` when the interval elapses."""
        self.simulation.tick()
        self.tick_count += 1
        config = self.simulation.config
        if self.tick_count % config.food_spawn_interval == 0:
            placed = spawn_food(
                self.simulation,
                viewport,
                config.food_spawn_count,
                self.simulation.rng,
            )
            logger.debug(f"Tick {self.tick_count}: spawned food at {placed}")

    def run(self, ticks: int, viewport: Viewport) -> None:
        """Advance a fixed number of ticks against a fixed viewport."""
        for _ in range(ticks):
            self.advance(viewport)
