"""World grid — the unbounded spatial container for the simulation.

Cells are materialised lazily: the first query for a coordinate rolls its
kind from the configured densities and stores it, so memory grows only with
the coordinates ants (or the renderer) actually visit.  Once rolled, a
cell's kind is stable; the only transitions are food being eaten and food
being force-spawned.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from numpy.random import Generator

from formicary.world.cell import CellKind

# Orthogonal neighbour offsets in scan order: up, down, left, right.
ORTHOGONAL_OFFSETS: tuple[tuple[int, int], ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))


@dataclass
class World:
    """A sparse, effectively infinite 2D grid.

    Attributes:
        food_density: Probability that a fresh cell is food.
        terrain_density: Probability that a fresh cell is terrain.
        rng: Random generator used to roll fresh cells.
        cells: Materialised cells keyed by ``(x, y)``.
    """

    food_density: float
    terrain_density: float
    rng: Generator = field(repr=False)
    cells: dict[tuple[int, int], CellKind] = field(default_factory=dict, repr=False)

    def __len__(self) -> int:
        return len(self.cells)

    def __contains__(self, pos: object) -> bool:
        return pos in self.cells

    def classify(self, x: int, y: int) -> CellKind:
        """Return the kind of the cell at ``(x, y)``, generating it if unseen.

        Args:
            x: Column coordinate (any integer).
            y: Row coordinate (any integer).

        Returns:
            The cell's kind.  Repeated calls return the same value unless
            the cell was eaten or force-set in between.
        """
        key = (x, y)
        kind = self.cells.get(key)
        if kind is None:
            kind = self._roll()
            self.cells[key] = kind
        return kind

    def consume_food(self, x: int, y: int) -> bool:
        """Turn a food cell into an empty one.

        Returns:
            True if food was consumed, False if the cell held none.
        """
        if self.classify(x, y) is not CellKind.FOOD:
            return False
        self.cells[(x, y)] = CellKind.EMPTY
        return True

    def set_food(self, x: int, y: int) -> None:
        """Force the cell at ``(x, y)`` to hold food, whatever it was."""
        self.cells[(x, y)] = CellKind.FOOD

    def _roll(self) -> CellKind:
        r = float(self.rng.random())
        if r < self.food_density:
            return CellKind.FOOD
        if r < self.food_density + self.terrain_density:
            return CellKind.TERRAIN
        return CellKind.EMPTY
