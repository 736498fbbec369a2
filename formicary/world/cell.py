"""CellKind — classification of a single grid coordinate.

Cells carry no other state, so the world stores the enum member directly
rather than a per-cell object.
"""

from __future__ import annotations

from enum import Enum


class CellKind(Enum):
    """What occupies a grid coordinate."""

    EMPTY = "empty"
    FOOD = "food"
    TERRAIN = "terrain"

    @property
    def is_passable(self) -> bool:
        """Return True if an ant may step onto a cell of this kind."""
        return self is not CellKind.TERRAIN
