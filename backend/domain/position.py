"""
Position value type for the game grid.
"""

from typing import NamedTuple

from .constants import DIRECTION_DELTAS


class Position(NamedTuple):
    """An (x, y) cell on the board. Equal coordinates mean equal positions."""

    x: int
    y: int

    def shifted(self, direction: str) -> "Position":
        """Return the neighbouring cell one step along ``direction``."""
        dx, dy = DIRECTION_DELTAS[direction]
        return Position(self.x + dx, self.y + dy)

    def in_bounds(self, width: int, height: int) -> bool:
        """
        True when the cell lies strictly inside the border.

        Row/column 0 and row/column ``width``/``height`` are the wall.
        """
        return 0 < self.x < width and 0 < self.y < height

    def __str__(self):
        return f"({self.x},{self.y})"
