"""
Snake entity for the game engine.
"""

from collections import deque
from typing import Iterable, List, Optional, Tuple

from .constants import INITIAL_HEADING, OPPOSITE_MOVES, VALID_MOVES
from .position import Position


class Snake:
    """
    Represents the player-controlled snake.

    Attributes:
        positions: deque of Position from head at index 0 to tail at the end
        heading: the direction used by the last advance()
        pending_heading: direction staged by input, committed on the next advance()
        pending_growth: when True the next advance() keeps the tail
    """

    def __init__(self, positions: Iterable[Tuple[int, int]], heading: str = INITIAL_HEADING):
        self.positions = deque(Position(*p) for p in positions)
        if not self.positions:
            raise ValueError("A snake needs at least one segment.")
        if heading not in VALID_MOVES:
            raise ValueError(f"Unknown heading: {heading}")
        self.heading = heading
        self.pending_heading: Optional[str] = None
        self.pending_growth = False

    @property
    def head(self) -> Position:
        """Return the head position (first element)."""
        return self.positions[0]

    @property
    def body(self) -> List[Position]:
        return list(self.positions)

    def __len__(self):
        return len(self.positions)

    def occupies(self, cell: Tuple[int, int]) -> bool:
        return Position(*cell) in self.positions

    def set_heading(self, direction: str) -> bool:
        """
        Stage a new heading for the next advance().

        A direction that reverses the current heading is ignored. Several
        calls between two advances collapse to the latest accepted one.
        Returns True when the direction was accepted.
        """
        if direction not in VALID_MOVES:
            raise ValueError(f"Unknown heading: {direction}")
        if direction == OPPOSITE_MOVES[self.heading]:
            return False
        self.pending_heading = direction
        return True

    def request_growth(self):
        # Boolean, not a counter: only one growth can be banked at a time.
        self.pending_growth = True

    def advance(self) -> Position:
        """
        Move one cell along the heading and return the new head.

        No bounds or collision checks happen here.
        """
        if self.pending_heading is not None:
            self.heading = self.pending_heading
            self.pending_heading = None

        new_head = self.head.shifted(self.heading)
        self.positions.appendleft(new_head)
        if self.pending_growth:
            self.pending_growth = False
        else:
            self.positions.pop()
        return new_head

    def hits_itself(self) -> bool:
        head = self.head
        return any(segment == head for segment in list(self.positions)[1:])

    def __repr__(self):
        return f"<Snake head={self.head} length={len(self)} heading={self.heading}>"
