"""
GameState entity - a read-only snapshot of the game handed to the renderer.
"""

from typing import List, Optional, Tuple


class GameState:
    """
    A snapshot of the game at a specific point in time.

    Attributes:
        snake_positions: list of (x, y) from head to tail
        food: (x, y) of the apple, or None before the first placement
        width, height: board dimensions including the border
        score: apples eaten
        survival_time: pause-excluded seconds survived
        max_length: longest snake seen so far
        last_ai_message: the persistent AI line
        paused: whether the game is paused
    """

    def __init__(
        self,
        snake_positions: List[Tuple[int, int]],
        food: Optional[Tuple[int, int]],
        width: int,
        height: int,
        score: int,
        survival_time: int,
        max_length: int,
        last_ai_message: str = "",
        paused: bool = False,
    ):
        self.snake_positions = snake_positions
        self.food = food
        self.width = width
        self.height = height
        self.score = score
        self.survival_time = survival_time
        self.max_length = max_length
        self.last_ai_message = last_ai_message
        self.paused = paused

    def print_board(self) -> str:
        """
        Returns a string representation of the board with:
        # = wall
        ● = apple
        ■ = snake segment
        Screen coordinates: (0,0) is the top-left wall corner.
        """
        board = [[' ' for _ in range(self.width + 1)] for _ in range(self.height + 1)]

        for x in range(self.width + 1):
            board[0][x] = '#'
            board[self.height][x] = '#'
        for y in range(1, self.height):
            board[y][0] = '#'
            board[y][self.width] = '#'

        if self.food is not None:
            fx, fy = self.food
            if 0 < fx < self.width and 0 < fy < self.height:
                board[fy][fx] = '●'

        # Segments that left the board are not drawn
        for x, y in self.snake_positions:
            if 0 < x < self.width and 0 < y < self.height:
                board[y][x] = '■'

        return "\n".join("".join(row) for row in board)

    def status_line(self) -> str:
        return f"Score: {self.score}   Time: {self.survival_time}s   MaxLen: {self.max_length}"

    def __repr__(self):
        return (
            f"<GameState score={self.score}, food={self.food}, "
            f"length={len(self.snake_positions)}, paused={self.paused}>"
        )
