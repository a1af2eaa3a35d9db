"""
Domain entities for the AI snake game engine.

This module contains the core game entities that are independent of
infrastructure concerns (terminal, AI calls, etc.).
"""

from .constants import UP, DOWN, LEFT, RIGHT, VALID_MOVES, OPPOSITE_MOVES, MODE_LOCAL, MODE_AI
from .position import Position
from .snake import Snake
from .session import SessionState
from .game_state import GameState

__all__ = [
    'UP', 'DOWN', 'LEFT', 'RIGHT', 'VALID_MOVES', 'OPPOSITE_MOVES',
    'MODE_LOCAL', 'MODE_AI',
    'Position',
    'Snake',
    'SessionState',
    'GameState',
]
