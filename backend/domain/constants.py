"""
Game constants for the AI snake game.
"""

# Movement directions
UP = "UP"
DOWN = "DOWN"
LEFT = "LEFT"
RIGHT = "RIGHT"
VALID_MOVES = {UP, DOWN, LEFT, RIGHT}

# Screen coordinates: y grows downwards
DIRECTION_DELTAS = {
    UP: (0, -1),
    DOWN: (0, 1),
    LEFT: (-1, 0),
    RIGHT: (1, 0),
}

OPPOSITE_MOVES = {
    UP: DOWN,
    DOWN: UP,
    LEFT: RIGHT,
    RIGHT: LEFT,
}

# Board settings (the border row/column is not playable)
BOARD_WIDTH = 20
BOARD_HEIGHT = 20
SPAWN_CELL = (10, 10)
INITIAL_HEADING = RIGHT
TICK_SECONDS = 0.12
INPUT_POLL_SECONDS = 0.008

# Session modes
MODE_LOCAL = "Local"
MODE_AI = "AI"
GAME_MODES = {MODE_LOCAL, MODE_AI}

# Collision causes
COLLISION_BOUNDARY = "boundary"
COLLISION_SELF = "self"
COLLISION_BOARD_FULL = "board_full"

COLLISION_LABELS = {
    COLLISION_BOUNDARY: "撞到边界",
    COLLISION_SELF: "撞到自己",
    COLLISION_BOARD_FULL: "蛇身填满棋盘",
}

# Fixed sentences shown when the AI reply is missing or unusable
DEFAULT_AI_LINE = "开始游戏吧！"
WELCOME_UNAVAILABLE = "[AI 暂不可用]"
ON_CONSUME_FAILED = "[AI 互动失败]"
SUMMARY_FAILED_PREFIX = "AI 复盘失败："
