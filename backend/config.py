"""
Runtime configuration for the snake game, read from the environment.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv

from domain.constants import (
    BOARD_WIDTH, BOARD_HEIGHT, SPAWN_CELL, INITIAL_HEADING,
    TICK_SECONDS, INPUT_POLL_SECONDS,
)
from llm_providers import DEFAULT_BASE_URL, DEFAULT_MODEL, DEFAULT_TIMEOUT, _sanitize_env_value

load_dotenv()


@dataclass
class GameConfig:
    width: int = BOARD_WIDTH
    height: int = BOARD_HEIGHT
    spawn: Tuple[int, int] = SPAWN_CELL
    heading: str = INITIAL_HEADING
    tick_seconds: float = TICK_SECONDS
    poll_seconds: float = INPUT_POLL_SECONDS

    def __post_init__(self):
        # Need at least one playable cell inside the border
        if self.width < 2 or self.height < 2:
            raise ValueError(f"Board must be at least 2x2, got {self.width}x{self.height}")
        sx, sy = self.spawn
        if not (0 < sx < self.width and 0 < sy < self.height):
            # Small boards: spawn in the middle instead
            self.spawn = (max(1, self.width // 2), max(1, self.height // 2))


@dataclass
class AIConfig:
    api_key: Optional[str] = field(default=None, repr=False)
    base_url: str = DEFAULT_BASE_URL
    model_name: str = DEFAULT_MODEL
    transport: str = 'openai'
    timeout: float = DEFAULT_TIMEOUT

    def as_dict(self) -> Dict[str, Any]:
        return {
            'api_key': self.api_key,
            'base_url': self.base_url,
            'model_name': self.model_name,
            'transport': self.transport,
            'timeout': self.timeout,
        }


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = _sanitize_env_value(os.getenv(name))
    return value if value else default


def load_ai_config() -> AIConfig:
    """Build the AI settings from SNAKE_AI_* environment variables."""
    timeout_raw = _env("SNAKE_AI_TIMEOUT")
    try:
        timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT
    except ValueError:
        raise ValueError(f"SNAKE_AI_TIMEOUT must be a number, got {timeout_raw!r}") from None

    return AIConfig(
        api_key=_env("SNAKE_AI_API_KEY"),
        base_url=_env("SNAKE_AI_BASE_URL", DEFAULT_BASE_URL),
        model_name=_env("SNAKE_AI_MODEL", DEFAULT_MODEL),
        transport=_env("SNAKE_AI_TRANSPORT", 'openai').lower(),
        timeout=timeout,
    )


def load_log_settings() -> Dict[str, str]:
    return {
        'file': _env("SNAKE_LOG_FILE", "snake_ai.log"),
        'level': _env("SNAKE_LOG_LEVEL", "INFO").upper(),
    }
