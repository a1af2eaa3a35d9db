"""
Session state: score, pause-aware survival clock and the last AI line.
"""

import math
import time
from typing import Callable, Optional


class SessionState:
    """
    Mutable per-session bookkeeping owned by the game loop.

    Attributes:
        score: apples eaten so far (never decreases)
        max_length: longest snake seen during the session
        survival_time: last computed survival seconds, refreshed every tick
        paused: whether the game is currently paused
        collision_reason: why the session ended, set at most once
        last_ai_message: persistent AI line, overwritten at each trigger point
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.score = 0
        self.max_length = 1
        self.survival_time = 0
        self.start_time = clock()
        self.paused = False
        self.pause_start: Optional[float] = None
        self.paused_total = 0.0
        self.collision_reason: Optional[str] = None
        self.last_ai_message = ""

    def start(self):
        """Restart the survival clock, e.g. once setup has finished."""
        self.start_time = self._clock()
        self.paused_total = 0.0
        self.pause_start = self.start_time if self.paused else None

    def toggle_pause(self) -> bool:
        """Flip the pause flag and return the new value."""
        now = self._clock()
        self.paused = not self.paused
        if self.paused:
            self.pause_start = now
        elif self.pause_start is not None:
            self.paused_total += now - self.pause_start
            self.pause_start = None
        return self.paused

    def compute_survival_seconds(self) -> int:
        # While paused the clock is read at the moment the pause began.
        now = self.pause_start if self.paused and self.pause_start is not None else self._clock()
        elapsed = now - self.start_time - self.paused_total
        return max(0, math.floor(elapsed))

    def record_collision(self, reason: str) -> bool:
        """Store the end-of-session cause. Only the first call has any effect."""
        if self.collision_reason is not None:
            return False
        self.collision_reason = reason
        return True

    def add_point(self):
        self.score += 1

    def update_max_length(self, length: int):
        self.max_length = max(self.max_length, length)

    def set_ai_message(self, text: Optional[str]):
        self.last_ai_message = text or ""

    def __repr__(self):
        return (
            f"<SessionState score={self.score}, max_length={self.max_length}, "
            f"paused={self.paused}, collision={self.collision_reason}>"
        )
