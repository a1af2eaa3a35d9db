"""
Tick-driven game loop for a single snake session.

The loop owns the snake, the session state and the apple. Keyboard events
arrive on the input listener thread and AI calls run on a single worker
thread; all reads and writes of shared state happen under one lock. The
tick itself waits for each AI reply it asks for, so the snake does not move
while a call is in flight.
"""

import logging
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from ai_gateway import AIGateway
from config import GameConfig
from domain.constants import (
    COLLISION_BOARD_FULL,
    COLLISION_BOUNDARY,
    COLLISION_SELF,
    GAME_MODES,
    MODE_AI,
)
from domain.game_state import GameState
from domain.position import Position
from domain.session import SessionState
from domain.snake import Snake
from input_listener import (
    DIRECTION_CHANGED,
    EXIT_REQUESTED,
    PAUSE_TOGGLED,
    InputEvent,
    InputListener,
)
from response_extractor import parse_position
from terminal.base import KeySource, Renderer

logger = logging.getLogger(__name__)

# Session phases
STARTING = "starting"
RUNNING = "running"
PAUSED = "paused"
ENDED = "ended"
EXITED = "exited"


class SnakeGame:
    """
    Manages:
      - Board (width, height)
      - Snake and apple
      - Score, survival clock and pause
      - AI text at start, on each apple and at the end
    """

    def __init__(
        self,
        mode: str,
        gateway: AIGateway,
        renderer: Renderer,
        key_source: KeySource,
        config: Optional[GameConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ):
        if mode not in GAME_MODES:
            raise ValueError(f"Unknown game mode '{mode}'. Expected one of: {sorted(GAME_MODES)}")

        self.mode = mode
        self.config = config or GameConfig()
        self.width = self.config.width
        self.height = self.config.height
        self.gateway = gateway
        self.renderer = renderer
        self.key_source = key_source

        self.lock = threading.RLock()
        self.snake = Snake([self.config.spawn], heading=self.config.heading)
        self.session = SessionState(clock=clock)
        self.food: Optional[Position] = None
        self.exit_requested = False
        self._phase = STARTING

        self._sleep = sleep
        self._rng = rng or random.Random()
        # One worker: never more than one AI request outstanding
        self._ai_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ai-call")

        self.listener = InputListener(key_source, poll_seconds=self.config.poll_seconds)
        self.listener.subscribe(DIRECTION_CHANGED, self.handle_direction)
        self.listener.subscribe(PAUSE_TOGGLED, self.handle_pause)
        self.listener.subscribe(EXIT_REQUESTED, self.handle_exit)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def phase(self) -> str:
        with self.lock:
            if self._phase == RUNNING and self.session.paused:
                return PAUSED
            return self._phase

    def get_current_state(self) -> GameState:
        """
        Return a snapshot of the current board as a GameState.
        """
        with self.lock:
            return GameState(
                snake_positions=[tuple(p) for p in self.snake.positions],
                food=tuple(self.food) if self.food is not None else None,
                width=self.width,
                height=self.height,
                score=self.session.score,
                survival_time=self.session.survival_time,
                max_length=self.session.max_length,
                last_ai_message=self.session.last_ai_message,
                paused=self.session.paused,
            )

    # ------------------------------------------------------------------
    # Input handlers (run on the listener thread)
    # ------------------------------------------------------------------

    def handle_direction(self, event: InputEvent):
        with self.lock:
            self.snake.set_heading(event.direction)

    def handle_pause(self, event: InputEvent):
        with self.lock:
            paused = self.session.toggle_pause()
            logger.info("Game paused" if paused else "Game resumed")
            self.renderer.render_frame(self.get_current_state())

    def handle_exit(self, event: InputEvent):
        with self.lock:
            self.exit_requested = True

    # ------------------------------------------------------------------
    # Apple placement
    # ------------------------------------------------------------------

    def is_valid_food(self, cell: Optional[Position]) -> bool:
        if cell is None:
            return False
        return cell.in_bounds(self.width, self.height) and not self.snake.occupies(cell)

    def _free_cells(self) -> List[Position]:
        occupied = set(self.snake.positions)
        return [
            Position(x, y)
            for x in range(1, self.width)
            for y in range(1, self.height)
            if Position(x, y) not in occupied
        ]

    def _random_free_cell(self) -> Optional[Position]:
        """
        Return a random in-bounds cell not occupied by the snake, or None
        when the snake covers the whole board.
        """
        free = self._free_cells()
        if not free:
            return None
        return self._rng.choice(free)

    def _await_ai(self, call: Callable[..., Any], *args) -> Any:
        return self._ai_executor.submit(call, *args).result()

    def generate_food(self) -> bool:
        """
        Place a new apple. In AI mode the suggested cell is used when it is
        valid; otherwise a random free cell is chosen. Returns False when no
        free cell exists.
        """
        if self.mode == MODE_AI:
            with self.lock:
                body = [tuple(p) for p in self.snake.positions]
            reply = self._await_ai(self.gateway.place_item, body, self.width, self.height)
            candidate = parse_position(reply)
            with self.lock:
                if self.is_valid_food(candidate):
                    self.food = candidate
                    logger.debug(f"Apple placed by AI at {candidate}")
                    return True
            logger.info(f"AI placement unusable ({reply[:40]!r}), falling back to random placement")

        with self.lock:
            cell = self._random_free_cell()
            if cell is None:
                logger.warning("No free cell left for the apple")
                return False
            self.food = cell
            return True

    # ------------------------------------------------------------------
    # Collisions
    # ------------------------------------------------------------------

    def check_collision(self) -> Optional[str]:
        """
        Return the collision cause for the current head, or None.
        The wall row/column counts as out of bounds.
        """
        with self.lock:
            if not self.snake.head.in_bounds(self.width, self.height):
                return COLLISION_BOUNDARY
            if self.snake.hits_itself():
                return COLLISION_SELF
            return None

    def end_game(self, reason: str):
        with self.lock:
            if self.session.record_collision(reason):
                logger.info(f"Game Over: {reason}")
            self._phase = ENDED

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def setup(self) -> bool:
        """
        Place the first apple, start input polling and fetch the welcome line.
        Returns False if the board has no room for an apple.
        """
        self.listener.start()

        if not self.generate_food():
            self.end_game(COLLISION_BOARD_FULL)
            return False

        welcome = self._await_ai(self.gateway.welcome, self.mode)
        with self.lock:
            self.session.set_ai_message(welcome)
            self.session.start()
            self._phase = RUNNING
        logger.info(f"Session started in {self.mode} mode, apple at {self.food}")
        return True

    def tick(self) -> Optional[str]:
        """
        Run one step of the game. Returns ENDED or EXITED when the session
        is over, None otherwise.
        """
        with self.lock:
            self.session.survival_time = self.session.compute_survival_seconds()
            self.renderer.render_frame(self.get_current_state())

            if self.listener.failed and not self.exit_requested:
                logger.warning("Keyboard input was lost, leaving the session")
                self.exit_requested = True

            if self.exit_requested:
                self._phase = EXITED
                return EXITED

            if self.session.paused:
                return None

            self.snake.advance()
            ate = self.snake.head == self.food
            if ate:
                self.session.add_point()
                self.snake.request_growth()
                # Growth is banked, the tail stays on the next advance
                self.session.update_max_length(len(self.snake) + 1)
                score = self.session.score
                elapsed = self.session.compute_survival_seconds()
                head = tuple(self.snake.head)

        if ate:
            message = self._await_ai(self.gateway.on_consume, score, elapsed, head)
            with self.lock:
                self.session.set_ai_message(message)
                self.renderer.render_ai_line(self.get_current_state())
            if not self.generate_food():
                self.end_game(COLLISION_BOARD_FULL)
                return ENDED

        reason = self.check_collision()
        if reason is not None:
            self.end_game(reason)
            return ENDED
        return None

    def run(self) -> Dict[str, Any]:
        """
        Play the session to completion and return its result summary.
        """
        try:
            outcome = ENDED
            if self.setup():
                outcome = None
                while outcome is None:
                    outcome = self.tick()
                    if outcome is None:
                        self._sleep(self.config.tick_seconds)

            self.listener.stop()
            if outcome == EXITED:
                logger.info("Session left by player request")
                return self.build_result(EXITED)
            return self.finish()
        finally:
            self.listener.stop()
            self._ai_executor.shutdown(wait=False)

    def finish(self) -> Dict[str, Any]:
        """
        Fetch the coach summary, show the final record and wait for a key.
        """
        with self.lock:
            self._phase = ENDED
            self.session.survival_time = self.session.compute_survival_seconds()
            score = self.session.score
            survival = self.session.survival_time
            max_length = self.session.max_length
            reason = self.session.collision_reason

        summary = self._await_ai(self.gateway.summarize, score, survival, max_length, reason)
        result = self.build_result(ENDED, summary)
        with self.lock:
            self.renderer.show_summary(result)
        self.key_source.wait_for_key()
        return result

    def build_result(self, outcome: str, summary: Optional[str] = None) -> Dict[str, Any]:
        with self.lock:
            return {
                "outcome": outcome,
                "mode": self.mode,
                "final_score": self.session.score,
                "survival_seconds": self.session.survival_time,
                "max_length": self.session.max_length,
                "collision_reason": self.session.collision_reason,
                "summary": summary,
            }

    def __repr__(self):
        return f"<SnakeGame mode={self.mode}, phase={self.phase}, {self.session!r}>"
