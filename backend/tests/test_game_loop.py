"""
Tests for game_loop.SnakeGame - the tick-driven session coordinator.

Collaborators (gateway, renderer, keyboard) are replaced with in-memory
doubles so ticks can be driven one at a time.
"""

import os
import random
import sys
import threading

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import GameConfig  # noqa: E402
from domain.constants import (  # noqa: E402
    COLLISION_BOARD_FULL,
    COLLISION_BOUNDARY,
    COLLISION_SELF,
    DOWN,
    LEFT,
    MODE_AI,
    MODE_LOCAL,
    RIGHT,
    UP,
)
from domain.game_state import GameState  # noqa: E402
from domain.position import Position  # noqa: E402
from domain.snake import Snake  # noqa: E402
from game_loop import ENDED, EXITED, PAUSED, RUNNING, STARTING, SnakeGame  # noqa: E402
from input_listener import DIRECTION_CHANGED, EXIT_REQUESTED, PAUSE_TOGGLED, InputEvent  # noqa: E402
from terminal.base import KeySource, Renderer  # noqa: E402


class FakeClock:
    def __init__(self, start: float = 500.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeGateway:
    """Scripted AIGateway double that records every call and its thread."""

    def __init__(self, placements=None, welcome="欢迎", on_consume="吃得好", summary="本局总结"):
        self.placements = list(placements or [])
        self.welcome_text = welcome
        self.on_consume_text = on_consume
        self.summary_text = summary
        self.calls = []
        self.threads = []

    def _record(self, name, *args):
        self.calls.append((name, args))
        self.threads.append(threading.current_thread().name)

    def welcome(self, mode):
        self._record("welcome", mode)
        return self.welcome_text

    def on_consume(self, score, elapsed, head):
        self._record("on_consume", score, elapsed, head)
        return self.on_consume_text

    def place_item(self, body, width, height):
        self._record("place_item", body, width, height)
        return self.placements.pop(0) if self.placements else ""

    def summarize(self, score, survival, max_length, reason):
        self._record("summarize", score, survival, max_length, reason)
        return self.summary_text

    def names(self):
        return [name for name, _ in self.calls]


class RecordingRenderer(Renderer):
    def __init__(self):
        self.frames = []
        self.ai_lines = []
        self.summaries = []

    def render_frame(self, state: GameState):
        self.frames.append(state)

    def render_ai_line(self, state: GameState):
        self.ai_lines.append(state.last_ai_message)

    def show_summary(self, record):
        self.summaries.append(record)


class SilentKeySource(KeySource):
    def __init__(self):
        self.acknowledged = 0

    def read_key(self, timeout=0):
        return None

    def wait_for_key(self):
        self.acknowledged += 1
        return " "


class ScriptedKeySource(SilentKeySource):
    def __init__(self, *keys):
        super().__init__()
        self.keys = list(keys)

    def read_key(self, timeout=0):
        return self.keys.pop(0) if self.keys else None


@pytest.fixture
def make_game():
    games = []

    def factory(mode=MODE_LOCAL, gateway=None, width=10, height=10, spawn=(5, 5), heading=RIGHT, clock=None,
                key_source=None):
        config = GameConfig(width=width, height=height, spawn=spawn, heading=heading,
                            tick_seconds=0, poll_seconds=0.001)
        game = SnakeGame(
            mode=mode,
            gateway=gateway or FakeGateway(),
            renderer=RecordingRenderer(),
            key_source=key_source or SilentKeySource(),
            config=config,
            clock=clock or FakeClock(),
            sleep=lambda seconds: None,
            rng=random.Random(7),
        )
        games.append(game)
        return game

    yield factory

    for game in games:
        game.listener.stop()
        game._ai_executor.shutdown(wait=True)


class TestSetup:
    def test_unknown_mode_raises(self):
        with pytest.raises(ValueError):
            SnakeGame(mode="Hard", gateway=FakeGateway(), renderer=RecordingRenderer(),
                      key_source=SilentKeySource())

    def test_setup_places_food_and_shows_welcome(self, make_game):
        gateway = FakeGateway(welcome="准备好了")
        game = make_game(gateway=gateway)
        assert game.phase == STARTING

        assert game.setup() is True

        assert game.phase == RUNNING
        assert game.is_valid_food(game.food)
        assert game.session.last_ai_message == "准备好了"
        assert gateway.names() == ["welcome"]
        assert gateway.calls[0][1] == (MODE_LOCAL,)

    def test_ai_calls_run_off_the_tick_thread(self, make_game):
        gateway = FakeGateway()
        game = make_game(gateway=gateway)
        game.setup()
        assert gateway.threads[0].startswith("ai-call")
        assert gateway.threads[0] != threading.current_thread().name

    def test_board_without_free_cells_ends_session(self, make_game):
        game = make_game(width=2, height=2, spawn=(1, 1))
        assert game.setup() is False
        assert game.phase == ENDED
        assert game.session.collision_reason == COLLISION_BOARD_FULL
        assert game.food is None


class TestFoodPlacement:
    def test_local_mode_never_asks_the_ai(self, make_game):
        gateway = FakeGateway(placements=["3,3"])
        game = make_game(mode=MODE_LOCAL, gateway=gateway)
        assert game.generate_food() is True
        assert "place_item" not in gateway.names()

    def test_ai_mode_uses_valid_suggestion(self, make_game):
        gateway = FakeGateway(placements=["X:3,Y:4"])
        game = make_game(mode=MODE_AI, gateway=gateway)

        assert game.generate_food() is True

        assert game.food == Position(3, 4)
        name, (body, width, height) = gateway.calls[0]
        assert name == "place_item"
        assert body == [(5, 5)]
        assert (width, height) == (10, 10)

    @pytest.mark.parametrize("reply", ["5,5", "0,4", "10,3", "4,-2", "", "不知道"])
    def test_ai_mode_falls_back_on_unusable_suggestion(self, make_game, reply):
        game = make_game(mode=MODE_AI, gateway=FakeGateway(placements=[reply]))
        assert game.generate_food() is True
        assert game.is_valid_food(game.food)

    def test_random_placement_always_valid(self, make_game):
        game = make_game(width=6, height=6)
        game.snake = Snake([(1, 1), (2, 1), (3, 1), (4, 1), (4, 2), (3, 2), (2, 2), (1, 2)])
        for _ in range(100):
            assert game.generate_food() is True
            assert game.food.in_bounds(6, 6)
            assert not game.snake.occupies(game.food)

    def test_last_free_cell_is_found(self, make_game):
        game = make_game(width=3, height=3, spawn=(1, 1))
        game.snake = Snake([(1, 1), (2, 1), (2, 2)])
        assert game.generate_food() is True
        assert game.food == Position(1, 2)


class TestTick:
    def test_tick_renders_then_advances(self, make_game):
        game = make_game()
        game.food = Position(1, 1)

        assert game.tick() is None

        renderer = game.renderer
        assert renderer.frames[0].snake_positions == [(5, 5)]
        assert game.snake.head == (6, 5)

    def test_direction_change_applies_on_next_tick(self, make_game):
        game = make_game()
        game.food = Position(1, 1)

        game.handle_direction(InputEvent(DIRECTION_CHANGED, DOWN))
        assert game.snake.head == (5, 5)
        game.tick()
        assert game.snake.head == (5, 6)

    def test_reverse_direction_is_ignored(self, make_game):
        game = make_game()
        game.food = Position(1, 1)
        game.handle_direction(InputEvent(DIRECTION_CHANGED, LEFT))
        game.tick()
        assert game.snake.head == (6, 5)

    def test_eating_scores_grows_and_replaces_food(self, make_game):
        clock = FakeClock()
        gateway = FakeGateway(on_consume="真棒")
        game = make_game(gateway=gateway, clock=clock)
        game.food = Position(6, 5)
        clock.advance(3.5)

        assert game.tick() is None

        assert game.session.score == 1
        assert game.snake.pending_growth is True
        assert game.session.max_length == 2
        assert game.session.last_ai_message == "真棒"
        assert game.renderer.ai_lines == ["真棒"]
        assert gateway.calls == [("on_consume", (1, 3, (6, 5)))]
        assert game.food != Position(6, 5)
        assert game.is_valid_food(game.food)

        game.tick()
        assert len(game.snake) == 2

    def test_eating_in_ai_mode_requests_placement_after_comment(self, make_game):
        gateway = FakeGateway(placements=["X:2,Y:2"])
        game = make_game(mode=MODE_AI, gateway=gateway)
        game.food = Position(6, 5)

        game.tick()

        assert gateway.names() == ["on_consume", "place_item"]
        assert gateway.calls[1][1][0] == [(6, 5)]
        assert game.food == Position(2, 2)

    def test_boundary_collision(self, make_game):
        game = make_game(spawn=(1, 5), heading=LEFT)
        game.food = Position(8, 8)

        assert game.tick() == ENDED

        assert game.snake.head == (0, 5)
        assert game.session.collision_reason == COLLISION_BOUNDARY
        assert game.phase == ENDED

    def test_moving_up_into_free_cell_is_safe(self, make_game):
        game = make_game(heading=UP)
        game.snake = Snake([(5, 5), (5, 6)], heading=UP)
        game.food = Position(8, 8)

        assert game.tick() is None
        assert game.snake.body == [(5, 4), (5, 5)]

    def test_self_collision(self, make_game):
        game = make_game()
        game.snake = Snake([(5, 5), (5, 6), (6, 6), (6, 5), (6, 4)], heading=RIGHT)
        game.food = Position(1, 1)

        assert game.tick() == ENDED
        assert game.session.collision_reason == COLLISION_SELF
        assert game.session.score == 0

    def test_no_movement_while_paused(self, make_game):
        game = make_game()
        game.food = Position(1, 1)

        game.handle_pause(InputEvent(PAUSE_TOGGLED))
        assert game.renderer.frames[-1].paused is True

        for _ in range(3):
            assert game.tick() is None
        assert game.snake.head == (5, 5)

        game.handle_pause(InputEvent(PAUSE_TOGGLED))
        game.tick()
        assert game.snake.head == (6, 5)

    def test_paused_phase(self, make_game):
        game = make_game()
        game.setup()
        game.handle_pause(InputEvent(PAUSE_TOGGLED))
        assert game.phase == PAUSED

    def test_survival_time_frozen_while_paused(self, make_game):
        clock = FakeClock()
        game = make_game(clock=clock)
        game.setup()
        game.food = Position(1, 1)

        clock.advance(2.2)
        game.handle_pause(InputEvent(PAUSE_TOGGLED))
        clock.advance(30)
        game.tick()
        assert game.session.survival_time == 2

    def test_exit_is_seen_before_advancing(self, make_game):
        game = make_game()
        game.food = Position(1, 1)
        game.handle_exit(InputEvent(EXIT_REQUESTED))

        assert game.tick() == EXITED
        assert game.snake.head == (5, 5)
        assert game.phase == EXITED

    def test_lost_keyboard_leaves_the_session(self, make_game):
        game = make_game(key_source=ScriptedKeySource(" "))
        game.food = Position(1, 1)

        def broken_handler(event):
            raise OSError("terminal went away")

        game.listener.subscribe(PAUSE_TOGGLED, broken_handler)
        game.listener.start()
        game.listener._thread.join(timeout=2.0)
        assert game.listener.failed

        assert game.tick() == EXITED
        assert game.exit_requested


class TestRun:
    def test_exit_skips_the_summary(self, make_game):
        gateway = FakeGateway()
        game = make_game(gateway=gateway)
        game.handle_exit(InputEvent(EXIT_REQUESTED))

        result = game.run()

        assert result["outcome"] == EXITED
        assert result["summary"] is None
        assert "summarize" not in gateway.names()
        assert game.renderer.summaries == []
        assert game.key_source.acknowledged == 0

    def test_collision_runs_summary_once_and_waits(self, make_game):
        gateway = FakeGateway(placements=["X:8,Y:8"], summary="复盘：注意边界")
        game = make_game(mode=MODE_AI, gateway=gateway, spawn=(2, 5), heading=LEFT)

        result = game.run()

        assert result["outcome"] == ENDED
        assert result["collision_reason"] == COLLISION_BOUNDARY
        assert result["summary"] == "复盘：注意边界"
        assert gateway.names() == ["place_item", "welcome", "summarize"]
        assert gateway.calls[-1][1] == (0, 0, 1, COLLISION_BOUNDARY)
        assert game.renderer.summaries == [result]
        assert game.key_source.acknowledged == 1
        assert not game.listener.running

    def test_full_board_still_gets_a_summary(self, make_game):
        gateway = FakeGateway()
        game = make_game(gateway=gateway, width=2, height=2, spawn=(1, 1))

        result = game.run()

        assert result["collision_reason"] == COLLISION_BOARD_FULL
        assert gateway.names() == ["summarize"]
