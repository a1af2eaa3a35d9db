import argparse
import json
import logging
import sys
from typing import Any, Dict, Optional, Tuple

from blessed import Terminal

from ai_gateway import AIGateway
from config import GameConfig, load_ai_config, load_log_settings
from domain.constants import BOARD_HEIGHT, BOARD_WIDTH, MODE_AI, MODE_LOCAL
from game_loop import SnakeGame
from llm_providers import LLMProviderInterface, OfflineProvider, create_llm_provider
from terminal.blessed_terminal import BlessedKeySource, BlessedRenderer

logger = logging.getLogger(__name__)

MENU_CHOICES = {'1': MODE_LOCAL, '2': MODE_AI}
MODE_ARGS = {'local': MODE_LOCAL, 'ai': MODE_AI}

MIN_FITTED_SIDE = 10
# Console rows kept free for the status and AI lines
RESERVED_ROWS = 6


def configure_logging(verbose: bool = False):
    """
    Send logs to a file; the terminal is repainted every tick.
    """
    settings = load_log_settings()
    level = logging.DEBUG if verbose else getattr(logging, settings['level'], logging.INFO)
    logging.basicConfig(
        filename=settings['file'],
        level=level,
        format="%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s",
    )


def fit_board_to_terminal(columns: int, rows: int) -> Tuple[int, int]:
    """
    Default board size for a console of ``columns`` x ``rows``, never larger than
    the standard board and never smaller than 10x10.
    """
    width = min(BOARD_WIDTH, max(MIN_FITTED_SIDE, columns - 2))
    height = min(BOARD_HEIGHT, max(MIN_FITTED_SIDE, rows - RESERVED_ROWS))
    return width, height


def build_provider() -> LLMProviderInterface:
    ai_config = load_ai_config()
    try:
        return create_llm_provider(ai_config.as_dict())
    except ValueError as e:
        logger.warning(f"AI disabled: {e}")
        return OfflineProvider(str(e))


def choose_mode(renderer: BlessedRenderer, keys: BlessedKeySource) -> Optional[str]:
    """
    Show the start menu and wait for a mode. Returns None when the player quits.
    """
    renderer.show_menu()
    while True:
        key = keys.wait_for_key()
        if key == 'KEY_ESCAPE':
            return None
        if key in MENU_CHOICES:
            return MENU_CHOICES[key]


def run_session(mode: str, gateway: AIGateway, term: Terminal, config: GameConfig) -> Dict[str, Any]:
    game = SnakeGame(
        mode=mode,
        gateway=gateway,
        renderer=BlessedRenderer(term),
        key_source=BlessedKeySource(term),
        config=config,
    )
    result = game.run()
    logger.info(f"Session result: {json.dumps(result, ensure_ascii=False)}")
    return result


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Terminal snake with AI encouragement, apple placement and a coach summary."
    )
    parser.add_argument("--mode", choices=sorted(MODE_ARGS), required=False, default=None,
                        help="Play one session in this mode and skip the menu")
    parser.add_argument("--width", type=int, required=False, default=None,
                        help="Board width including the wall (default: fit the terminal)")
    parser.add_argument("--height", type=int, required=False, default=None,
                        help="Board height including the wall (default: fit the terminal)")
    parser.add_argument("--tick", type=float, required=False, default=GameConfig.tick_seconds,
                        help="Seconds per game tick")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    term = Terminal()
    fitted_width, fitted_height = fit_board_to_terminal(term.width, term.height)
    width = args.width if args.width is not None else fitted_width
    height = args.height if args.height is not None else fitted_height
    try:
        config = GameConfig(width=width, height=height, tick_seconds=args.tick)
    except ValueError as e:
        parser.error(str(e))
    gateway = AIGateway(build_provider())

    with term.fullscreen(), term.cbreak(), term.hidden_cursor():
        if args.mode is not None:
            run_session(MODE_ARGS[args.mode], gateway, term, config)
            return 0

        # Back to the menu after every session
        while True:
            mode = choose_mode(BlessedRenderer(term), BlessedKeySource(term))
            if mode is None:
                return 0
            run_session(mode, gateway, term, config)


if __name__ == "__main__":
    sys.exit(main())
