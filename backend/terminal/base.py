"""
Interfaces for the terminal collaborators of the game loop.
"""

from typing import Any, Dict, Optional

from domain.game_state import GameState


class Renderer:
    """
    Paints read-only game snapshots. Implementations must not mutate them.
    """

    def render_frame(self, state: GameState):
        """Redraw the whole frame: board, status line and AI line."""
        raise NotImplementedError

    def render_ai_line(self, state: GameState):
        """Redraw only the persistent AI line."""
        raise NotImplementedError

    def show_summary(self, record: Dict[str, Any]):
        """Show the final record and the coach text of an ended session."""
        raise NotImplementedError


class KeySource:
    """
    Raw keyboard access. Key names are blessed-style: 'KEY_UP', 'KEY_ESCAPE',
    or the typed character itself.
    """

    def read_key(self, timeout: float = 0) -> Optional[str]:
        """Return the next key within ``timeout`` seconds, or None."""
        raise NotImplementedError

    def wait_for_key(self) -> str:
        """Block until any key is pressed."""
        raise NotImplementedError
