"""
Background keyboard polling for the game loop.

A daemon thread reads keys from a KeySource and dispatches discrete events
to registered handlers. Handlers run on the listener thread, so anything
they touch must be guarded by the game loop's lock.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from domain.constants import UP, DOWN, LEFT, RIGHT, INPUT_POLL_SECONDS
from terminal.base import KeySource

logger = logging.getLogger(__name__)

DIRECTION_CHANGED = "direction_changed"
PAUSE_TOGGLED = "pause_toggled"
EXIT_REQUESTED = "exit_requested"
EVENT_KINDS = {DIRECTION_CHANGED, PAUSE_TOGGLED, EXIT_REQUESTED}

DIRECTION_KEYS = {
    'KEY_UP': UP, 'w': UP, 'W': UP,
    'KEY_DOWN': DOWN, 's': DOWN, 'S': DOWN,
    'KEY_LEFT': LEFT, 'a': LEFT, 'A': LEFT,
    'KEY_RIGHT': RIGHT, 'd': RIGHT, 'D': RIGHT,
}
PAUSE_KEYS = {' '}
EXIT_KEYS = {'KEY_ESCAPE', '\x1b'}


@dataclass(frozen=True)
class InputEvent:
    kind: str
    direction: Optional[str] = None


def translate_key(key: Optional[str]) -> Optional[InputEvent]:
    """Map a raw key name to an input event, or None for unbound keys."""
    if key is None:
        return None
    if key in DIRECTION_KEYS:
        return InputEvent(DIRECTION_CHANGED, DIRECTION_KEYS[key])
    if key in PAUSE_KEYS:
        return InputEvent(PAUSE_TOGGLED)
    if key in EXIT_KEYS:
        return InputEvent(EXIT_REQUESTED)
    return None


class InputListener:
    """
    Polls a KeySource on a background thread until stopped.
    """

    def __init__(self, key_source: KeySource, poll_seconds: float = INPUT_POLL_SECONDS):
        self.key_source = key_source
        self.poll_seconds = poll_seconds
        self._handlers: Dict[str, List[Callable[[InputEvent], None]]] = {kind: [] for kind in EVENT_KINDS}
        self._running = threading.Event()
        self._failed = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def subscribe(self, kind: str, handler: Callable[[InputEvent], None]):
        if kind not in self._handlers:
            raise ValueError(f"Unknown input event kind: {kind}")
        self._handlers[kind].append(handler)

    @property
    def running(self) -> bool:
        return self._running.is_set()

    @property
    def failed(self) -> bool:
        """True once the polling thread has died on a handler or key source error."""
        return self._failed.is_set()

    def start(self):
        if self.running:
            return
        self._failed.clear()
        self._running.set()
        self._thread = threading.Thread(target=self._run_loop, name="input-listener", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = 1.0):
        self._running.clear()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

    def dispatch(self, event: InputEvent):
        for handler in list(self._handlers[event.kind]):
            handler(event)

    def poll_once(self) -> Optional[InputEvent]:
        """Read at most one key and dispatch its event."""
        event = translate_key(self.key_source.read_key(timeout=0))
        if event is not None:
            logger.debug(f"Input event: {event}")
            self.dispatch(event)
        return event

    def _run_loop(self):
        while self._running.is_set():
            try:
                event = self.poll_once()
            except Exception:
                logger.exception("Input listener stopped after an unexpected error")
                self._failed.set()
                self._running.clear()
                return
            if event is None:
                time.sleep(self.poll_seconds)
