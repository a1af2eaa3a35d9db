"""
Terminal renderer and key source built on blessed.
"""

import sys
from typing import Any, Dict, Optional

from blessed import Terminal

from domain.constants import COLLISION_LABELS
from domain.game_state import GameState
from .base import KeySource, Renderer

PAUSE_HINT = "[已暂停 - 按 空格 继续]"

MENU_TEXT = (
    "===== 贪吃蛇游戏 =====",
    "说明：下面列出本游戏支持的按键操作：",
    "",
    "  - 方向键 (↑ ↓ ← →) 或 WASD：游戏中控制蛇移动",
    "  - Esc：回到主菜单（主菜单中按 Esc 退出）",
    "  - Space：暂停 / 继续",
    "",
    "1. 训练 (随机生成食物且没有障碍)",
    "2. AI生成关卡 (AI决定食物位置)",
    "",
    "请选择模式 (1/2): ",
)


def _clip_to_width(term: Terminal, text: str, width: int) -> str:
    if term.length(text) <= width:
        return text
    room = width - 3
    clipped = ""
    for ch in text:
        if term.length(clipped + ch) > room:
            break
        clipped += ch
    return clipped + "..."


def fit_ai_line(term: Terminal, message: str, paused: bool, width: int) -> str:
    """
    Build the 'AI: ...' line, appending the pause hint and clipping to ``width``
    terminal cells as measured by ``term.length``.
    """
    show = message or ""
    if paused:
        fits = term.length(show) + term.length(PAUSE_HINT) + 4 < width
        show = f"{show}    {PAUSE_HINT}" if fits else PAUSE_HINT
    line = f"AI: {show}"
    if width > 7:
        line = _clip_to_width(term, line, width)
    return line


class BlessedRenderer(Renderer):
    def __init__(self, term: Terminal, stream=None):
        self.term = term
        self.stream = stream or sys.stdout

    def _write(self, text: str):
        self.stream.write(text)
        self.stream.flush()

    def _line_at(self, row: int, text: str) -> str:
        return self.term.move_xy(0, row) + self.term.clear_eol + text

    def render_frame(self, state: GameState):
        board = state.print_board()
        frame = [self.term.home + self.term.clear]
        for row, line in enumerate(board.split("\n")):
            frame.append(self.term.move_xy(0, row) + line)
        frame.append(self._line_at(state.height + 1, state.status_line()))
        frame.append(self._line_at(state.height + 2, self._ai_line(state)))
        self._write("".join(frame))

    def render_ai_line(self, state: GameState):
        self._write(self._line_at(state.height + 2, self._ai_line(state)))

    def _ai_line(self, state: GameState) -> str:
        return fit_ai_line(self.term, state.last_ai_message, state.paused, max(0, self.term.width - 1))

    def show_summary(self, record: Dict[str, Any]):
        reason = record.get('collision_reason')
        lines = [
            "===== 游戏结束 =====",
            f"最终得分: {record.get('final_score', 0)}",
            f"存活时间: {record.get('survival_seconds', 0)} 秒",
            f"最大蛇身长度: {record.get('max_length', 1)}",
            f"碰撞原因: {COLLISION_LABELS.get(reason, reason or '')}",
            "",
            "----- AI 复盘建议 -----",
            record.get('summary') or "",
            "",
            "按任意键退出...",
        ]
        self._write(self.term.home + self.term.clear + "\n".join(lines) + "\n")

    def show_menu(self):
        self._write(self.term.home + self.term.clear + "\n".join(MENU_TEXT))


class BlessedKeySource(KeySource):
    def __init__(self, term: Terminal):
        self.term = term

    @staticmethod
    def _key_name(keystroke) -> Optional[str]:
        if not keystroke:
            return None
        if keystroke.is_sequence and keystroke.name:
            return keystroke.name
        return str(keystroke)

    def read_key(self, timeout: float = 0) -> Optional[str]:
        return self._key_name(self.term.inkey(timeout=timeout))

    def wait_for_key(self) -> str:
        key = None
        while key is None:
            key = self._key_name(self.term.inkey())
        return key
