"""
AI gateway for the three trigger points of a session (start, eat, end)
plus apple placement.

Each intent is a pure prompt builder followed by one provider round trip
and extraction. The gateway holds no game state and never raises: failures
become placeholder text the game loop can show or ignore.
"""

import logging
from typing import Dict, Iterable, List, Tuple

from domain.constants import (
    COLLISION_LABELS,
    DEFAULT_AI_LINE,
    ON_CONSUME_FAILED,
    SUMMARY_FAILED_PREFIX,
    WELCOME_UNAVAILABLE,
)
from llm_providers import LLMProviderInterface
from response_extractor import extract_single_line, extract_text

logger = logging.getLogger(__name__)

SHORT_REPLY_RULES = "请只输出几句中文鼓励或实用提示（<=30字），保持与之前不同的措辞或风格，不要解释、不要多余文本、不要引号。"

WELCOME_SYSTEM = (
    "你是友好的游戏助手。每次回复要保持表达多样性，避免重复之前在同一局或同一会话中使用过的整句或固定短语。"
    "可在风格上随机选择：幽默、直率、温和或简洁，但每次仅输出几句中文（不超过30字），内容须是具体的鼓励或可执行的小建议。"
    "不要解释、不要额外文本、不要引号。"
)

ON_CONSUME_SYSTEM = (
    "你是友好的游戏助手。吃到食物时要给出简短且多样化的几句中文提示（<=30字），可以是鼓励或基于当前局面的小策略。"
    "避免与本局之前的提示重复。不要解释、不要多余文本、不要引号。"
)

PLACE_ITEM_SYSTEM = "你是游戏地图/关卡生成器。只返回坐标，不要说明。"

SUMMARY_SYSTEM = (
    "你是游戏教练。返回时请遵循：1) 用几句独特且具体的本局总结（避免通用模板和与之前重复的句子）；"
    "2) 给出2到3条可执行的长期训练建议，并为每条建议标注优先级（高/中/低）和简短原因。"
    "返回纯文本，结构清晰但不要包含多余闲话。"
)


def _messages(*pairs: Tuple[str, str]) -> List[Dict[str, str]]:
    return [{"role": role, "content": content} for role, content in pairs]


def build_welcome_request(mode: str) -> List[Dict[str, str]]:
    return _messages(
        ("system", WELCOME_SYSTEM),
        ("user", f"游戏开始。模式={mode}。{SHORT_REPLY_RULES}"),
    )


def build_on_consume_request(score: int, elapsed_seconds: int, head: Tuple[int, int]) -> List[Dict[str, str]]:
    hx, hy = head
    return _messages(
        ("system", ON_CONSUME_SYSTEM),
        ("user", f"玩家吃到食物。Score={score}, Time={elapsed_seconds}s, Head=({hx},{hy})。{SHORT_REPLY_RULES}"),
    )


def build_place_item_request(body: Iterable[Tuple[int, int]], width: int, height: int) -> List[Dict[str, str]]:
    cells = ";".join(f"({x},{y})" for x, y in body)
    return _messages(
        ("system", PLACE_ITEM_SYSTEM),
        (
            "user",
            f"贪吃蛇当前位置：{cells}。请生成一个食物位置，X 在1到{width - 1}之间，Y 在1到{height - 1}之间，"
            "且不能与蛇身重合。格式 'X:数字,Y:数字' 或 '数字,数字'，只返回位置，不要其他说明。",
        ),
    )


def build_summary_request(score: int, survival_seconds: int, max_length: int, collision_reason: str) -> List[Dict[str, str]]:
    reason = COLLISION_LABELS.get(collision_reason, collision_reason or "未知")
    return _messages(
        ("system", SUMMARY_SYSTEM),
        (
            "user",
            f"玩家本局得分 {score}，存活 {survival_seconds} 秒，最大蛇身长度 {max_length}，碰撞原因：{reason}。"
            "请生成：1) 几句本局总结（简明具体），2) 2到3条带优先级的长期训练建议。返回纯文本。",
        ),
    )


class AIGateway:
    """
    Request/response access to the AI service for the game loop.
    """

    def __init__(self, provider: LLMProviderInterface):
        self.provider = provider

    def _send(self, intent: str, messages: List[Dict[str, str]]) -> str:
        logger.debug(f"AI request '{intent}' with {len(messages)} messages")
        return self.provider.get_response(messages)

    def welcome(self, mode: str) -> str:
        try:
            raw = self._send("welcome", build_welcome_request(mode))
        except Exception as exc:  # noqa: BLE001 - the game must start without AI
            logger.warning(f"Welcome request failed: {exc}")
            return WELCOME_UNAVAILABLE
        return extract_single_line(raw, default=DEFAULT_AI_LINE)

    def on_consume(self, score: int, elapsed_seconds: int, head: Tuple[int, int]) -> str:
        try:
            raw = self._send("on_consume", build_on_consume_request(score, elapsed_seconds, head))
        except Exception as exc:  # noqa: BLE001 - keep the game running
            logger.warning(f"On-consume request failed: {exc}")
            return ON_CONSUME_FAILED
        return extract_single_line(raw, default=DEFAULT_AI_LINE)

    def place_item(self, body: Iterable[Tuple[int, int]], width: int, height: int) -> str:
        """
        Ask for an apple position. Returns the extracted reply text, or an
        empty string on failure; the caller parses and validates it.
        """
        try:
            raw = self._send("place_item", build_place_item_request(list(body), width, height))
        except Exception as exc:  # noqa: BLE001 - caller falls back to random placement
            logger.warning(f"Placement request failed: {exc}")
            return ""
        return extract_text(raw)

    def summarize(self, score: int, survival_seconds: int, max_length: int, collision_reason: str) -> str:
        try:
            raw = self._send("summary", build_summary_request(score, survival_seconds, max_length, collision_reason))
        except Exception as exc:  # noqa: BLE001 - show the failure instead of the coach text
            logger.warning(f"Summary request failed: {exc}")
            return f"{SUMMARY_FAILED_PREFIX}{exc}"
        text = extract_text(raw).strip()
        if not text:
            return f"{SUMMARY_FAILED_PREFIX}empty reply"
        return text

