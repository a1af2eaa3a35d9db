"""
Best-effort extraction of usable text from AI responses.

Provider payloads are untrusted: they may be an OpenAI-style JSON envelope,
some other JSON shape, or plain text. Everything here is synchronous, never
raises on bad input, and returns something the caller still has to validate.
"""

import json
import logging
import re
from typing import Any, Optional

from domain.constants import DEFAULT_AI_LINE
from domain.position import Position

logger = logging.getLogger(__name__)

MAX_RAW_TEXT = 2000
MAX_LINE_LENGTH = 120
HEX_ID_MIN_LENGTH = 20

# String leaves under these keys are labels, not answer text
METADATA_KEYS = {
    'id', 'model', 'object', 'role', 'finish_reason', 'service_tier',
    'system_fingerprint', 'type',
}

_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]+')
_HEX_ONLY = re.compile(r'[0-9a-fA-F]+')
_CJK = re.compile(r'[\u4e00-\u9fff]')
_SENTENCE_BREAKS = re.compile(r'[\r\n。.!！?？]+')
_INTEGER = re.compile(r'[+-]?[0-9]+')
_MARKER_DELIMITERS = re.compile(r'[,; ]+')
_PAIR_DELIMITERS = re.compile(r'[,; ()]+')

QUOTE_CHARS = '"\'“”‘’「」『』'


def _choices_content(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    choices = data.get('choices')
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get('message')
    if not isinstance(message, dict):
        return None
    content = message.get('content')
    if isinstance(content, str) and content.strip():
        return content
    return None


def _longest_string_leaf(data: Any) -> str:
    best = ""

    def walk(node: Any, key: str = ""):
        nonlocal best
        if isinstance(node, str):
            # Strictly longer, so ties keep the first one seen
            if node.strip() and key not in METADATA_KEYS and len(node) > len(best):
                best = node
        elif isinstance(node, dict):
            for child_key, child in node.items():
                walk(child, str(child_key))
        elif isinstance(node, list):
            for child in node:
                walk(child, key)

    walk(data)
    return best


def extract_text(raw: Optional[str]) -> str:
    """
    Return the most likely answer text contained in ``raw``.

    Order of preference:
      1. ``choices[0].message.content`` of an OpenAI-style envelope, verbatim
      2. the longest non-metadata string leaf of any other JSON document
      3. the raw text with control characters collapsed, capped in length
    """
    if raw is None or not raw.strip():
        return ""

    try:
        data = json.loads(raw)
    except (ValueError, RecursionError):
        data = None
    else:
        content = _choices_content(data)
        if content is not None:
            return content
        best = _longest_string_leaf(data)
        if best.strip():
            return best

    cleaned = _CONTROL_CHARS.sub(' ', raw).strip()
    if len(cleaned) > MAX_RAW_TEXT:
        cleaned = cleaned[:MAX_RAW_TEXT] + "..."
    return cleaned


def looks_like_identifier(text: str) -> bool:
    """Long runs of pure hex are ids or hashes, not prose."""
    return len(text) > HEX_ID_MIN_LENGTH and _HEX_ONLY.fullmatch(text) is not None


def contains_cjk(text: str) -> bool:
    return _CJK.search(text) is not None


def _shorten(text: str) -> str:
    if len(text) > MAX_LINE_LENGTH:
        return text[:MAX_LINE_LENGTH - 3] + "..."
    return text


def extract_single_line(raw: Optional[str], default: str = DEFAULT_AI_LINE) -> str:
    """
    Reduce a response to one short sentence for the persistent AI line.

    Replies that look like identifiers or carry no Chinese text are replaced
    by ``default``.
    """
    extracted = extract_text(raw).strip()
    if not extracted:
        return default

    if looks_like_identifier(extracted) or not contains_cjk(extracted):
        logger.debug(f"Rejected single-line reply: {extracted[:60]!r}")
        return default

    for segment in _SENTENCE_BREAKS.split(extracted):
        segment = segment.strip().strip(QUOTE_CHARS).strip()
        if segment:
            return _shorten(segment)

    return _shorten(extracted)


def _parse_int(token: str) -> Optional[int]:
    if _INTEGER.fullmatch(token):
        return int(token)
    return None


def _first_token_after(text: str, marker: str) -> Optional[str]:
    tail = text[text.index(marker) + len(marker):]
    tokens = [t for t in _MARKER_DELIMITERS.split(tail) if t]
    return tokens[0] if tokens else None


def parse_position(text: Optional[str]) -> Optional[Position]:
    """
    Recover a coordinate from a placement reply.

    Accepts ``X:3,Y:4`` style markers first, then falls back to the first two
    adjacent integer tokens (``3,4``, ``(3, 4)``, ``3 4``). Returns None when
    no coordinate can be found. The result is not validated against the board.
    """
    if text is None or not text.strip():
        return None

    cleaned = text
    for ch in QUOTE_CHARS:
        cleaned = cleaned.replace(ch, '')
    for ch in '{}\r\n':
        cleaned = cleaned.replace(ch, ' ')

    if 'X:' in cleaned and 'Y:' in cleaned:
        x_token = _first_token_after(cleaned, 'X:')
        y_token = _first_token_after(cleaned, 'Y:')
        x = _parse_int(x_token) if x_token is not None else None
        y = _parse_int(y_token) if y_token is not None else None
        if x is not None and y is not None:
            return Position(x, y)

    tokens = [t for t in _PAIR_DELIMITERS.split(cleaned) if t]
    for left, right in zip(tokens, tokens[1:]):
        x = _parse_int(left)
        y = _parse_int(right)
        if x is not None and y is not None:
            return Position(x, y)

    return None
