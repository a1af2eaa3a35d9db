import os
import logging
from typing import Dict, Any, List, Optional

import requests
from openai import OpenAI, OpenAIError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://ark.cn-beijing.volces.com/api/v3"
DEFAULT_MODEL = "doubao-1-5-lite-32k-250115"
DEFAULT_TIMEOUT = 20.0


class ProviderError(RuntimeError):
    """Raised when the AI service could not produce a response body."""


def _sanitize_env_value(value: Optional[str]) -> Optional[str]:
    """
    Clean up env-provided strings that may include surrounding quotes or whitespace.

    Some shells/export flows set values like SNAKE_AI_API_KEY="sk-...".
    The SDK forwards the raw string, so we strip wrapping quotes here
    to avoid 401s caused by the quote characters.
    """
    if value is None:
        return None
    cleaned = value.strip()
    if len(cleaned) >= 2 and (
        (cleaned[0] == '"' and cleaned[-1] == '"') or (cleaned[0] == "'" and cleaned[-1] == "'")
    ):
        cleaned = cleaned[1:-1].strip()
    return cleaned


class LLMProviderInterface:
    """
    A common interface for chat-completion calls.

    Providers only move bytes: they return the raw response body and leave
    interpretation to response_extractor. Failures must raise ProviderError,
    never return an empty body.
    """
    def get_response(self, messages: List[Dict[str, str]]) -> str:  # Returns the raw response body
        raise NotImplementedError("Subclasses should implement this method.")

    @staticmethod
    def build_payload(model_name: str, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        return {
            "model": model_name,
            "messages": [{"role": m["role"], "content": m["content"]} for m in messages],
        }

    @staticmethod
    def _require_body(body: Optional[str]) -> str:
        if body is None or not body.strip():
            raise ProviderError("AI service returned an empty response body")
        return body


class OpenAICompatibleProvider(LLMProviderInterface):
    """
    Chat completions through the OpenAI SDK against any compatible endpoint.

    Uses the raw-response wrapper so the untouched body reaches the extractor.
    """
    def __init__(self, api_key: str, config: Dict[str, Any]):
        self.model_name = config.get('model_name', DEFAULT_MODEL)
        self.client = OpenAI(
            api_key=_sanitize_env_value(api_key) or api_key,
            base_url=config.get('base_url', DEFAULT_BASE_URL),
            timeout=config.get('timeout', DEFAULT_TIMEOUT),
        )

    def get_response(self, messages: List[Dict[str, str]]) -> str:
        payload = self.build_payload(self.model_name, messages)
        try:
            raw = self.client.chat.completions.with_raw_response.create(**payload)
            body = raw.text
        except OpenAIError as exc:
            raise ProviderError(f"{type(exc).__name__}: {exc}") from exc
        return self._require_body(body)


class HTTPChatProvider(LLMProviderInterface):
    """
    Plain HTTP POST of a chat-completions payload with bearer authentication.
    """
    def __init__(self, api_key: str, config: Dict[str, Any]):
        self.api_key = _sanitize_env_value(api_key) or api_key
        self.model_name = config.get('model_name', DEFAULT_MODEL)
        base_url = config.get('base_url', DEFAULT_BASE_URL).rstrip('/')
        self.endpoint = f"{base_url}/chat/completions"
        self.timeout = config.get('timeout', DEFAULT_TIMEOUT)
        self.session = requests.Session()

    def get_response(self, messages: List[Dict[str, str]]) -> str:
        payload = self.build_payload(self.model_name, messages)
        try:
            response = self.session.post(
                self.endpoint,
                json=payload,
                timeout=self.timeout,
                headers={
                    'Authorization': f'Bearer {self.api_key}',
                    'Accept': 'application/json',
                },
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ProviderError(f"{type(exc).__name__}: {exc}") from exc
        return self._require_body(response.text)


class OfflineProvider(LLMProviderInterface):
    """
    Stand-in used when no AI service is configured; every call fails.
    """
    def __init__(self, reason: str = "AI service is not configured"):
        self.reason = reason

    def get_response(self, messages: List[Dict[str, str]]) -> str:
        raise ProviderError(self.reason)


PROVIDERS = {
    'openai': OpenAICompatibleProvider,
    'http': HTTPChatProvider,
}


def create_llm_provider(ai_config: Dict[str, Any]) -> LLMProviderInterface:
    """
    Factory function for creating an LLM provider instance.

    ``ai_config`` keys: api_key, base_url, model_name, transport, timeout.
    The API key falls back to SNAKE_AI_API_KEY from the environment.
    """
    transport = ai_config.get('transport', 'openai')
    provider_cls = PROVIDERS.get(transport)
    if provider_cls is None:
        raise ValueError(f"Unknown AI transport '{transport}'. Expected one of: {sorted(PROVIDERS)}")

    api_key = _sanitize_env_value(ai_config.get('api_key') or os.getenv("SNAKE_AI_API_KEY"))
    if not api_key:
        raise ValueError("SNAKE_AI_API_KEY is not set in the environment variables.")

    logger.info(f"Using {provider_cls.__name__} with model {ai_config.get('model_name', DEFAULT_MODEL)}")
    return provider_cls(api_key=api_key, config=ai_config)
