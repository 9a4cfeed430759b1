"""
LLM Gateway — completion providers over plain HTTP.

One provider is chosen at startup (LLM_PROVIDER, or the first with a key
when set to auto). Providers never raise: every outcome, including
timeouts and HTTP errors, comes back as a CompletionResult.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

import httpx
import structlog

from agentledger.config import Settings

logger = structlog.get_logger(__name__)

ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


@dataclass(frozen=True)
class CompletionResult:
    provider: str
    text: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.text.strip())


class LLMProvider(Protocol):
    name: str

    async def complete(self, system: str, user_message: str) -> CompletionResult: ...


class _HTTPProvider:
    """Shared POST-and-extract flow for the JSON completion APIs."""

    name = "http"

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 1024,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._transport = transport

    def _request(self, system: str, user_message: str) -> tuple[str, dict, dict]:
        raise NotImplementedError

    def _extract(self, data: dict) -> str:
        raise NotImplementedError

    async def complete(self, system: str, user_message: str) -> CompletionResult:
        if not self.api_key:
            return CompletionResult(provider=self.name, error="api key not configured")

        url, headers, payload = self._request(system, user_message)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=headers)
                response.raise_for_status()
                text = self._extract(response.json())
        except httpx.TimeoutException:
            logger.error("llm_timeout", provider=self.name, model=self.model)
            return CompletionResult(provider=self.name, error="timeout")
        except httpx.HTTPStatusError as e:
            logger.error(
                "llm_api_error",
                provider=self.name,
                status=e.response.status_code,
                body=e.response.text[:500],
            )
            return CompletionResult(provider=self.name, error=f"http {e.response.status_code}")
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("llm_generate_error", provider=self.name, model=self.model, error=str(e))
            return CompletionResult(provider=self.name, error=str(e) or type(e).__name__)

        return CompletionResult(provider=self.name, text=text)


class AnthropicProvider(_HTTPProvider):
    name = "anthropic"

    def _request(self, system: str, user_message: str):
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system,
            "messages": [{"role": "user", "content": user_message}],
        }
        return ANTHROPIC_API_URL, headers, payload

    def _extract(self, data: dict) -> str:
        content = data.get("content", [])
        return "".join(
            block.get("text", "") for block in content if block.get("type") == "text"
        )


class OpenAIProvider(_HTTPProvider):
    name = "openai"

    def _request(self, system: str, user_message: str):
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "content-type": "application/json",
        }
        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": 0.1,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user_message},
            ],
        }
        return OPENAI_API_URL, headers, payload

    def _extract(self, data: dict) -> str:
        return data["choices"][0]["message"]["content"] or ""


class GeminiProvider(_HTTPProvider):
    name = "gemini"

    def _request(self, system: str, user_message: str):
        headers = {
            "x-goog-api-key": self.api_key,
            "content-type": "application/json",
        }
        payload = {
            "systemInstruction": {"parts": [{"text": system}]},
            "contents": [{"role": "user", "parts": [{"text": user_message}]}],
            "generationConfig": {
                "temperature": 0.1,
                "maxOutputTokens": self.max_tokens,
                "responseMimeType": "application/json",
            },
        }
        return GEMINI_API_URL.format(model=self.model), headers, payload

    def _extract(self, data: dict) -> str:
        parts = data["candidates"][0]["content"]["parts"]
        return "".join(p.get("text", "") for p in parts)


def build_llm_provider(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[LLMProvider]:
    """Pick the configured provider; None means heuristics only."""
    common = {
        "max_tokens": settings.llm_max_tokens,
        "timeout": settings.llm_timeout_seconds,
        "transport": transport,
    }
    candidates = {
        "anthropic": lambda: AnthropicProvider(settings.anthropic_api_key, settings.anthropic_model, **common),
        "openai": lambda: OpenAIProvider(settings.openai_api_key, settings.openai_model, **common),
        "gemini": lambda: GeminiProvider(settings.gemini_api_key, settings.gemini_model, **common),
    }
    keys = {
        "anthropic": settings.anthropic_api_key,
        "openai": settings.openai_api_key,
        "gemini": settings.gemini_api_key,
    }

    choice = settings.llm_provider.lower()
    if choice == "none":
        logger.info("llm_provider_disabled")
        return None
    if choice == "auto":
        choice = next((name for name, key in keys.items() if key), "")
        if not choice:
            logger.warning("llm_api_key_missing", msg="AI analysis falls back to heuristics")
            return None
    if choice not in candidates:
        raise ValueError(f"Unknown LLM_PROVIDER: {settings.llm_provider!r}")
    if not keys[choice]:
        logger.warning("llm_api_key_missing", provider=choice)
        return None

    logger.info("llm_provider_selected", provider=choice)
    return candidates[choice]()
