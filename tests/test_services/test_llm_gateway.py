"""
Tests for the LLM gateway providers and provider selection.
"""

import json

import httpx
import pytest

from agentledger.config import Settings
from agentledger.services.llm_gateway import (
    AnthropicProvider,
    GeminiProvider,
    OpenAIProvider,
    build_llm_provider,
)


def _transport(status_code=200, body=None, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=body or {})

    return httpx.MockTransport(handler)


def _settings(**overrides) -> Settings:
    values = {
        "_env_file": None,
        "llm_provider": "auto",
        "anthropic_api_key": "",
        "openai_api_key": "",
        "gemini_api_key": "",
    }
    values.update(overrides)
    return Settings(**values)


class TestProviders:
    @pytest.mark.asyncio
    async def test_anthropic_extracts_text_blocks(self):
        seen = []
        body = {"content": [{"type": "text", "text": '{"riskScore": 10}'}]}
        provider = AnthropicProvider("sk-ant", "claude-model", transport=_transport(body=body, seen=seen))

        result = await provider.complete("system", "analyze this")

        assert result.ok
        assert result.text == '{"riskScore": 10}'
        assert seen[0].headers["x-api-key"] == "sk-ant"
        sent = json.loads(seen[0].content)
        assert sent["system"] == "system"
        assert sent["messages"][0]["content"] == "analyze this"

    @pytest.mark.asyncio
    async def test_openai_requests_json_object(self):
        seen = []
        body = {"choices": [{"message": {"content": "{}"}}]}
        provider = OpenAIProvider("sk-oa", "gpt", transport=_transport(body=body, seen=seen))

        result = await provider.complete("s", "u")

        assert result.text == "{}"
        assert json.loads(seen[0].content)["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_gemini_joins_parts(self):
        body = {"candidates": [{"content": {"parts": [{"text": '{"a"'}, {"text": ": 1}"}]}}]}
        provider = GeminiProvider("g-key", "gemini-model", transport=_transport(body=body))
        result = await provider.complete("s", "u")
        assert result.text == '{"a": 1}'

    @pytest.mark.asyncio
    async def test_http_error_becomes_result(self):
        provider = AnthropicProvider("sk-ant", "m", transport=_transport(status_code=529))
        result = await provider.complete("s", "u")
        assert not result.ok
        assert result.error == "http 529"

    @pytest.mark.asyncio
    async def test_malformed_body_becomes_result(self):
        provider = OpenAIProvider("sk-oa", "m", transport=_transport(body={"unexpected": True}))
        result = await provider.complete("s", "u")
        assert not result.ok

    @pytest.mark.asyncio
    async def test_timeout_becomes_result(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        provider = GeminiProvider("g", "m", transport=httpx.MockTransport(handler))
        result = await provider.complete("s", "u")
        assert result.error == "timeout"

    @pytest.mark.asyncio
    async def test_missing_key_short_circuits(self):
        seen = []
        result = await AnthropicProvider("", "m", transport=_transport(seen=seen)).complete("s", "u")
        assert not result.ok
        assert seen == []


class TestBuildProvider:
    def test_none_disables(self):
        assert build_llm_provider(_settings(llm_provider="none", openai_api_key="k")) is None

    def test_auto_without_keys(self):
        assert build_llm_provider(_settings()) is None

    def test_auto_picks_first_configured(self):
        provider = build_llm_provider(_settings(openai_api_key="k1", gemini_api_key="k2"))
        assert provider.name == "openai"

    def test_explicit_choice(self):
        provider = build_llm_provider(
            _settings(llm_provider="gemini", anthropic_api_key="a", gemini_api_key="g")
        )
        assert provider.name == "gemini"

    def test_explicit_choice_without_key(self):
        assert build_llm_provider(_settings(llm_provider="anthropic")) is None

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            build_llm_provider(_settings(llm_provider="mystery"))
