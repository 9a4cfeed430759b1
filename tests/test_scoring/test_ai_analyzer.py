"""
Tests for the AI Analyzer.

Covers:
- Parsing (code fences, clamping, defaults, invalid risk level)
- Fallback to heuristics on missing provider, provider error, bad JSON, exceptions
- The few-shot prompt content
"""

from datetime import datetime

import pytest

from agentledger.schemas.common import RiskLevel
from agentledger.scoring.ai_analyzer import (
    AIAnalyzer,
    AnalysisParseError,
    TransactionContext,
    parse_analysis,
)
from agentledger.scoring.prompts import SYSTEM_PROMPT, build_analysis_prompt
from agentledger.services.llm_gateway import CompletionResult


class FakeProvider:
    name = "fake"

    def __init__(self, text: str = "", error: str | None = None, raises: Exception | None = None):
        self.text = text
        self.error = error
        self.raises = raises
        self.calls: list[tuple[str, str]] = []

    async def complete(self, system: str, user_message: str) -> CompletionResult:
        self.calls.append((system, user_message))
        if self.raises is not None:
            raise self.raises
        return CompletionResult(provider=self.name, text=self.text, error=self.error)


def _context(**overrides) -> TransactionContext:
    values = {
        "amount": 15000,
        "description": "wire transfer to international account",
        "user_id": "user-1",
        "timestamp": datetime(2024, 5, 1, 10, 0),
    }
    values.update(overrides)
    return TransactionContext(**values)


GOOD_RESPONSE = """```json
{
  "riskLevel": "HIGH",
  "riskScore": 72,
  "explanation": "Large international wire transfer",
  "confidence": 88,
  "redFlags": ["Large amount", "International"],
  "recommendations": ["Verify with customer"],
  "similarPatterns": ["Wire fraud"]
}
```"""


# ── parse_analysis ─────────────────────────────────────────────────────


class TestParseAnalysis:
    def test_strips_code_fences(self):
        analysis = parse_analysis(GOOD_RESPONSE, source="ai:fake")
        assert analysis.risk_level == RiskLevel.HIGH
        assert analysis.risk_score == 72
        assert analysis.confidence == 88
        assert analysis.red_flags == ["Large amount", "International"]
        assert analysis.similar_patterns == ["Wire fraud"]
        assert analysis.source == "ai:fake"

    def test_clamps_numbers(self):
        analysis = parse_analysis(
            '{"riskLevel": "CRITICAL", "riskScore": 250, "confidence": -5, "explanation": "x"}',
            source="ai:fake",
        )
        assert analysis.risk_score == 100
        assert analysis.confidence == 0

    def test_defaults_confidence_and_lists(self):
        analysis = parse_analysis('{"riskLevel": "LOW", "riskScore": 10}', source="ai:fake")
        assert analysis.confidence == 80
        assert analysis.red_flags == []
        assert analysis.recommendations == []
        assert analysis.similar_patterns == []
        assert analysis.explanation

    def test_invalid_level_derived_from_score(self):
        analysis = parse_analysis('{"riskLevel": "SEVERE", "riskScore": 65}', source="ai:fake")
        assert analysis.risk_level == RiskLevel.HIGH

    def test_text_around_json_is_ignored(self):
        analysis = parse_analysis(
            'Here is the analysis: {"riskLevel": "MEDIUM", "riskScore": 40} Thanks!',
            source="ai:fake",
        )
        assert analysis.risk_level == RiskLevel.MEDIUM

    @pytest.mark.parametrize(
        "text",
        ["not json at all", "[1, 2, 3]", '{"riskLevel": "LOW"}', '{"riskScore": "high"}'],
    )
    def test_rejects_unusable_responses(self, text):
        with pytest.raises(AnalysisParseError):
            parse_analysis(text, source="ai:fake")


# ── AIAnalyzer ─────────────────────────────────────────────────────────


class TestAIAnalyzer:
    @pytest.mark.asyncio
    async def test_uses_provider_result(self):
        provider = FakeProvider(text=GOOD_RESPONSE)
        analysis = await AIAnalyzer(provider=provider).analyze(_context())
        assert analysis.source == "ai:fake"
        assert analysis.risk_score == 72
        assert len(provider.calls) == 1
        assert provider.calls[0][0] == SYSTEM_PROMPT

    @pytest.mark.asyncio
    async def test_no_provider_falls_back(self):
        analysis = await AIAnalyzer(provider=None).analyze(_context())
        assert analysis.source == "heuristic"
        assert analysis.risk_score == 80
        assert analysis.risk_level == RiskLevel.CRITICAL
        assert "Suspicious keyword: wire transfer" in analysis.red_flags

    @pytest.mark.asyncio
    async def test_provider_error_falls_back(self):
        analysis = await AIAnalyzer(provider=FakeProvider(error="http 503")).analyze(_context())
        assert analysis.source == "heuristic"

    @pytest.mark.asyncio
    async def test_unparsable_response_falls_back(self):
        analysis = await AIAnalyzer(provider=FakeProvider(text="I think it's risky")).analyze(_context())
        assert analysis.source == "heuristic"
        assert analysis.risk_score == 80

    @pytest.mark.asyncio
    async def test_provider_exception_falls_back(self):
        provider = FakeProvider(raises=RuntimeError("boom"))
        analysis = await AIAnalyzer(provider=provider).analyze(_context())
        assert analysis.source == "heuristic"


class TestPrompt:
    def test_prompt_embeds_examples_and_transaction(self):
        prompt = build_analysis_prompt(
            _context(ip="203.0.113.9", merchant="Acme", location="Lisbon", user_agent="Mobile Safari")
        )
        assert "Coffee purchase at Starbucks" in prompt
        assert "URGENT: Wire transfer to unknown account" in prompt
        assert "Online purchase - electronics" in prompt
        assert "- Amount: $15000" in prompt
        assert "203.0.113.9" in prompt
        assert "Acme" in prompt
        assert "Mobile Safari" in prompt
        assert '"similarPatterns"' in prompt

    def test_prompt_marks_unknown_fields(self):
        prompt = build_analysis_prompt(_context())
        assert "- IP Address: Unknown" in prompt
        assert "- Merchant: Unknown" in prompt
