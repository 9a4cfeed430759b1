"""
AI Analyzer.

Makes exactly one completion call per transaction. Whatever goes wrong
(no provider configured, network or HTTP error, text that is not the
expected JSON object) the result is the heuristic assessment instead.
Callers always get a FraudAnalysis and never an exception.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import structlog

from agentledger.schemas.common import RiskLevel
from agentledger.schemas.fraud import FraudAnalysis
from agentledger.scoring.heuristic import HeuristicScorer
from agentledger.scoring.prompts import SYSTEM_PROMPT, build_analysis_prompt
from agentledger.services.llm_gateway import LLMProvider

logger = structlog.get_logger(__name__)

DEFAULT_CONFIDENCE = 80


@dataclass(frozen=True)
class TransactionContext:
    amount: float
    description: str
    user_id: str
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: Optional[datetime] = None
    merchant: Optional[str] = None
    location: Optional[str] = None


class AnalysisParseError(ValueError):
    pass


def _clamp(value: Any, default: Optional[float] = None) -> int:
    if value is None:
        if default is None:
            raise AnalysisParseError("missing numeric field")
        value = default
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise AnalysisParseError(f"not a number: {value!r}") from e
    if number != number:  # NaN
        raise AnalysisParseError("NaN")
    return int(round(max(0.0, min(100.0, number))))


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None and str(v).strip()]


def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
        cleaned = cleaned.rsplit("```", 1)[0]
    cleaned = cleaned.strip()
    if not cleaned.startswith("{"):
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start != -1 and end > start:
            cleaned = cleaned[start:end + 1]
    return cleaned


def parse_analysis(text: str, source: str) -> FraudAnalysis:
    """Parse and clamp a model response. Raises AnalysisParseError."""
    try:
        data = json.loads(_strip_fences(text))
    except json.JSONDecodeError as e:
        raise AnalysisParseError(str(e)) from e
    if not isinstance(data, dict):
        raise AnalysisParseError("response is not a JSON object")

    score = _clamp(data.get("riskScore"))
    confidence = _clamp(data.get("confidence"), default=DEFAULT_CONFIDENCE)

    raw_level = str(data.get("riskLevel") or "").strip().upper()
    try:
        level = RiskLevel(raw_level)
    except ValueError:
        level = RiskLevel.from_score(score)

    explanation = str(data.get("explanation") or "").strip() or "No explanation provided."

    return FraudAnalysis(
        risk_level=level,
        risk_score=score,
        explanation=explanation,
        confidence=confidence,
        red_flags=_string_list(data.get("redFlags")),
        recommendations=_string_list(data.get("recommendations")),
        similar_patterns=_string_list(data.get("similarPatterns")),
        source=source,
    )


class AIAnalyzer:
    """LLM-backed transaction analysis with heuristic fallback."""

    def __init__(
        self,
        provider: Optional[LLMProvider] = None,
        heuristic: Optional[HeuristicScorer] = None,
    ):
        self.provider = provider
        self.heuristic = heuristic or HeuristicScorer()

    async def analyze(self, context: TransactionContext) -> FraudAnalysis:
        if self.provider is None:
            return self._fallback(context, reason="no_provider")

        try:
            result = await self.provider.complete(SYSTEM_PROMPT, build_analysis_prompt(context))
        except Exception as e:
            logger.error("llm_provider_raised", error=str(e))
            return self._fallback(context, reason="provider_exception")
        if not result.ok:
            return self._fallback(context, reason=result.error or "empty_response")

        try:
            analysis = parse_analysis(result.text, source=f"ai:{result.provider}")
        except AnalysisParseError as e:
            logger.warning(
                "llm_json_parse_failed",
                provider=result.provider,
                error=str(e),
                response_preview=result.text[:200],
            )
            return self._fallback(context, reason="parse_error")

        logger.info(
            "ai_analysis_completed",
            provider=result.provider,
            risk_level=analysis.risk_level,
            risk_score=analysis.risk_score,
        )
        return analysis

    def _fallback(self, context: TransactionContext, reason: str) -> FraudAnalysis:
        result = self.heuristic.score(
            context.amount, context.description, context.timestamp, context.ip
        )
        logger.info(
            "ai_analysis_fallback",
            reason=reason,
            risk_level=result.risk_level,
            risk_score=result.risk_score,
        )
        return result.to_analysis()
