"""
Heuristic Scorer.

Fixed additive rules, each contributing independently:
1. Amount: > 10,000 adds 30; otherwise > 5,000 adds 20
2. Suspicious keywords in the description: 25 per matched keyword
3. Off-hours: local hour outside [6, 22) adds 15

The total is clamped to [0, 100] and banded into a RiskLevel.
Pure: same inputs, same result.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from agentledger.schemas.common import RiskLevel
from agentledger.schemas.fraud import FraudAnalysis

HIGH_AMOUNT = 10_000
MODERATE_AMOUNT = 5_000
SUSPICIOUS_KEYWORDS = (
    "cryptocurrency",
    "wire transfer",
    "international",
    "bitcoin",
    "ethereum",
)
BUSINESS_HOURS = (6, 22)

LEVEL_RECOMMENDATIONS: dict[RiskLevel, tuple[str, ...]] = {
    RiskLevel.CRITICAL: ("Immediate manual review required", "Consider blocking transaction"),
    RiskLevel.HIGH: ("Enhanced monitoring required", "Additional verification needed"),
    RiskLevel.MEDIUM: ("Monitor closely", "Consider additional checks"),
    RiskLevel.LOW: ("Continue normal processing",),
}


@dataclass(frozen=True)
class HeuristicResult:
    risk_score: int
    risk_level: RiskLevel
    reasons: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @property
    def confidence(self) -> int:
        return max(60, 100 - self.risk_score)

    def to_analysis(self) -> FraudAnalysis:
        """Adapt to the LLM response shape: reasons become red flags."""
        if self.reasons:
            explanation = (
                f"Rule-based assessment scored {self.risk_score}/100: "
                + "; ".join(self.reasons) + "."
            )
        else:
            explanation = "Rule-based assessment found no risk indicators."
        return FraudAnalysis(
            risk_level=self.risk_level,
            risk_score=self.risk_score,
            explanation=explanation,
            confidence=self.confidence,
            red_flags=list(self.reasons),
            recommendations=list(self.recommendations),
            similar_patterns=[],
            source="heuristic",
        )


class HeuristicScorer:
    """Scores a transaction from amount, description keywords and time of day."""

    def __init__(self, keywords: tuple[str, ...] = SUSPICIOUS_KEYWORDS):
        self.keywords = tuple(k.lower() for k in keywords)

    def score(
        self,
        amount: float,
        description: str,
        timestamp: Optional[datetime] = None,
        ip: Optional[str] = None,
    ) -> HeuristicResult:
        score = 0
        reasons: list[str] = []
        recommendations: list[str] = []

        # ── Amount ────────────────────────────────────────────────────
        if amount > HIGH_AMOUNT:
            score += 30
            reasons.append("High transaction amount")
            recommendations.append("Verify large transaction")
        elif amount > MODERATE_AMOUNT:
            score += 20
            reasons.append("Moderately high transaction amount")

        # ── Keywords ──────────────────────────────────────────────────
        for keyword in self.matched_keywords(description):
            score += 25
            reasons.append(f"Suspicious keyword: {keyword}")

        # ── Time of day ───────────────────────────────────────────────
        if not self.within_business_hours(timestamp):
            score += 15
            reasons.append("Unusual transaction time")

        score = max(0, min(score, 100))
        level = RiskLevel.from_score(score)
        recommendations.extend(LEVEL_RECOMMENDATIONS[level])

        return HeuristicResult(
            risk_score=score,
            risk_level=level,
            reasons=reasons,
            recommendations=recommendations,
        )

    def matched_keywords(self, description: str) -> list[str]:
        text = (description or "").lower()
        return [k for k in self.keywords if k in text]

    @staticmethod
    def within_business_hours(timestamp: Optional[datetime] = None) -> bool:
        """Aware timestamps are converted to server-local time first."""
        when = timestamp or datetime.now()
        if when.tzinfo is not None:
            when = when.astimezone()
        start, end = BUSINESS_HOURS
        return start <= when.hour < end
