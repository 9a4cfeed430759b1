"""
Analytics Service.

Counts, amount sum and the risk-level histogram come from the repository
(cached in Redis when configured). The trend, keyword and user-activity
series are synthetic sample data for the dashboard charts.
"""

import random
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import structlog

from agentledger.db.repositories.base import FraudRepository
from agentledger.exceptions import ValidationFailed
from agentledger.schemas.analytics import (
    AnalyticsResponse,
    AnalyticsSummary,
    KeywordCount,
    RiskDistribution,
    TrendPoint,
    UserActivity,
)
from agentledger.schemas.common import RiskLevel
from agentledger.services.cache import RedisCache, analytics_key

logger = structlog.get_logger(__name__)

RANGE_DAYS = {"7d": 7, "30d": 30, "90d": 90}

SAMPLE_FRAUD_KEYWORDS = [
    ("refund", 45),
    ("chargeback", 32),
    ("duplicate", 28),
    ("urgent", 22),
    ("immediate", 18),
]

SAMPLE_USER_ACTIVITY = [
    ("user_123", 156, 12),
    ("user_456", 89, 8),
    ("user_789", 134, 5),
    ("user_101", 67, 3),
    ("user_202", 98, 7),
]

WEEKEND_MULTIPLIER = 0.6


class AnalyticsService:
    def __init__(
        self,
        repository: FraudRepository,
        cache: Optional[RedisCache] = None,
        cache_ttl: int = 60,
        rng: Optional[random.Random] = None,
    ):
        self.repository = repository
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.rng = rng or random.Random()

    @staticmethod
    def range_days(range_: str) -> int:
        try:
            return RANGE_DAYS[range_]
        except KeyError:
            raise ValidationFailed(
                f"Invalid range '{range_}'. Use one of: {', '.join(RANGE_DAYS)}"
            ) from None

    async def summary(self, user_id: str, range_: str, now: Optional[datetime] = None) -> AnalyticsSummary:
        days = self.range_days(range_)
        key = analytics_key(user_id, range_)
        if self.cache is not None:
            cached = await self.cache.get(key)
            if cached is not None:
                return AnalyticsSummary.model_validate(cached)

        now = now or datetime.now(timezone.utc)
        stats = await self.repository.transaction_stats(user_id, since=now - timedelta(days=days))
        fraud_rate = (stats.fraudulent / stats.total * 100) if stats.total else 0.0

        summary = AnalyticsSummary(
            total_transactions=stats.total,
            fraudulent_transactions=stats.fraudulent,
            total_amount=round(stats.total_amount, 2),
            fraud_rate=round(fraud_rate, 2),
            risk_distribution=RiskDistribution(
                low=stats.by_level.get(RiskLevel.LOW, 0),
                medium=stats.by_level.get(RiskLevel.MEDIUM, 0),
                high=stats.by_level.get(RiskLevel.HIGH, 0),
                critical=stats.by_level.get(RiskLevel.CRITICAL, 0),
            ),
        )
        if self.cache is not None:
            await self.cache.set(key, summary.model_dump(mode="json"), ttl_seconds=self.cache_ttl)
        return summary

    def weekly_trend(self, start: date, end: date) -> list[TrendPoint]:
        """One synthetic point per day, weekends damped."""
        points = []
        current = start
        while current <= end:
            multiplier = WEEKEND_MULTIPLIER if current.weekday() >= 5 else 1.0
            transactions = self.rng.randint(15, 44)
            fraudulent = self.rng.randint(1, 5)
            points.append(
                TrendPoint(
                    date=current.isoformat(),
                    transactions=int(transactions * multiplier),
                    fraudulent=int(fraudulent * multiplier),
                )
            )
            current += timedelta(days=1)
        return points

    async def build(self, user_id: str, range_: str = "7d") -> AnalyticsResponse:
        now = datetime.now(timezone.utc)
        summary = await self.summary(user_id, range_, now=now)
        start = (now - timedelta(days=self.range_days(range_))).date()

        logger.info(
            "analytics_computed",
            range=range_,
            total=summary.total_transactions,
            fraudulent=summary.fraudulent_transactions,
        )
        return AnalyticsResponse(
            range=range_,
            **summary.model_dump(),
            weekly_trend=self.weekly_trend(start, now.date()),
            top_fraud_keywords=[KeywordCount(keyword=k, count=c) for k, c in SAMPLE_FRAUD_KEYWORDS],
            user_activity=[
                UserActivity(user_id=u, transaction_count=t, fraud_count=f)
                for u, t, f in SAMPLE_USER_ACTIVITY
            ],
        )
