"""
Tests for the analytics service and its Redis-backed summary cache.
"""

import random
from datetime import date, datetime, timedelta, timezone

import pytest

from agentledger.exceptions import ValidationFailed
from agentledger.schemas.common import RiskLevel
from agentledger.services.analytics_service import AnalyticsService
from agentledger.services.cache import RedisCache, analytics_key

NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


class FakeRedis:
    """Just enough of redis.asyncio.Redis for RedisCache."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.ttls[key] = ex

    async def aclose(self):
        return None


async def _seed(repository, user_id="u-1"):
    await repository.add_transaction(user_id, 100, "a", RiskLevel.LOW, created_at=NOW - timedelta(days=1))
    await repository.add_transaction(user_id, 200, "b", RiskLevel.MEDIUM, created_at=NOW - timedelta(days=2))
    await repository.add_transaction(user_id, 15000, "c", RiskLevel.CRITICAL, created_at=NOW - timedelta(days=3))
    await repository.add_transaction(user_id, 9000, "d", RiskLevel.HIGH, created_at=NOW - timedelta(days=20))


@pytest.mark.asyncio
async def test_summary_counts_within_range(repository):
    await _seed(repository)
    service = AnalyticsService(repository)

    week = await service.summary("u-1", "7d", now=NOW)
    assert week.total_transactions == 3
    assert week.fraudulent_transactions == 1
    assert week.total_amount == 15300
    assert week.fraud_rate == 33.33
    assert week.risk_distribution.critical == 1
    assert week.risk_distribution.high == 0

    month = await service.summary("u-1", "30d", now=NOW)
    assert month.total_transactions == 4
    assert month.fraud_rate == 50.0


@pytest.mark.asyncio
async def test_summary_empty_has_zero_rate(repository):
    summary = await AnalyticsService(repository).summary("nobody", "90d", now=NOW)
    assert summary.total_transactions == 0
    assert summary.fraud_rate == 0.0


def test_invalid_range():
    with pytest.raises(ValidationFailed):
        AnalyticsService.range_days("1y")


def test_weekly_trend_one_point_per_day(repository):
    service = AnalyticsService(repository, rng=random.Random(7))
    points = service.weekly_trend(date(2024, 5, 6), date(2024, 5, 12))  # Mon..Sun

    assert [p.date for p in points][0] == "2024-05-06"
    assert len(points) == 7
    weekend = points[5:]
    assert all(p.transactions <= int(44 * 0.6) for p in weekend)
    assert all(15 <= p.transactions <= 44 for p in points[:5])


@pytest.mark.asyncio
async def test_build_includes_sample_series(repository):
    response = await AnalyticsService(repository, rng=random.Random(1)).build("u-1", "30d")

    assert response.range == "30d"
    assert len(response.weekly_trend) == 31
    assert response.top_fraud_keywords[0].keyword == "refund"
    assert len(response.user_activity) == 5


@pytest.mark.asyncio
async def test_summary_served_from_cache(repository):
    await _seed(repository)
    fake = FakeRedis()
    service = AnalyticsService(repository, cache=RedisCache("", client=fake), cache_ttl=45)

    first = await service.summary("u-1", "7d", now=NOW)
    assert fake.ttls[analytics_key("u-1", "7d")] == 45

    # new data is not visible until the entry expires
    await repository.add_transaction("u-1", 1, "e", RiskLevel.LOW, created_at=NOW)
    second = await service.summary("u-1", "7d", now=NOW)
    assert second == first


@pytest.mark.asyncio
async def test_unreachable_redis_degrades_to_miss():
    cache = RedisCache("redis://127.0.0.1:1/0")
    assert await cache.get("k") is None
    assert await cache.set("k", {"a": 1}) is False
