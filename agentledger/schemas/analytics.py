"""
Analytics API Schemas.

totalTransactions, fraudulentTransactions, totalAmount, fraudRate and
riskDistribution come from stored data. weeklyTrend, topFraudKeywords and
userActivity are synthetic sample series for the dashboard charts.
"""

from typing import List

from pydantic import Field

from agentledger.schemas.common import CamelModel


class RiskDistribution(CamelModel):
    low: int = 0
    medium: int = 0
    high: int = 0
    critical: int = 0


class TrendPoint(CamelModel):
    date: str
    transactions: int
    fraudulent: int


class KeywordCount(CamelModel):
    keyword: str
    count: int


class UserActivity(CamelModel):
    user_id: str
    transaction_count: int
    fraud_count: int


class AnalyticsSummary(CamelModel):
    """The cacheable, data-derived part of the analytics response."""

    total_transactions: int = 0
    fraudulent_transactions: int = 0
    total_amount: float = 0.0
    fraud_rate: float = Field(default=0.0, ge=0, le=100)
    risk_distribution: RiskDistribution = Field(default_factory=RiskDistribution)


class AnalyticsResponse(AnalyticsSummary):
    range: str
    weekly_trend: List[TrendPoint] = Field(default_factory=list)
    top_fraud_keywords: List[KeywordCount] = Field(default_factory=list)
    user_activity: List[UserActivity] = Field(default_factory=list)
