"""
Domain records.

Both repository implementations hand these out, so routers and services
never see ORM objects. Records are frozen; updates produce a new record.
"""

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field, model_validator

from agentledger.schemas.common import (
    AlertChannel,
    AlertStatus,
    CamelModel,
    RiskLevel,
    UserRole,
)


class _Record(CamelModel):
    model_config = ConfigDict(frozen=True)


class UserRecord(_Record):
    id: str
    name: str
    email: str
    # None for OAuth-origin accounts.
    password_hash: Optional[str] = None
    role: UserRole = UserRole.COMPLIANCE
    image: Optional[str] = None
    created_at: datetime


class TransactionRecord(_Record):
    id: str
    user_id: str
    amount: float
    description: str
    ip: Optional[str] = None
    risk_level: RiskLevel
    is_fraudulent: bool
    created_at: datetime

    @model_validator(mode="after")
    def _fraud_flag_follows_level(self) -> "TransactionRecord":
        if self.is_fraudulent != self.risk_level.is_fraudulent:
            raise ValueError(
                f"is_fraudulent={self.is_fraudulent} contradicts risk_level={self.risk_level}"
            )
        return self


class ReportRecord(_Record):
    id: str
    transaction_id: str
    title: str
    explanation: str
    risk_score: int
    # JSON-serialized list of similar transaction summaries.
    similar_cases: str = "[]"
    created_at: datetime


class AlertRecord(_Record):
    id: str
    user_id: str
    report_id: Optional[str] = None
    channel: AlertChannel
    type: str = "FRAUD_DETECTED"
    message: str
    status: AlertStatus = AlertStatus.PENDING
    sent_at: Optional[datetime] = None
    created_at: datetime


class TransactionStats(_Record):
    """Aggregates over one user's transactions since a cutoff."""

    total: int = 0
    fraudulent: int = 0
    total_amount: float = 0.0
    by_level: dict[RiskLevel, int] = Field(default_factory=dict)
