"""
Fraud Detection API Schemas.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from agentledger.schemas.common import CamelModel, RiskLevel


class FraudDetectionRequest(CamelModel):
    amount: float = Field(..., ge=0)
    description: str = Field(..., min_length=1, max_length=2000)
    user_id: str = Field(..., min_length=1, max_length=64)
    ip: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = None
    timestamp: Optional[datetime] = None
    merchant: Optional[str] = None
    location: Optional[str] = None


class FraudAnalysis(CamelModel):
    """Risk assessment in one shape, whether it came from an LLM or heuristics."""

    risk_level: RiskLevel
    risk_score: int = Field(ge=0, le=100)
    explanation: str
    confidence: int = Field(ge=0, le=100)
    red_flags: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    similar_patterns: List[str] = Field(default_factory=list)
    source: str = "heuristic"


class SimilarTransaction(CamelModel):
    id: str
    amount: float
    description: str
    risk_level: RiskLevel
    is_fraudulent: bool
    similarity: float
    created_at: datetime


class TransactionOut(CamelModel):
    id: str
    amount: float
    description: str
    risk_level: RiskLevel
    is_fraudulent: bool
    created_at: datetime


class FraudDetectionResponse(CamelModel):
    success: bool = True
    transaction: TransactionOut
    fraud_analysis: FraudAnalysis
    similar_transactions: List[SimilarTransaction] = Field(default_factory=list)
    report_id: Optional[str] = None


class UserSummary(CamelModel):
    name: str
    email: str


class TransactionListItem(TransactionOut):
    user_id: str
    ip: Optional[str] = None
    user: Optional[UserSummary] = None


class TransactionListResponse(CamelModel):
    success: bool = True
    transactions: List[TransactionListItem]
