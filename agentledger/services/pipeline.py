"""
Transaction Risk Pipeline.

    request → AIAnalyzer (heuristic fallback) → SimilarityFinder
            → store transaction → store report (score ≥ threshold)

Runs sequentially inside one request. Alerts are not sent from here;
the alerts API dispatches them on demand.
"""

import json
from dataclasses import dataclass
from typing import Optional

import structlog

from agentledger.db.repositories.base import FraudRepository
from agentledger.schemas.fraud import FraudAnalysis, FraudDetectionRequest, SimilarTransaction
from agentledger.schemas.records import ReportRecord, TransactionRecord
from agentledger.scoring.ai_analyzer import AIAnalyzer, TransactionContext
from agentledger.scoring.similarity import SimilarityFinder

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    transaction: TransactionRecord
    analysis: FraudAnalysis
    similar: list[SimilarTransaction]
    report: Optional[ReportRecord] = None


def report_title(analysis: FraudAnalysis, description: str) -> str:
    short = description if len(description) <= 60 else description[:57] + "..."
    return f"{analysis.risk_level} risk transaction: {short}"


def serialize_similar_cases(similar: list[SimilarTransaction]) -> str:
    return json.dumps(
        [
            {
                "id": s.id,
                "amount": s.amount,
                "description": s.description,
                "riskLevel": str(s.risk_level),
                "similarity": s.similarity,
            }
            for s in similar
        ]
    )


class TransactionRiskPipeline:
    def __init__(
        self,
        repository: FraudRepository,
        analyzer: AIAnalyzer,
        similarity: SimilarityFinder,
        report_threshold: int = 60,
    ):
        self.repository = repository
        self.analyzer = analyzer
        self.similarity = similarity
        self.report_threshold = report_threshold

    async def run(self, request: FraudDetectionRequest) -> PipelineResult:
        context = TransactionContext(
            amount=request.amount,
            description=request.description,
            user_id=request.user_id,
            ip=request.ip,
            user_agent=request.user_agent,
            timestamp=request.timestamp,
            merchant=request.merchant,
            location=request.location,
        )
        analysis = await self.analyzer.analyze(context)
        similar = await self.similarity.find_for(
            request.user_id, request.amount, request.description
        )

        transaction = await self.repository.add_transaction(
            user_id=request.user_id,
            amount=request.amount,
            description=request.description,
            risk_level=analysis.risk_level,
            ip=request.ip,
        )

        report = None
        if analysis.risk_score >= self.report_threshold:
            report = await self.repository.add_report(
                transaction_id=transaction.id,
                title=report_title(analysis, request.description),
                explanation=analysis.explanation,
                risk_score=analysis.risk_score,
                similar_cases=serialize_similar_cases(similar),
            )

        logger.info(
            "transaction_scored",
            transaction_id=transaction.id,
            risk_level=analysis.risk_level,
            risk_score=analysis.risk_score,
            source=analysis.source,
            similar=len(similar),
            report_id=report.id if report else None,
        )
        return PipelineResult(
            transaction=transaction,
            analysis=analysis,
            similar=similar,
            report=report,
        )
