"""
Fraud Detection API Endpoints.

POST /fraud-detection — score, store and return a transaction
GET  /fraud-detection — recent transactions, optionally for one user
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from agentledger.api.deps import get_registry
from agentledger.schemas.fraud import (
    FraudDetectionRequest,
    FraudDetectionResponse,
    TransactionListItem,
    TransactionListResponse,
    TransactionOut,
    UserSummary,
)
from agentledger.services.registry import ServiceRegistry

router = APIRouter(prefix="/fraud-detection", tags=["fraud-detection"])


@router.post("", response_model=FraudDetectionResponse)
async def detect_fraud(
    body: FraudDetectionRequest,
    registry: ServiceRegistry = Depends(get_registry),
):
    """Analyze a transaction. LLM failures fall back to heuristics, never to an error."""
    result = await registry.pipeline.run(body)
    return FraudDetectionResponse(
        transaction=TransactionOut.model_validate(result.transaction),
        fraud_analysis=result.analysis,
        similar_transactions=result.similar,
        report_id=result.report.id if result.report else None,
    )


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    limit: int = Query(default=10, ge=1, le=100),
    registry: ServiceRegistry = Depends(get_registry),
):
    """Most recent transactions first, each with its owner's name and email when known."""
    transactions = await registry.repository.list_transactions(user_id=user_id, limit=limit)
    users = await registry.repository.get_users({t.user_id for t in transactions})

    items = []
    for txn in transactions:
        owner = users.get(txn.user_id)
        items.append(
            TransactionListItem(
                **TransactionOut.model_validate(txn).model_dump(),
                user_id=txn.user_id,
                ip=txn.ip,
                user=UserSummary(name=owner.name, email=owner.email) if owner else None,
            )
        )
    return TransactionListResponse(transactions=items)
