"""
Analytics API Endpoint.

GET /analytics?range=7d|30d|90d
"""

from fastapi import APIRouter, Depends, Query

from agentledger.api.deps import get_registry
from agentledger.auth.dependencies import get_current_user
from agentledger.schemas.analytics import AnalyticsResponse
from agentledger.schemas.records import UserRecord
from agentledger.services.registry import ServiceRegistry

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("", response_model=AnalyticsResponse)
async def get_analytics(
    range_: str = Query(default="7d", alias="range"),
    user: UserRecord = Depends(get_current_user),
    registry: ServiceRegistry = Depends(get_registry),
):
    """Dashboard analytics for the current user over the selected window."""
    return await registry.analytics.build(user.id, range_)
