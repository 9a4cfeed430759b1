"""
Vector Search API Endpoint.

POST /search/vector — rank stored transactions against a free-text query
"""

from fastapi import APIRouter, Depends

from agentledger.api.deps import get_registry
from agentledger.auth.dependencies import get_current_user
from agentledger.schemas.fraud import TransactionOut
from agentledger.schemas.records import UserRecord
from agentledger.schemas.search import SearchHit, VectorSearchRequest, VectorSearchResponse
from agentledger.services.registry import ServiceRegistry

router = APIRouter(prefix="/search", tags=["search"])


@router.post("/vector", response_model=VectorSearchResponse)
async def vector_search(
    body: VectorSearchRequest,
    user: UserRecord = Depends(get_current_user),
    registry: ServiceRegistry = Depends(get_registry),
):
    ranked = await registry.search.search(body.query, limit=body.limit)
    return VectorSearchResponse(
        query=body.query,
        results=[
            SearchHit(
                transaction=TransactionOut.model_validate(r.transaction),
                score=r.score,
                cosine=r.cosine,
                keyword_overlap=r.keyword_overlap,
            )
            for r in ranked
        ],
    )
