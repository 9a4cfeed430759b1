"""
Vector Search Schemas.
"""

from typing import List

from pydantic import Field

from agentledger.schemas.common import CamelModel
from agentledger.schemas.fraud import TransactionOut


class VectorSearchRequest(CamelModel):
    query: str = Field(..., min_length=1, max_length=500)
    limit: int = Field(default=10, ge=1, le=50)


class SearchHit(CamelModel):
    transaction: TransactionOut
    score: float
    cosine: float
    keyword_overlap: float


class VectorSearchResponse(CamelModel):
    success: bool = True
    query: str
    results: List[SearchHit]
