"""
Vector Search.

Transactions and the query are embedded with feature hashing: each
lower-cased token is hashed (blake2b) to a bucket and a sign, and the
vector is L2-normalized. Deterministic, no external API. Ranking blends
cosine similarity with plain keyword overlap.
"""

import hashlib
import math
from dataclasses import dataclass
from typing import Sequence

import structlog

from agentledger.db.repositories.base import FraudRepository
from agentledger.schemas.records import TransactionRecord
from agentledger.scoring.similarity import jaccard, word_set

logger = structlog.get_logger(__name__)

EMBEDDING_DIMS = 256
COSINE_WEIGHT = 0.7
KEYWORD_WEIGHT = 0.3


def pseudo_embedding(text: str, dims: int = EMBEDDING_DIMS) -> list[float]:
    vector = [0.0] * dims
    for token in (text or "").lower().split():
        digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
        bucket = int.from_bytes(digest[:4], "big") % dims
        sign = 1.0 if digest[4] & 1 else -1.0
        vector[bucket] += sign
    norm = math.sqrt(sum(v * v for v in vector))
    if norm == 0:
        return vector
    return [v / norm for v in vector]


def cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


@dataclass(frozen=True)
class RankedTransaction:
    transaction: TransactionRecord
    score: float
    cosine: float
    keyword_overlap: float


class VectorSearchService:
    def __init__(self, repository: FraudRepository, corpus_limit: int = 500):
        self.repository = repository
        self.corpus_limit = corpus_limit

    def rank(
        self, query: str, transactions: Sequence[TransactionRecord], limit: int = 10
    ) -> list[RankedTransaction]:
        query_vec = pseudo_embedding(query)
        query_words = word_set(query)
        ranked = []
        for txn in transactions:
            cos = max(0.0, cosine(query_vec, pseudo_embedding(txn.description)))
            overlap = jaccard(query_words, word_set(txn.description))
            score = COSINE_WEIGHT * cos + KEYWORD_WEIGHT * overlap
            if score > 0:
                ranked.append(
                    RankedTransaction(
                        transaction=txn,
                        score=round(score, 4),
                        cosine=round(cos, 4),
                        keyword_overlap=round(overlap, 4),
                    )
                )
        ranked.sort(key=lambda r: r.score, reverse=True)
        return ranked[:limit]

    async def search(self, query: str, limit: int = 10) -> list[RankedTransaction]:
        corpus = await self.repository.list_transactions(user_id=None, limit=self.corpus_limit)
        results = self.rank(query, corpus, limit=limit)
        logger.info("vector_search", corpus=len(corpus), results=len(results))
        return results
