"""
Similarity Finder.

similarity(a, b) = mean(amount_similarity, description_jaccard)

    amount_similarity   = 1 - |a - b| / max(a, b)     (1.0 when both are 0)
    description_jaccard = |A ∩ B| / |A ∪ B| over lower-cased whitespace tokens

Candidates scoring above 0.7 are kept, best first, at most five.
"""

from datetime import timedelta
from typing import Iterable, Optional

import structlog

from agentledger.db.compat import utcnow
from agentledger.db.repositories.base import FraudRepository
from agentledger.schemas.fraud import SimilarTransaction
from agentledger.schemas.records import TransactionRecord

logger = structlog.get_logger(__name__)

SIMILARITY_THRESHOLD = 0.7
MAX_RESULTS = 5


def amount_similarity(a: float, b: float) -> float:
    largest = max(a, b)
    if largest <= 0:
        return 1.0
    return 1.0 - abs(a - b) / largest


def word_set(text: str) -> set[str]:
    return set((text or "").lower().split())


def jaccard(a: set[str], b: set[str]) -> float:
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def transaction_similarity(
    amount_a: float, description_a: str, amount_b: float, description_b: str
) -> float:
    return (
        amount_similarity(amount_a, amount_b)
        + jaccard(word_set(description_a), word_set(description_b))
    ) / 2


class SimilarityFinder:
    def __init__(
        self,
        repository: Optional[FraudRepository] = None,
        window_days: int = 30,
        candidate_limit: int = 100,
        threshold: float = SIMILARITY_THRESHOLD,
        max_results: int = MAX_RESULTS,
    ):
        self.repository = repository
        self.window_days = window_days
        self.candidate_limit = candidate_limit
        self.threshold = threshold
        self.max_results = max_results

    def rank(
        self,
        amount: float,
        description: str,
        candidates: Iterable[TransactionRecord],
    ) -> list[SimilarTransaction]:
        scored = []
        for candidate in candidates:
            similarity = transaction_similarity(
                amount, description, candidate.amount, candidate.description
            )
            if similarity > self.threshold:
                scored.append((similarity, candidate))

        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [
            SimilarTransaction(
                id=c.id,
                amount=c.amount,
                description=c.description,
                risk_level=c.risk_level,
                is_fraudulent=c.is_fraudulent,
                similarity=round(s, 4),
                created_at=c.created_at,
            )
            for s, c in scored[: self.max_results]
        ]

    async def find_for(
        self, user_id: str, amount: float, description: str
    ) -> list[SimilarTransaction]:
        """Rank other users' transactions from the recent window."""
        if self.repository is None:
            raise RuntimeError("SimilarityFinder.find_for needs a repository")
        since = utcnow() - timedelta(days=self.window_days)
        try:
            candidates = await self.repository.recent_transactions(
                since=since, limit=self.candidate_limit, exclude_user_id=user_id
            )
        except Exception as e:
            # Similar cases are advisory; scoring goes on without them.
            logger.error("similar_transactions_failed", user_id=user_id, error=str(e))
            return []
        matches = self.rank(amount, description, candidates)
        logger.debug(
            "similar_transactions_found",
            candidates=len(candidates),
            matches=len(matches),
        )
        return matches
