"""
Service Registry — the application's explicit dependency container.

Built once at startup from a Settings object and stored on app.state;
routers reach it through agentledger.api.deps.get_registry. Nothing in
here is mutated after construction.

Usage:
    registry = await ServiceRegistry.create(settings)
    result = await registry.pipeline.run(request)
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import httpx
import structlog

from agentledger.alerting.dispatcher import AlertDispatcher, TestAlertSimulator, build_cascades
from agentledger.config import Settings
from agentledger.db.repositories import FraudRepository, build_repository
from agentledger.scoring.ai_analyzer import AIAnalyzer
from agentledger.scoring.heuristic import HeuristicScorer
from agentledger.scoring.similarity import SimilarityFinder
from agentledger.services.analytics_service import AnalyticsService
from agentledger.services.cache import RedisCache
from agentledger.services.llm_gateway import LLMProvider, build_llm_provider
from agentledger.services.pipeline import TransactionRiskPipeline
from agentledger.services.vector_search import VectorSearchService

logger = structlog.get_logger(__name__)

_UNSET = object()


@dataclass
class ServiceRegistry:
    settings: Settings
    repository: FraudRepository
    analyzer: AIAnalyzer
    similarity: SimilarityFinder
    pipeline: TransactionRiskPipeline
    dispatcher: AlertDispatcher
    test_alerts: TestAlertSimulator
    analytics: AnalyticsService
    search: VectorSearchService
    cache: Optional[RedisCache] = None

    @classmethod
    async def create(
        cls,
        settings: Settings,
        repository: Optional[FraudRepository] = None,
        llm_provider: object = _UNSET,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> "ServiceRegistry":
        """Wire every service. Keyword overrides exist for tests."""
        if repository is None:
            repository = await build_repository(settings)
        if llm_provider is _UNSET:
            llm_provider = build_llm_provider(settings, transport=http_transport)

        cache = RedisCache(settings.redis_url) if settings.redis_url else None
        heuristic = HeuristicScorer()
        analyzer = AIAnalyzer(provider=llm_provider, heuristic=heuristic)  # type: ignore[arg-type]
        similarity = SimilarityFinder(
            repository,
            window_days=settings.similarity_window_days,
            candidate_limit=settings.similarity_candidate_limit,
        )

        registry = cls(
            settings=settings,
            repository=repository,
            analyzer=analyzer,
            similarity=similarity,
            pipeline=TransactionRiskPipeline(
                repository,
                analyzer,
                similarity,
                report_threshold=settings.report_risk_threshold,
            ),
            dispatcher=AlertDispatcher(repository, build_cascades(settings, transport=http_transport)),
            test_alerts=TestAlertSimulator(
                repository,
                rng=rng,
                delay_seconds=settings.test_alert_delay_seconds,
                success_rate=settings.test_alert_success_rate,
                sleep=sleep,
            ),
            analytics=AnalyticsService(
                repository,
                cache=cache,
                cache_ttl=settings.analytics_cache_ttl,
                rng=rng,
            ),
            search=VectorSearchService(repository),
            cache=cache,
        )
        logger.info(
            "service_registry_initialized",
            storage=settings.storage_backend,
            llm_provider=getattr(llm_provider, "name", None),
            cache=cache is not None,
        )
        return registry

    async def close(self) -> None:
        if self.cache is not None:
            await self.cache.close()
        await self.repository.close()
