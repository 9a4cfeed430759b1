"""
AgentLedger — FastAPI Application.

Run: uvicorn agentledger.main:app --host 0.0.0.0 --port 8000

Routes (under API_PREFIX, default /api):
  - POST/GET /fraud-detection
  - GET/POST /alerts, POST /alerts/send, POST /alerts/{id}/retry
  - GET  /analytics?range=7d|30d|90d
  - POST /search/vector
  - POST /auth/register, /auth/login, /auth/logout, GET /auth/me
  - GET  /health, /ready   (no prefix)
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agentledger import __version__
from agentledger.config import Settings, get_settings
from agentledger.exceptions import register_exception_handlers
from agentledger.log_config import configure_logging
from agentledger.middleware.error_handler import ErrorHandlerMiddleware
from agentledger.middleware.request_context import RequestContextMiddleware
from agentledger.services.registry import ServiceRegistry

from agentledger.auth.router import router as auth_router
from agentledger.api.routers.alerts import router as alerts_router
from agentledger.api.routers.analytics import router as analytics_router
from agentledger.api.routers.fraud_detection import router as fraud_detection_router
from agentledger.api.routers.search import router as search_router

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[ServiceRegistry] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    A prebuilt registry (tests) is used as-is; otherwise one is built from
    settings during startup and closed on shutdown.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("agentledger_starting", version=__version__, environment=settings.environment)
        owned = app.state.registry is None
        if owned:
            app.state.registry = await ServiceRegistry.create(settings)
        yield
        if owned:
            await app.state.registry.close()
            app.state.registry = None
        logger.info("agentledger_shutdown")

    app = FastAPI(
        title=settings.app_name,
        description="Fraud monitoring API: transaction risk scoring, alerts, analytics.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.registry = registry

    register_exception_handlers(app)

    # ── Middleware (last added = outermost) ──────────────────────────
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(ErrorHandlerMiddleware, debug=settings.debug)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routes ────────────────────────────────────────────────────────
    prefix = settings.api_prefix.rstrip("/")
    app.include_router(auth_router, prefix=prefix)
    app.include_router(fraud_detection_router, prefix=prefix)
    app.include_router(alerts_router, prefix=prefix)
    app.include_router(analytics_router, prefix=prefix)
    app.include_router(search_router, prefix=prefix)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "healthy", "version": __version__}

    @app.get("/ready", tags=["health"])
    async def ready():
        if app.state.registry is None:
            return JSONResponse(status_code=503, content={"status": "starting"})
        return {"status": "ready", "storage": settings.storage_backend}

    return app


app = create_app()
