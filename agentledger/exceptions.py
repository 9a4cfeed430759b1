"""
AgentLedger exceptions.

Every error the API reports to a client derives from AgentLedgerError and
carries its HTTP status. Handlers render them as a flat body:

    {"error": "human-readable message"}

External-dependency failures (LLM, webhook, SMTP) never surface here;
those paths fall back instead of raising.
"""

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = structlog.get_logger(__name__)


class AgentLedgerError(Exception):
    """Base exception for AgentLedger."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(AgentLedgerError):
    status_code = 400
    default_message = "Invalid request"


class AuthenticationRequired(AgentLedgerError):
    status_code = 401
    default_message = "Authentication required"


class NotFound(AgentLedgerError):
    status_code = 404
    default_message = "Not found"


class Conflict(AgentLedgerError):
    status_code = 409
    default_message = "Conflict"


class InvalidStateTransition(Conflict):
    """Raised when a terminal alert is asked to change status again."""

    default_message = "Alert is no longer pending"


def error_body(message: str) -> dict:
    return {"error": message}


def _describe_validation_error(exc: RequestValidationError) -> str:
    missing = []
    problems = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        if err.get("type") == "missing":
            missing.append(field)
        else:
            problems.append(f"{field}: {err.get('msg', 'invalid value')}")
    if missing:
        return f"Missing required fields: {', '.join(missing)}"
    return "; ".join(problems) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """Install flat-JSON handlers for domain, HTTP and validation errors."""

    @app.exception_handler(AgentLedgerError)
    async def _agentledger_error(request: Request, exc: AgentLedgerError):
        if exc.status_code >= 500:
            logger.error("request_failed", path=request.url.path, error=exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        message = _describe_validation_error(exc)
        logger.info("request_validation_failed", path=request.url.path, detail=message)
        return JSONResponse(status_code=400, content=error_body(message))

    @app.exception_handler(HTTPException)
    async def _http_error(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )
