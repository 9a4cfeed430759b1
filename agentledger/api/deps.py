"""
Shared API dependencies.
"""

from fastapi import Request

from agentledger.services.registry import ServiceRegistry


def get_registry(request: Request) -> ServiceRegistry:
    """The ServiceRegistry built at startup."""
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise RuntimeError("Service registry is not initialized")
    return registry
