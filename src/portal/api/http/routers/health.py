"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from src.portal.api.http.app_data import ApplicationDependencies
from src.portal.core.services import InMemoryChatClient
from src.portal.runtime.context import get_config

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict[str, str]:
    """Liveness check: 200 OK as long as the process is running."""
    return {"status": "healthy", "service": "portal"}


@router.get("/ready", response_model=None)
async def readiness(request: Request) -> dict[str, Any] | JSONResponse:
    """Readiness check.

    Returns 200 if the database answers, 503 otherwise. The chat client is
    reported but only counts against readiness in production, where the
    in-memory fallback is not acceptable.
    """
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    config = get_config()

    checks: dict[str, Any] = {}
    all_healthy = True

    db_healthy = app_deps.database_service.health_check()
    checks["database"] = {
        "status": "healthy" if db_healthy else "unhealthy",
        "type": "sqlite" if config.database.is_sqlite else "postgresql",
    }
    if not db_healthy:
        all_healthy = False

    in_memory_chat = isinstance(app_deps.chat_client, InMemoryChatClient)
    checks["chat"] = {
        "status": "degraded" if in_memory_chat else "healthy",
        "type": "in-memory" if in_memory_chat else "discord",
    }
    if in_memory_chat and config.app.environment == "production":
        all_healthy = False

    checks["review_guard"] = {"backend": config.review.guard_backend}

    response = {
        "status": "ready" if all_healthy else "not_ready",
        "environment": config.app.environment,
        "checks": checks,
    }
    if not all_healthy:
        return JSONResponse(status_code=503, content=response)
    return response
