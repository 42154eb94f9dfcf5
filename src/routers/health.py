"""
Health check and monitoring API routes for Chat Relay.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from core.chats import ChatHub
from core.completion import CompletionService


def create_health_router(service: CompletionService, hub: ChatHub, app_name: str, app_version: str) -> APIRouter:
    """Create health router with service dependencies."""
    router = APIRouter(tags=["Health"])

    @router.get("/", include_in_schema=False)
    async def root_health_check() -> JSONResponse:
        """Basic health check and information endpoint."""
        return JSONResponse(
            content={
                "service": app_name,
                "version": app_version,
                "status": "healthy",
                "ai_configured": service.is_configured,
                "connected_users": hub.peer_count,
            }
        )

    @router.get("/health")
    async def docker_health_check() -> JSONResponse:
        """Container health check endpoint."""
        if not service.is_configured:
            return JSONResponse(
                content={"status": "unhealthy", "message": "Completion provider API key not configured"},
                status_code=503
            )
        return JSONResponse(content={"status": "healthy"})

    @router.get("/stats")
    async def get_stats() -> JSONResponse:
        """Request, cache and queue counters plus chat activity."""
        stats = service.get_stats()
        stats["hit_rate"] = round(service.stats.hit_rate, 3)
        stats["connected_users"] = hub.peer_count
        stats["chats"] = len(hub.store)
        return JSONResponse(content=stats)

    return router
