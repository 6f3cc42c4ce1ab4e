"""
Health check API endpoint.

Aggregates health status from the Depot gates.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Response


def create_router(StorageGate, event_bus) -> APIRouter:
    router = APIRouter()

    @router.get("/api/health")
    async def api_health(response: Response) -> Dict[str, Any]:
        """Overall health; 503 when the storage root is unusable."""
        storage = StorageGate.get_health_status()
        healthy = storage["healthy"] and StorageGate.is_healthy()
        if not healthy:
            response.status_code = 503

        return {
            "status": "healthy" if healthy else "unhealthy",
            "gates": {"StorageGate": storage},
            "event_subscribers": event_bus.subscriber_count,
        }

    return router


__all__ = ["create_router"]
