from __future__ import annotations

import asyncio
import json
from typing import Optional

from fastapi import APIRouter, Header
from sse_starlette.sse import EventSourceResponse


def _parse_event_id(raw: Optional[str]) -> Optional[int]:
    try:
        return int(raw) if raw else None
    except ValueError:
        return None


def create_router(event_bus, keepalive_seconds: float = 30.0) -> APIRouter:
    router = APIRouter()

    @router.get("/api/events")
    async def api_events(last_event_id: Optional[str] = Header(default=None)):
        """SSE stream of storage changes so clients can refresh their tree."""
        resume_from = _parse_event_id(last_event_id)

        async def generate():
            queue = await event_bus.subscribe(resume_from)
            try:
                yield {
                    "event": "system",
                    "data": json.dumps({"message": "Connected to event stream"}),
                }

                while True:
                    try:
                        event = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
                        yield {
                            "id": str(event["id"]),
                            "event": event["type"],
                            "data": json.dumps(event["data"]),
                        }
                    except asyncio.TimeoutError:
                        yield {"event": "ping", "data": "{}"}

            except asyncio.CancelledError:
                pass
            finally:
                await event_bus.unsubscribe(queue)

        return EventSourceResponse(generate())

    @router.get("/api/events/recent")
    async def api_recent_events(count: int = 20, since: Optional[int] = None):
        """Recent storage events, or those after an event id (polling fallback)."""
        if since is not None:
            return {"events": event_bus.get_since(since)}
        return {"events": event_bus.get_recent(count)}

    return router


__all__ = ["create_router"]
