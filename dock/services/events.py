from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Set, Deque, List, Optional, Callable, Awaitable

from depot.shared.gate import GateLogger

_log = GateLogger.get("Events")


class EventBus:
    """
    Fan-out of storage change events to SSE subscribers.

    Every event gets an increasing id so a reconnecting client can resume
    from the last id it saw, as long as that event is still in history.
    """

    def __init__(self, max_history: int = 100, max_queue: int = 256):
        self._subscribers: Set[asyncio.Queue] = set()
        self._history: Deque[dict] = deque(maxlen=max_history)
        self._max_queue = max_queue
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def subscribe(self, last_event_id: Optional[int] = None) -> asyncio.Queue:
        """
        Subscribe to events, returns a queue for receiving.

        Args:
            last_event_id: Replay newer events from history first
        """
        queue = asyncio.Queue(maxsize=self._max_queue)
        async with self._lock:
            if last_event_id is not None:
                for event in self.get_since(last_event_id)[-self._max_queue:]:
                    queue.put_nowait(event)
            self._subscribers.add(queue)
        return queue

    async def unsubscribe(self, queue: asyncio.Queue) -> None:
        """Unsubscribe from events."""
        async with self._lock:
            self._subscribers.discard(queue)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, event_type: str, data: dict) -> dict:
        """Record an event and queue it for every subscriber."""
        async with self._lock:
            event = {
                "id": self._next_id,
                "type": event_type,
                "data": data,
                "timestamp": time.time(),
            }
            self._next_id += 1
            self._history.append(event)

            for queue in self._subscribers:
                try:
                    queue.put_nowait(event)
                except asyncio.QueueFull:
                    _log.debug(f"Dropped event {event['id']} for a slow subscriber")
        return event

    def get_recent(self, count: int = 20) -> List[dict]:
        """Get recent events from history."""
        if count <= 0:
            return []
        return list(self._history)[-count:]

    def get_since(self, event_id: int) -> List[dict]:
        """Events in history newer than event_id."""
        return [event for event in self._history if event["id"] > event_id]


def build_emitter(event_bus: EventBus) -> Callable[..., Awaitable[None]]:
    async def emit_event(event_type: str, message: str, **kwargs) -> None:
        data = {"message": message, **kwargs}
        await event_bus.publish(event_type, data)

    return emit_event


__all__ = ["EventBus", "build_emitter"]
