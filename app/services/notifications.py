"""Best-effort fan-out of dashboard events to connected WebSocket sessions.

Delivery is at-most-once per connected session with no replay: a session that
connects after an event must re-fetch current state through the REST API.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)

ORDER_CREATED = "order_created"
INVENTORY_UPDATED = "inventory_updated"
CAMPAIGN_CREATED = "campaign_created"
AI_INSIGHT_CREATED = "ai_insight_created"
CONTENT_CREATED = "content_created"


class EventBroadcaster:
    """Tracks live dashboard sessions and pushes typed events to all of them."""

    def __init__(self) -> None:
        self._sessions: Set[WebSocket] = set()
        self._pending: Set[asyncio.Task] = set()

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._sessions.add(websocket)
        logger.info("Dashboard session connected (%s active)", len(self._sessions))

    def disconnect(self, websocket: WebSocket) -> None:
        self._sessions.discard(websocket)
        logger.info("Dashboard session disconnected (%s active)", len(self._sessions))

    async def broadcast(self, event_type: str, payload: Any) -> int:
        """Send the event to every session; returns how many sessions received it."""

        message = {"type": event_type, "data": jsonable_encoder(payload)}
        delivered = 0
        for websocket in list(self._sessions):
            try:
                await websocket.send_json(message)
            except Exception as exc:  # noqa: BLE001 - any transport failure drops the session
                logger.info("Dropping dashboard session after failed %s delivery: %s", event_type, exc)
                self._sessions.discard(websocket)
                continue
            delivered += 1
        return delivered

    def notify(self, event_type: str, payload: Any) -> None:
        """Schedule a broadcast without waiting for it."""

        if not self._sessions:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, %s event not delivered", event_type)
            return
        task = loop.create_task(self.broadcast(event_type, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)


broadcaster = EventBroadcaster()


__all__ = [
    "AI_INSIGHT_CREATED",
    "CAMPAIGN_CREATED",
    "CONTENT_CREATED",
    "EventBroadcaster",
    "INVENTORY_UPDATED",
    "ORDER_CREATED",
    "broadcaster",
]
