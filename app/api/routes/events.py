"""Push channel used by open dashboards to refresh without polling."""

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from app.api.dependencies import get_event_broadcaster
from app.services.notifications import EventBroadcaster

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def dashboard_events(
    websocket: WebSocket,
    events: EventBroadcaster = Depends(get_event_broadcaster),
) -> None:
    await events.connect(websocket)
    try:
        while True:
            message = await websocket.receive_text()
            # Sessions only listen; a ping keeps intermediaries from closing idle sockets.
            if message.strip().lower() == "ping":
                await websocket.send_json({"type": "pong", "data": None})
    except WebSocketDisconnect:
        pass
    finally:
        events.disconnect(websocket)
