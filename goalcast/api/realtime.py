import logging

import anyio
from fastapi import APIRouter, WebSocket

from goalcast.presence import PresenceRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def presence_socket(websocket: WebSocket) -> None:
    presence: PresenceRegistry = websocket.app.state.presence
    await websocket.accept()
    await presence.connect(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            await presence.handle_message(websocket, raw)
    except Exception:
        logger.exception("Presence socket failed")
    finally:
        # the server may cancel this task on close; peers still need the offline snapshot
        with anyio.CancelScope(shield=True):
            await presence.on_disconnect_or_error(websocket)
