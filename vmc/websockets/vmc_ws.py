import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..registry import WebSocketObserver

router = APIRouter()

_logger = logging.getLogger(__name__)

@router.websocket("/")
@router.websocket("/ws")
async def ws_vmc(ws: WebSocket):
    await ws.accept()
    controller = ws.app.state.controller
    observer = WebSocketObserver(ws)
    await controller.connect(observer)

    try:
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            # text and binary frames both carry JSON commands
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            await controller.handle_message(observer, raw)
    except WebSocketDisconnect as e:
        _logger.debug("WebSocket %s closed with code %s", observer.id, e.code)
    finally:
        await controller.disconnect(observer)
