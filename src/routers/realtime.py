"""
Realtime chat WebSocket route.
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from core.chats import ChatHub


def create_realtime_router(hub: ChatHub) -> APIRouter:
    router = APIRouter(tags=["Realtime"])

    @router.websocket("/ws")
    async def chat_socket(websocket: WebSocket) -> None:
        peer = await hub.connect(websocket)
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                if message.get("text") is None:
                    hub.ignore_frame(peer, "Ignoring non-text frame")
                    continue
                await hub.handle_message(peer, message["text"])
        except WebSocketDisconnect:
            pass
        finally:
            await hub.disconnect(peer)

    return router
