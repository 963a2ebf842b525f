"""FastAPI WebSocket adapter for the workspace transport contract."""
from __future__ import annotations

from fastapi.websockets import WebSocket, WebSocketState


class WebSocketTransport:
    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str) -> None:
        await self._websocket.send_text(data)
