"""
Подключения WebSocket: идентификатор соединения и безопасная отправка.
"""
import logging
from typing import Any
from uuid import uuid4

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect, WebSocketState

logger = logging.getLogger(__name__)


class Connection:
    def __init__(self, ws: WebSocket, connection_id: str | None = None):
        self.ws = ws
        self.connection_id = connection_id or uuid4().hex

    @property
    def is_open(self) -> bool:
        return (
            self.ws.client_state == WebSocketState.CONNECTED
            and self.ws.application_state == WebSocketState.CONNECTED
        )

    async def send(self, payload: dict[str, Any]) -> bool:
        """Отправить если соединение открыто. Ошибки транспорта не пробрасываются."""
        if not self.is_open:
            logger.debug("send skipped, %s is not open", self.connection_id)
            return False
        try:
            await self.ws.send_json(payload)
            return True
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            logger.warning("send to %s failed: %s", self.connection_id, e)
            return False

    def __repr__(self) -> str:
        return f"Connection({self.connection_id})"


async def safe_send(conn: Connection | None, payload: dict[str, Any]) -> bool:
    if conn is None:
        return False
    return await conn.send(payload)
