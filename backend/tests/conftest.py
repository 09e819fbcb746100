"""
Общие фикстуры: фейковый WebSocket и координатор с чистым реестром.
"""
import asyncio
import json
from typing import Any

import pytest
from starlette.websockets import WebSocketState

from chessrelay.registry import GameRegistry
from chessrelay.ws_handlers import SessionCoordinator
from chessrelay.ws_manager import Connection


class FakeWebSocket:
    """Минимальная замена starlette WebSocket: складывает отправленное в sent."""

    def __init__(self) -> None:
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.sent: list[dict[str, Any]] = []
        # если задан, send_json зависает до gate.set()
        self.gate: asyncio.Event | None = None
        self.entered = asyncio.Event()

    async def send_json(self, data: dict[str, Any]) -> None:
        if self.client_state != WebSocketState.CONNECTED:
            raise RuntimeError("Cannot call send once a close message has been sent.")
        # как при реальной отправке: копия через JSON
        self.sent.append(json.loads(json.dumps(data)))
        if self.gate is not None:
            self.entered.set()
            await self.gate.wait()

    def hold(self) -> asyncio.Event:
        self.gate = asyncio.Event()
        return self.gate

    def drop(self) -> None:
        self.client_state = WebSocketState.DISCONNECTED
        self.application_state = WebSocketState.DISCONNECTED


class FakeConnection(Connection):
    def __init__(self, connection_id: str | None = None) -> None:
        super().__init__(FakeWebSocket(), connection_id)

    @property
    def sent(self) -> list[dict[str, Any]]:
        return self.ws.sent

    @property
    def last(self) -> dict[str, Any]:
        return self.ws.sent[-1]

    def clear(self) -> None:
        self.ws.sent.clear()


@pytest.fixture
def registry() -> GameRegistry:
    return GameRegistry()


@pytest.fixture
def coordinator(registry) -> SessionCoordinator:
    return SessionCoordinator(registry)


@pytest.fixture
def make_conn():
    counter = iter(range(1, 1000))

    def factory() -> FakeConnection:
        return FakeConnection(f"conn-{next(counter)}")

    return factory
