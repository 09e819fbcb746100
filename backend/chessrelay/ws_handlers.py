"""
Обработка сообщений WebSocket: create_game, join_game, make_move.
Соединение получает роль (партия, цвет) при создании партии или входе в неё;
при закрытии соединения место освобождается, пустая партия удаляется.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

from . import rules
from .constants import (
    CONNECTED_MESSAGE,
    ERR_ALREADY_IN_GAME,
    ERR_GAME_FULL,
    ERR_GAME_NOT_FOUND,
    ERR_ILLEGAL_MOVE,
    ERR_INVALID_JSON,
    ERR_INVALID_MESSAGE,
    ERR_MISSING_GAME_ID,
    ERR_MOVE_ERROR,
    ERR_NOT_PARTICIPANT,
    ERR_NOT_YOUR_TURN,
    ERR_UNKNOWN_TYPE,
    SEATS,
    WHITE,
    Seat,
    opposite,
)
from .registry import GameRegistry, GameSession
from .ws_manager import Connection, safe_send

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoleBinding:
    game_id: str
    color: Seat


def error_payload(message: str) -> dict[str, Any]:
    return {"type": "error", "message": message}


def move_made_payload(g: GameSession, last_move: dict) -> dict[str, Any]:
    return {
        "type": "move_made",
        "gameId": g.id,
        "fen": g.fen,
        "lastMove": last_move,
        "turn": rules.turn(g.board),
        "isGameOver": rules.is_game_over(g.board),
        "isCheckmate": rules.is_checkmate(g.board),
        "isDraw": rules.is_draw(g.board),
    }


class SessionCoordinator:
    def __init__(self, registry: GameRegistry | None = None):
        self.registry = registry if registry is not None else GameRegistry()
        self._connections: dict[str, Connection] = {}
        # connection_id -> роль; не более одной на соединение
        self._roles: dict[str, RoleBinding] = {}

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def role_of(self, conn: Connection) -> RoleBinding | None:
        return self._roles.get(conn.connection_id)

    async def handle_connect(self, conn: Connection) -> None:
        self._connections[conn.connection_id] = conn
        await safe_send(conn, {"type": "connected", "message": CONNECTED_MESSAGE})

    async def handle_message(self, conn: Connection, raw: str | bytes) -> None:
        try:
            data = json.loads(raw)
        except (ValueError, TypeError) as e:
            logger.warning("WS: invalid JSON from %s: %s", conn.connection_id, e)
            await safe_send(conn, error_payload(ERR_INVALID_JSON))
            return
        if not isinstance(data, dict):
            await safe_send(conn, error_payload(ERR_INVALID_MESSAGE))
            return
        t = data.get("type")
        logger.info("WS: msg from %s type=%s", conn.connection_id, t)
        if t == "create_game":
            await self.create_game(conn)
        elif t == "join_game":
            game_id = data.get("gameId")
            if not game_id or not isinstance(game_id, str):
                await safe_send(conn, error_payload(ERR_MISSING_GAME_ID))
                return
            await self.join_game(conn, game_id)
        elif t == "make_move":
            await self.make_move(
                conn,
                data.get("gameId"),
                data.get("from"),
                data.get("to"),
                data.get("promotion"),
            )
        else:
            await safe_send(conn, error_payload(ERR_UNKNOWN_TYPE))

    async def create_game(self, conn: Connection) -> None:
        if conn.connection_id in self._roles:
            await safe_send(conn, error_payload(ERR_ALREADY_IN_GAME))
            return
        g = self.registry.create(conn)
        self._roles[conn.connection_id] = RoleBinding(g.id, WHITE)
        await safe_send(conn, {
            "type": "game_created",
            "gameId": g.id,
            "color": WHITE,
            "fen": g.fen,
        })

    async def join_game(self, conn: Connection, game_id: str) -> None:
        g = self.registry.get(game_id)
        if not g:
            await safe_send(conn, error_payload(ERR_GAME_NOT_FOUND))
            return
        if conn.connection_id in self._roles:
            await safe_send(conn, error_payload(ERR_ALREADY_IN_GAME))
            return
        async with g.lock:
            # пока ждали lock, партия могла опустеть и удалиться
            if self.registry.get(game_id) is not g:
                await safe_send(conn, error_payload(ERR_GAME_NOT_FOUND))
                return
            color = g.free_seat()
            if color is None:
                await safe_send(conn, error_payload(ERR_GAME_FULL))
                return
            g.players[color] = conn
            self._roles[conn.connection_id] = RoleBinding(g.id, color)
            logger.info("game %s: %s joined as %s", g.id, conn.connection_id, color)
            await safe_send(conn, {
                "type": "game_joined",
                "gameId": g.id,
                "color": color,
                "fen": g.fen,
            })
            await safe_send(g.players[opposite(color)], {
                "type": "opponent_joined",
                "gameId": g.id,
                "opponentColor": color,
            })

    async def make_move(
        self,
        conn: Connection,
        game_id: Any,
        from_sq: Any,
        to_sq: Any,
        promotion: Any = None,
    ) -> None:
        g = self.registry.get(game_id) if isinstance(game_id, str) else None
        if not g:
            await safe_send(conn, error_payload(ERR_GAME_NOT_FOUND))
            return
        async with g.lock:
            if self.registry.get(game_id) is not g:
                await safe_send(conn, error_payload(ERR_GAME_NOT_FOUND))
                return
            role = self._roles.get(conn.connection_id)
            if role is None or role.game_id != g.id:
                await safe_send(conn, error_payload(ERR_NOT_PARTICIPANT))
                return
            if role.color != rules.turn(g.board):
                await safe_send(conn, error_payload(ERR_NOT_YOUR_TURN))
                return
            try:
                result = rules.try_move(g.board, from_sq, to_sq, promotion)
            except (ValueError, TypeError):
                logger.exception("game %s: move error from %s", g.id, conn.connection_id)
                await safe_send(conn, error_payload(ERR_MOVE_ERROR))
                return
            if result is None:
                logger.warning("game %s: illegal move %s-%s from %s", g.id, from_sq, to_sq, conn.connection_id)
                await safe_send(conn, error_payload(ERR_ILLEGAL_MOVE))
                return
            g.board = result.board
            payload = move_made_payload(g, result.last_move)
            for color in SEATS:
                await safe_send(g.players[color], payload)

    def handle_disconnect(self, conn: Connection) -> None:
        """Освободить место соединения; партия без игроков удаляется. Повторный вызов — no-op."""
        self._connections.pop(conn.connection_id, None)
        role = self._roles.pop(conn.connection_id, None)
        if role is None:
            return
        g = self.registry.get(role.game_id)
        if not g:
            return
        if g.release(role.color, conn):
            logger.info("game %s: %s left %s seat", g.id, conn.connection_id, role.color)
        if g.is_empty:
            self.registry.delete(g.id)


coordinator = SessionCoordinator()


async def ws_loop(ws: WebSocket, coord: SessionCoordinator | None = None) -> None:
    """Принять соединение и обрабатывать сообщения до отключения."""
    coord = coord or coordinator
    await ws.accept()
    conn = Connection(ws)
    logger.info("WS: accepted %s from %s", conn.connection_id, ws.client)
    try:
        await coord.handle_connect(conn)
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await coord.handle_message(conn, raw)
    except WebSocketDisconnect as e:
        logger.info("WS: client disconnected code=%s reason=%s id=%s", e.code, e.reason or "", conn.connection_id)
    except Exception as e:
        logger.exception("WS: error id=%s: %s", conn.connection_id, e)
    finally:
        coord.handle_disconnect(conn)
        logger.info("WS: disconnected id=%s", conn.connection_id)
