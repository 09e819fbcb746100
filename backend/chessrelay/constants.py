"""Константы протокола: цвета, код партии, тексты ошибок."""
from typing import Literal

Seat = Literal["w", "b"]

WHITE: Seat = "w"
BLACK: Seat = "b"
SEATS: tuple[Seat, Seat] = (WHITE, BLACK)

# Без 0/O/1/I, чтобы код можно было продиктовать
GAME_ID_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
GAME_ID_LENGTH = 6

DEFAULT_PROMOTION = "q"

CONNECTED_MESSAGE = "Connected to chess relay server"

ERR_INVALID_JSON = "Invalid JSON"
ERR_INVALID_MESSAGE = "Invalid message"
ERR_UNKNOWN_TYPE = "Unknown message type"
ERR_MISSING_GAME_ID = "Missing gameId"
ERR_GAME_NOT_FOUND = "Game not found"
ERR_GAME_FULL = "Game already has two players"
ERR_ALREADY_IN_GAME = "You are already in a game"
ERR_NOT_PARTICIPANT = "You are not part of this game"
ERR_NOT_YOUR_TURN = "Not your turn"
ERR_ILLEGAL_MOVE = "Illegal move"
ERR_MOVE_ERROR = "Move error"


def opposite(seat: Seat) -> Seat:
    return BLACK if seat == WHITE else WHITE
