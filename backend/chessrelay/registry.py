"""
Реестр партий (in-memory): код партии -> сессия.
Сессия живёт, пока занято хотя бы одно место.
"""
import asyncio
import logging
import secrets
import time
from dataclasses import dataclass, field

from chess import Board

from . import rules
from .constants import BLACK, GAME_ID_ALPHABET, GAME_ID_LENGTH, SEATS, WHITE, Seat
from .ws_manager import Connection

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    id: str
    board: Board
    players: dict[Seat, Connection | None]
    created_at: float = field(default_factory=time.time)
    # check -> mutate -> broadcast внутри одной сессии не перемежаются
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def fen(self) -> str:
        return self.board.fen()

    def free_seat(self) -> Seat | None:
        """Место для нового игрока: сначала чёрные, затем белые."""
        if self.players[BLACK] is None:
            return BLACK
        if self.players[WHITE] is None:
            return WHITE
        return None

    def release(self, seat: Seat, conn: Connection) -> bool:
        """Освободить место, только если оно всё ещё за этим соединением."""
        if self.players[seat] is conn:
            self.players[seat] = None
            return True
        return False

    @property
    def is_empty(self) -> bool:
        return all(self.players[s] is None for s in SEATS)


def generate_game_id() -> str:
    return "".join(secrets.choice(GAME_ID_ALPHABET) for _ in range(GAME_ID_LENGTH))


class GameRegistry:
    def __init__(self):
        self._games: dict[str, GameSession] = {}

    def __len__(self) -> int:
        return len(self._games)

    def __contains__(self, game_id: str) -> bool:
        return game_id in self._games

    def _new_id(self) -> str:
        game_id = generate_game_id()
        while game_id in self._games:
            logger.info("game id collision %s, re-rolling", game_id)
            game_id = generate_game_id()
        return game_id

    def create(self, creator: Connection) -> GameSession:
        """Новая партия: создатель играет белыми, место чёрных свободно."""
        g = GameSession(
            id=self._new_id(),
            board=rules.new_board(),
            players={WHITE: creator, BLACK: None},
        )
        self._games[g.id] = g
        logger.info("game %s created by %s", g.id, creator.connection_id)
        return g

    def get(self, game_id: str) -> GameSession | None:
        return self._games.get(game_id)

    def delete(self, game_id: str) -> None:
        if self._games.pop(game_id, None) is not None:
            logger.info("game %s deleted", game_id)
