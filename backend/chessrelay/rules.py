"""
Правила шахмат через python-chess.
Доска сессии не меняется на месте: try_move возвращает новую доску.
"""
from dataclasses import dataclass

import chess
from chess import Board

from .constants import BLACK, DEFAULT_PROMOTION, WHITE, Seat


@dataclass
class MoveResult:
    board: Board
    last_move: dict


def new_board() -> Board:
    return Board()


def turn(board: Board) -> Seat:
    """Чей ход: "w" или "b"."""
    return WHITE if board.turn == chess.WHITE else BLACK


def is_checkmate(board: Board) -> bool:
    return board.is_checkmate()


def is_draw(board: Board) -> bool:
    """Пат, недостаток материала, правило 50 ходов или троекратное повторение."""
    return (
        board.is_stalemate()
        or board.is_insufficient_material()
        or board.is_fifty_moves()
        or board.is_repetition(3)
    )


def is_game_over(board: Board) -> bool:
    return is_checkmate(board) or is_draw(board)


def _build_move(board: Board, from_sq: str, to_sq: str, promotion: str) -> chess.Move:
    """
    Собирает ход из клиентских полей.
    Фигура превращения учитывается только если пешка доходит до последней горизонтали.
    Некорректные поля -> ValueError / TypeError.
    """
    if not isinstance(from_sq, str) or not isinstance(to_sq, str):
        raise TypeError("from/to must be square names")
    from_square = chess.parse_square(from_sq.lower())
    to_square = chess.parse_square(to_sq.lower())
    piece = board.piece_at(from_square)
    promotes = (
        piece is not None
        and piece.piece_type == chess.PAWN
        and chess.square_rank(to_square) in (0, 7)
    )
    if not promotes:
        return chess.Move(from_square, to_square)
    if not isinstance(promotion, str):
        raise TypeError("promotion must be a piece symbol")
    promotion_piece = chess.Piece.from_symbol(promotion.lower()).piece_type
    return chess.Move(from_square, to_square, promotion=promotion_piece)


def _flags(board: Board, move: chess.Move) -> str:
    # n - обычный, b - пешка на два поля, e - взятие на проходе, c - взятие,
    # p - превращение, k / q - короткая / длинная рокировка
    flags = ""
    if board.is_kingside_castling(move):
        flags += "k"
    elif board.is_queenside_castling(move):
        flags += "q"
    if board.is_en_passant(move):
        flags += "e"
    elif board.is_capture(move):
        flags += "c"
    if move.promotion:
        flags += "p"
    if board.piece_type_at(move.from_square) == chess.PAWN and abs(move.to_square - move.from_square) == 16:
        flags += "b"
    return flags or "n"


def describe_move(board: Board, move: chess.Move) -> dict:
    """Описание хода для клиента (board — позиция до хода)."""
    piece = board.piece_at(move.from_square)
    after = board.copy(stack=False)
    after.push(move)
    info = {
        "color": turn(board),
        "from": chess.square_name(move.from_square),
        "to": chess.square_name(move.to_square),
        "piece": piece.symbol().lower() if piece else None,
        "san": board.san(move),
        "lan": move.uci(),
        "before": board.fen(),
        "after": after.fen(),
        "flags": _flags(board, move),
    }
    if board.is_en_passant(move):
        info["captured"] = "p"
    else:
        captured = board.piece_at(move.to_square)
        if captured is not None and not board.is_castling(move):
            info["captured"] = captured.symbol().lower()
    if move.promotion:
        info["promotion"] = chess.piece_symbol(move.promotion)
    return info


def try_move(
    board: Board,
    from_sq: str,
    to_sq: str,
    promotion: str | None = None,
) -> MoveResult | None:
    """
    Применяет ход к копии доски.
    Возвращает MoveResult или None если ход нелегален.
    """
    move = _build_move(board, from_sq, to_sq, promotion or DEFAULT_PROMOTION)
    if move not in board.legal_moves:
        return None
    last_move = describe_move(board, move)
    new = board.copy()
    new.push(move)
    return MoveResult(board=new, last_move=last_move)
