from dataclasses import dataclass
from typing import List, Optional, Tuple

from board import COLS, DEN_SQUARES, ROWS, Animal, Board, Move, Piece, Player, Terrain, side_owner

DIRECTIONS = ((-1, 0), (1, 0), (0, -1), (0, 1))

REASON_ELIMINATION = "captured all enemy pieces"
REASON_DEN = "reached enemy den"
REASON_NO_MOVES = "opponent has no legal moves"


@dataclass(frozen=True)
class MoveOutcome:
    """What :func:`apply_move` did, kept so :func:`undo_move` can reverse it."""

    move: Move
    piece: Piece
    captured: Optional[Piece]
    attacker_survived: bool


def is_on_board(row: int, col: int) -> bool:
    return 0 <= row < ROWS and 0 <= col < COLS


def can_capture(
    attacker: Piece,
    defender: Optional[Piece],
    terrain: Terrain,
    trap_owner: Optional[Player] = None,
) -> bool:
    """Return ``True`` if ``attacker`` may move onto a cell held by ``defender``.

    ``trap_owner`` is the side a trap guards; it defaults to the attacker's
    side, so a defender caught in such a trap has no power left.
    """
    if defender is None:
        return True

    if terrain is Terrain.TRAP and defender.owner is not attacker.owner:
        guarding = trap_owner if trap_owner is not None else attacker.owner
        if guarding is attacker.owner:
            return True

    if attacker.animal.can_swim and defender.animal is Animal.ELEPHANT:
        return True
    if attacker.animal is Animal.ELEPHANT and defender.animal.can_swim:
        return False

    if terrain is Terrain.RIVER:
        return attacker.animal.can_swim and defender.animal.can_swim

    return attacker.power >= defender.power


def river_leap(board: Board, row: int, col: int, dr: int, dc: int) -> Optional[Tuple[int, int]]:
    """Landing cell of a lion/tiger leap across the river, or ``None``."""
    piece = board.piece_at(row, col)
    if piece is None or not piece.animal.can_leap:
        return None

    check_row, check_col = row + dr, col + dc
    crossed = 0
    while is_on_board(check_row, check_col):
        if board.terrain_at(check_row, check_col) is not Terrain.RIVER:
            return (check_row, check_col) if crossed else None
        blocker = board.piece_at(check_row, check_col)
        if blocker is not None and blocker.animal.can_swim:
            return None
        crossed += 1
        check_row += dr
        check_col += dc
    return None


def legal_moves_from(board: Board, row: int, col: int) -> List[Tuple[int, int]]:
    if not is_on_board(row, col):
        return []
    piece = board.piece_at(row, col)
    if piece is None:
        return []

    destinations: List[Tuple[int, int]] = []
    for dr, dc in DIRECTIONS:
        target = (row + dr, col + dc)
        if piece.animal.can_leap:
            landing = river_leap(board, row, col, dr, dc)
            if landing is not None:
                target = landing

        to_row, to_col = target
        if not is_on_board(to_row, to_col):
            continue
        if (to_row, to_col) == DEN_SQUARES[piece.owner]:
            continue

        defender = board.piece_at(to_row, to_col)
        if defender is not None and defender.owner is piece.owner:
            continue

        terrain = board.terrain_at(to_row, to_col)
        if terrain is Terrain.RIVER and not piece.animal.can_swim:
            continue

        if can_capture(piece, defender, terrain, side_owner(to_row)):
            destinations.append((to_row, to_col))
    return destinations


def get_possible_moves(board: Board, row: int, col: int) -> List[Move]:
    return [Move(row, col, to_row, to_col) for to_row, to_col in legal_moves_from(board, row, col)]


def all_legal_moves(board: Board, player: Player) -> List[Move]:
    moves: List[Move] = []
    for row, col, _ in board.iter_pieces(player):
        moves.extend(get_possible_moves(board, row, col))
    return moves


def has_legal_moves(board: Board, player: Player) -> bool:
    return any(legal_moves_from(board, row, col) for row, col, _ in board.iter_pieces(player))


def is_valid_move(board: Board, move: Move, player: Optional[Player] = None) -> bool:
    if not (is_on_board(move.from_row, move.from_col) and is_on_board(move.to_row, move.to_col)):
        return False
    piece = board.piece_at(move.from_row, move.from_col)
    if piece is None:
        return False
    if player is not None and piece.owner is not player:
        return False
    return move.target in legal_moves_from(board, move.from_row, move.from_col)


def apply_move(board: Board, move: Move) -> MoveOutcome:
    """Play ``move`` on ``board`` without validating it.

    Equal powers destroy each other and leave the destination empty.
    """
    piece = board.remove_piece_at(move.from_row, move.from_col)
    if piece is None:
        raise ValueError(f"No piece on {move.uci()[:2]}")

    captured = board.piece_at(move.to_row, move.to_col)
    attacker_survived = captured is None or captured.power != piece.power
    board.set_piece_at(move.to_row, move.to_col, piece if attacker_survived else None)
    return MoveOutcome(move, piece, captured, attacker_survived)


def undo_move(board: Board, outcome: MoveOutcome) -> None:
    move = outcome.move
    board.set_piece_at(move.to_row, move.to_col, outcome.captured)
    board.set_piece_at(move.from_row, move.from_col, outcome.piece)


def check_win_condition(board: Board) -> Optional[Player]:
    for owner, (row, col) in DEN_SQUARES.items():
        occupant = board.piece_at(row, col)
        if occupant is not None and occupant.owner is not owner:
            return occupant.owner

    if board.count_pieces(Player.FIRST) == 0:
        return Player.SECOND
    if board.count_pieces(Player.SECOND) == 0:
        return Player.FIRST
    return None


def get_win_reason(board: Board, winner: Player) -> str:
    if board.count_pieces(winner.opponent) == 0:
        return REASON_ELIMINATION
    row, col = DEN_SQUARES[winner.opponent]
    occupant = board.piece_at(row, col)
    if occupant is not None and occupant.owner is winner:
        return REASON_DEN
    return REASON_NO_MOVES
