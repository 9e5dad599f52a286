"""Static evaluation for the JungleFish search.

Scores are from the point of view of a fixed ``perspective`` player:
positive numbers favour that player.  The terms are material, a
piece-square bonus pulling pieces toward the enemy den, the piece-count
differential and the perspective player's mobility.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

import jungle_logic
from board import COLS, DEN_SQUARES, ROWS, Animal, Board, Move, Player, Terrain, side_owner, terrain_at


class Evaluation:
    """Material plus positional evaluation of an Animal Chess board."""

    WIN_SCORE = 10_000

    PIECE_VALUES: Dict[Animal, int] = {animal: 10 * animal.power for animal in Animal}

    DEN_BONUS = 1000
    TRAP_BONUS = 20
    ADVANCE_BASE = 10
    PIECE_COUNT_WEIGHT = 100
    MOBILITY_WEIGHT = 5

    def __init__(self, perspective: Player) -> None:
        self.perspective = perspective
        self._tables: Dict[Player, Tuple[Tuple[int, ...], ...]] = {
            player: self._build_position_table(player) for player in Player
        }

    @classmethod
    def _build_position_table(cls, owner: Player) -> Tuple[Tuple[int, ...], ...]:
        """Positional value of each cell for a piece belonging to ``owner``."""
        enemy_den_row, enemy_den_col = DEN_SQUARES[owner.opponent]
        table: List[Tuple[int, ...]] = []
        for row in range(ROWS):
            values = []
            for col in range(COLS):
                terrain = terrain_at(row, col)
                if terrain is Terrain.DEN:
                    values.append(cls.DEN_BONUS if side_owner(row) is owner.opponent else -cls.DEN_BONUS)
                elif terrain is Terrain.TRAP:
                    values.append(cls.TRAP_BONUS if side_owner(row) is owner.opponent else -cls.TRAP_BONUS)
                else:
                    distance = abs(row - enemy_den_row) + abs(col - enemy_den_col)
                    values.append(max(0, cls.ADVANCE_BASE - distance))
            table.append(tuple(values))
        return tuple(table)

    def positional_value(self, owner: Player, row: int, col: int) -> int:
        return self._tables[owner][row][col]

    def terminal_score(self, board: Board) -> int:
        """``+/-WIN_SCORE`` for a decided position, ``0`` otherwise."""
        winner = jungle_logic.check_win_condition(board)
        if winner is None:
            return 0
        return self.WIN_SCORE if winner is self.perspective else -self.WIN_SCORE

    def score(self, board: Board) -> int:
        terminal = self.terminal_score(board)
        if terminal:
            return terminal

        score = 0
        counts = {Player.FIRST: 0, Player.SECOND: 0}
        for row, col, piece in board.iter_pieces():
            value = self.PIECE_VALUES[piece.animal] + self._tables[piece.owner][row][col]
            score += value if piece.owner is self.perspective else -value
            counts[piece.owner] += 1

        own = counts[self.perspective]
        enemy = counts[self.perspective.opponent]
        score += (own - enemy) * self.PIECE_COUNT_WEIGHT
        score += len(jungle_logic.all_legal_moves(board, self.perspective)) * self.MOBILITY_WEIGHT
        return score


def move_heuristic(board: Board, move: Move) -> int:
    """Cheap one-ply score: capture value plus progress toward the enemy den."""
    piece = board.piece_at(move.from_row, move.from_col)
    if piece is None:
        return 0
    target = board.piece_at(move.to_row, move.to_col)

    score = 0
    if target is not None:
        gain = Evaluation.PIECE_VALUES[target.animal]
        if target.power == piece.power:
            score += gain - Evaluation.PIECE_VALUES[piece.animal] // 2
        else:
            score += 2 * gain

    den_row, den_col = DEN_SQUARES[piece.owner.opponent]
    if move.target == (den_row, den_col):
        score += Evaluation.WIN_SCORE
    before = abs(move.from_row - den_row) + abs(move.from_col - den_col)
    after = abs(move.to_row - den_row) + abs(move.to_col - den_col)
    score += (before - after) * 5
    return score
