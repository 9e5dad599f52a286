"""Move search for the JungleFish computer opponent.

:class:`AlphaBetaSearcher` runs a fixed-depth minimax search with
alpha-beta pruning.  Moves are played on a private board and taken back
with :func:`jungle_logic.undo_move`, so no position is ever copied inside
the tree.  A small amount of zero-mean noise is added to every backed-up
score so repeated games at the same difficulty do not play identically.

:class:`AnimalChessAI` wraps the searcher with the difficulty presets and
the move-selection policy used by the session, the engine process and
headless self-play.
"""
from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

import jungle_logic
from board import Board, Move, Player
from evaluation import Evaluation, move_heuristic
from session import GamePhase, GameSession, GameSnapshot, MoveResult

INFINITY = float("inf")
WIN_SCORE = Evaluation.WIN_SCORE


@dataclass(frozen=True)
class DifficultySettings:
    name: str
    depth: int
    random_factor: float
    use_search: bool = True


class DifficultyRegistry:
    PRESETS: Dict[str, DifficultySettings] = {
        "easy": DifficultySettings("easy", depth=2, random_factor=0.3, use_search=False),
        "medium": DifficultySettings("medium", depth=3, random_factor=0.15),
        "hard": DifficultySettings("hard", depth=4, random_factor=0.05),
    }

    @classmethod
    def resolve(cls, name: str) -> DifficultySettings:
        key = name.strip().lower()
        if key not in cls.PRESETS:
            raise ValueError(f"Unknown difficulty '{name}'")
        return cls.PRESETS[key]

    @classmethod
    def names(cls) -> Tuple[str, ...]:
        return tuple(cls.PRESETS)


class SearchTimeout(Exception):
    """Raised inside the tree when the time budget runs out."""


class AlphaBetaSearcher:
    """Minimax search with alpha-beta pruning for one side.

    Parameters
    ----------
    board:
        Position to search.  The searcher works on its own copy.
    player:
        The maximising side; scores are from this player's point of view.
    random_factor:
        Scale of the noise added to each child score (``0`` disables it).
    time_limit:
        Optional budget in seconds.  When set, the search deepens one ply
        at a time and returns the result of the last completed depth.
    """

    CHECK_INTERVAL = 512

    def __init__(
        self,
        board: Board,
        player: Player,
        *,
        random_factor: float = 0.0,
        rng: Optional[random.Random] = None,
        evaluator: Optional[Evaluation] = None,
        time_limit: Optional[float] = None,
    ) -> None:
        self.board = board.copy()
        self.player = player
        self.random_factor = random_factor
        self.rng = rng or random.Random()
        self.evaluator = evaluator or Evaluation(player)
        self.time_limit = time_limit
        self.nodes = 0
        self.completed_depth = 0
        self._deadline: Optional[float] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def search(self, depth: int) -> Tuple[float, Optional[Move]]:
        """Return the best backed-up score and root move at ``depth`` plies."""
        self.nodes = 0
        self.completed_depth = 0
        depth = max(depth, 1)

        if self.time_limit is None:
            self._deadline = None
            score, move = self._search_root(depth)
            self.completed_depth = depth
            return score, move

        self._deadline = time.monotonic() + self.time_limit
        best_score, best_move = -INFINITY, None
        for current_depth in range(1, depth + 1):
            try:
                score, move = self._search_root(current_depth)
            except SearchTimeout:
                break
            best_score, best_move = score, move
            self.completed_depth = current_depth
        return best_score, best_move

    # ------------------------------------------------------------------
    # Core search
    # ------------------------------------------------------------------
    def _search_root(self, depth: int) -> Tuple[float, Optional[Move]]:
        alpha, beta = -INFINITY, INFINITY
        best_score = -INFINITY
        best_move: Optional[Move] = None

        for move in self._order_moves(self.player):
            outcome = jungle_logic.apply_move(self.board, move)
            try:
                score = self._alphabeta(depth - 1, alpha, beta, maximizing=False) + self._jitter()
            finally:
                jungle_logic.undo_move(self.board, outcome)

            if score > best_score:
                best_score = score
                best_move = move
            alpha = max(alpha, score)
        return best_score, best_move

    def _alphabeta(self, depth: int, alpha: float, beta: float, *, maximizing: bool) -> float:
        self.nodes += 1
        if self._deadline is not None and self.nodes % self.CHECK_INTERVAL == 0:
            if time.monotonic() >= self._deadline:
                raise SearchTimeout()

        # Remaining depth is added so that sooner wins (and later losses) rank higher.
        winner = jungle_logic.check_win_condition(self.board)
        if winner is not None:
            return WIN_SCORE + depth if winner is self.player else -(WIN_SCORE + depth)

        if depth <= 0:
            return self.evaluator.score(self.board)

        mover = self.player if maximizing else self.player.opponent
        moves = self._order_moves(mover)
        if not moves:
            return -(WIN_SCORE + depth) if maximizing else WIN_SCORE + depth

        best = -INFINITY if maximizing else INFINITY
        for move in moves:
            outcome = jungle_logic.apply_move(self.board, move)
            try:
                score = self._alphabeta(depth - 1, alpha, beta, maximizing=not maximizing) + self._jitter()
            finally:
                jungle_logic.undo_move(self.board, outcome)

            if maximizing:
                best = max(best, score)
                alpha = max(alpha, score)
            else:
                best = min(best, score)
                beta = min(beta, score)
            if beta <= alpha:
                break
        return best

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _order_moves(self, player: Player) -> List[Move]:
        moves = jungle_logic.all_legal_moves(self.board, player)
        moves.sort(key=lambda move: move_heuristic(self.board, move), reverse=True)
        return moves

    def _jitter(self) -> float:
        if not self.random_factor:
            return 0.0
        return self.rng.uniform(-0.5, 0.5) * self.random_factor * 100


class AnimalChessAI:
    """Picks moves for one side according to a difficulty preset."""

    def __init__(
        self,
        player: Player = Player.SECOND,
        difficulty: str = "medium",
        *,
        rng: Optional[random.Random] = None,
        time_limit: Optional[float] = None,
    ) -> None:
        self.player = player
        self.settings = DifficultyRegistry.resolve(difficulty)
        self.rng = rng or random.Random()
        self.time_limit = time_limit
        self.last_nodes = 0
        self.last_error: Optional[Exception] = None

    @property
    def difficulty(self) -> str:
        return self.settings.name

    def set_difficulty(self, difficulty: str) -> None:
        self.settings = DifficultyRegistry.resolve(difficulty)

    def choose_move(self, position: Union[GameSnapshot, Board]) -> Optional[Move]:
        """Return a move for :attr:`player`, or ``None`` if it has none."""
        board = position.board if isinstance(position, GameSnapshot) else position
        moves = jungle_logic.all_legal_moves(board, self.player)
        if not moves:
            return None
        if not self.settings.use_search:
            return self.rng.choice(moves)

        self.last_error = None
        try:
            searcher = AlphaBetaSearcher(
                board,
                self.player,
                random_factor=self.settings.random_factor,
                rng=self.rng,
                time_limit=self.time_limit,
            )
            _, move = searcher.search(self.settings.depth)
            self.last_nodes = searcher.nodes
        except Exception as exc:
            self.last_error = exc
            move = None

        if move is None:
            return self.rng.choice(moves)
        return move

    def play(self, session: GameSession) -> Optional[MoveResult]:
        """Search on a snapshot of ``session`` and submit the result.

        The move is dropped if the session was reset or moved on while the
        search ran.
        """
        snapshot = session.snapshot()
        if snapshot.phase is not GamePhase.PLAYING or snapshot.current_player is not self.player:
            return None
        move = self.choose_move(snapshot)
        if move is None:
            return None
        if (
            session.generation != snapshot.generation
            or session.ply != snapshot.ply
            or session.current_player is not self.player
        ):
            return None
        return session.commit_move(move.from_row, move.from_col, move.to_row, move.to_col)
