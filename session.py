"""Turn, selection and history bookkeeping for a single game of Animal Chess."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union

import jungle_logic
from board import Board, Move, Piece, Player

Square = Tuple[int, int]


class GamePhase(Enum):
    PLAYING = "playing"
    FINISHED = "finished"


class SessionEvent(Enum):
    STATE_CHANGED = "stateChanged"
    GAME_OVER = "gameOver"


@dataclass(frozen=True)
class HistoryEntry:
    move: Move
    player: Player
    piece: Piece
    captured: Optional[Piece]
    attacker_survived: bool


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only view of a session handed to renderers, relays and the AI."""

    board: Board
    current_player: Player
    phase: GamePhase
    selection: Optional[Square]
    legal_moves: Tuple[Square, ...]
    captured_pieces: Dict[Player, Tuple[Piece, ...]]
    move_history: Tuple[HistoryEntry, ...]
    winner: Optional[Player] = None
    win_reason: Optional[str] = None
    generation: int = 0

    @property
    def ply(self) -> int:
        return len(self.move_history)


@dataclass(frozen=True)
class MoveResult:
    success: bool
    winner: Optional[Player] = None
    reason: Optional[str] = None


ILLEGAL_MOVE = MoveResult(False, reason="illegal move")

StateListener = Callable[[GameSnapshot], None]
GameOverListener = Callable[[Player, str], None]


@dataclass
class _Subscribers:
    state_changed: List[StateListener] = field(default_factory=list)
    game_over: List[GameOverListener] = field(default_factory=list)


class GameSession:
    """Owns the live board; everything else sees snapshots or submits moves.

    Mutations go through :meth:`select_cell`, :meth:`commit_move` and
    :meth:`reset`.  Each successful one notifies ``stateChanged`` listeners;
    a game-ending move additionally notifies ``gameOver`` listeners once.
    """

    def __init__(self, board: Optional[Board] = None) -> None:
        self._initial_notation = board.notation() if board is not None else None
        self._board = board.copy() if board is not None else Board()
        self._subscribers = _Subscribers()
        self._generation = 0
        self._clear_state()

    def _clear_state(self) -> None:
        self._phase = GamePhase.PLAYING
        self._selection: Optional[Square] = None
        self._legal_moves: List[Square] = []
        self._captured: Dict[Player, List[Piece]] = {Player.FIRST: [], Player.SECOND: []}
        self._history: List[HistoryEntry] = []
        self._winner: Optional[Player] = None
        self._win_reason: Optional[str] = None

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe(self, event: SessionEvent, callback: Callable[..., None]) -> Callable[[], None]:
        """Register ``callback`` for ``event`` and return a function that removes it."""
        listeners: List[Callable[..., None]]
        if event is SessionEvent.STATE_CHANGED:
            listeners = self._subscribers.state_changed
        elif event is SessionEvent.GAME_OVER:
            listeners = self._subscribers.game_over
        else:
            raise ValueError(f"Unknown session event: {event!r}")
        listeners.append(callback)

        def unsubscribe() -> None:
            if callback in listeners:
                listeners.remove(callback)

        return unsubscribe

    def _emit_state_changed(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._subscribers.state_changed):
            listener(snapshot)

    def _emit_game_over(self, winner: Player, reason: str) -> None:
        for listener in list(self._subscribers.game_over):
            listener(winner, reason)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def current_player(self) -> Player:
        return self._board.turn

    @property
    def phase(self) -> GamePhase:
        return self._phase

    @property
    def selection(self) -> Optional[Square]:
        return self._selection

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def ply(self) -> int:
        return len(self._history)

    @property
    def winner(self) -> Optional[Player]:
        return self._winner

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            board=self._board.copy(),
            current_player=self._board.turn,
            phase=self._phase,
            selection=self._selection,
            legal_moves=tuple(self._legal_moves),
            captured_pieces={player: tuple(pieces) for player, pieces in self._captured.items()},
            move_history=tuple(self._history),
            winner=self._winner,
            win_reason=self._win_reason,
            generation=self._generation,
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def select_cell(self, row: int, col: int) -> Union[bool, MoveResult]:
        """Handle a click on ``(row, col)``.

        Returns ``False`` when nothing changed, ``True`` after a selection
        change, or the :class:`MoveResult` of the move the click completed.
        """
        if self._phase is not GamePhase.PLAYING or not jungle_logic.is_on_board(row, col):
            return False

        if self._selection is not None:
            if self._selection == (row, col):
                self._set_selection(None)
                return True
            if (row, col) in self._legal_moves:
                from_row, from_col = self._selection
                return self.commit_move(from_row, from_col, row, col)

        piece = self._board.piece_at(row, col)
        if piece is None or piece.owner is not self.current_player:
            return False
        self._set_selection((row, col))
        return True

    def _set_selection(self, square: Optional[Square]) -> None:
        self._selection = square
        if square is None:
            self._legal_moves = []
        else:
            self._legal_moves = jungle_logic.legal_moves_from(self._board, *square)
        self._emit_state_changed()

    def commit_move(self, from_row: int, from_col: int, to_row: int, to_col: int) -> MoveResult:
        if self._phase is not GamePhase.PLAYING:
            return ILLEGAL_MOVE
        move = Move(from_row, from_col, to_row, to_col)
        mover = self.current_player
        if not jungle_logic.is_valid_move(self._board, move, mover):
            return ILLEGAL_MOVE

        outcome = jungle_logic.apply_move(self._board, move)
        self._history.append(
            HistoryEntry(move, mover, outcome.piece, outcome.captured, outcome.attacker_survived)
        )
        if outcome.captured is not None:
            self._captured[mover].append(outcome.captured)
            if not outcome.attacker_survived:
                self._captured[outcome.captured.owner].append(outcome.piece)

        self._selection = None
        self._legal_moves = []

        winner = jungle_logic.check_win_condition(self._board)
        if winner is None and not jungle_logic.has_legal_moves(self._board, mover.opponent):
            winner = mover
        if winner is not None:
            reason = jungle_logic.get_win_reason(self._board, winner)
            self._phase = GamePhase.FINISHED
            self._winner = winner
            self._win_reason = reason
            try:
                self._emit_state_changed()
            finally:
                self._emit_game_over(winner, reason)
            return MoveResult(True, winner, reason)

        self._board.turn = mover.opponent
        self._emit_state_changed()
        return MoveResult(True)

    def reset(self) -> None:
        if self._initial_notation is None:
            self._board.reset()
        else:
            self._board.set_notation(self._initial_notation)
        self._generation += 1
        self._clear_state()
        self._emit_state_changed()
