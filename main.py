# MAIN
import argparse
import os
import random
import sys
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Set, Tuple

try:  # pragma: no cover - optional dependency for GUI mode
    from PySide6.QtCore import QProcess
    from PySide6.QtWidgets import QApplication
except ImportError:  # pragma: no cover
    QProcess = None  # type: ignore[assignment]
    QApplication = None  # type: ignore[assignment]

if TYPE_CHECKING:
    from PySide6.QtCore import QProcess as QProcessType
    from gui import JungleGUI  # pragma: no cover
else:  # pragma: no cover
    QProcessType = Any

from board import Board, Move, Player
from search import AnimalChessAI, DifficultyRegistry
from session import GamePhase, GameSession, MoveResult, SessionEvent
from utils import (
    PLAYER_NAMES,
    ReportingLevel,
    debug_text,
    describe_piece,
    info_text,
    received_text,
    sending_text,
)

ENGINE_SCRIPT = "engine.py"
DEFAULT_DIFFICULTY = "medium"
DEFAULT_MAX_PLIES = 400

EngineProcess = Any
SendCommand = Callable[[EngineProcess, str], None]


def parse_player(text: str) -> Optional[Player]:
    value = text.strip().lower()
    if value == "none":
        return None
    for player in Player:
        if player.value == value:
            return player
    raise ValueError(f"Unknown side '{text}'")


def build_go_command(movetime_ms: Optional[int] = None) -> str:
    if movetime_ms:
        return f"go movetime {max(1, int(movetime_ms))}"
    return "go"


def parse_bestmove(line: str) -> Optional[Move]:
    parts = line.strip().split()
    if len(parts) < 2 or parts[0] != "bestmove" or parts[1] == "(none)":
        return None
    try:
        return Move.from_uci(parts[1])
    except ValueError:
        return None


class EngineMoveCoordinator:
    """Feeds engine-controlled turns to an engine process and applies its replies.

    A request remembers the session generation and ply it was made for; a
    reply arriving after a reset or after the turn moved on is dropped.
    """

    def __init__(
        self,
        session: GameSession,
        engine: EngineProcess,
        send_command: SendCommand,
        *,
        engine_players: Iterable[Player] = (),
        difficulty: str = DEFAULT_DIFFICULTY,
        movetime_ms: Optional[int] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._session = session
        self._engine = engine
        self._send_command = send_command
        self._engine_players: Set[Player] = set(engine_players)
        self._difficulty = DifficultyRegistry.resolve(difficulty).name
        self._movetime_ms = movetime_ms
        self._on_status = on_status
        self._pending: Optional[Tuple[int, int, Player]] = None
        self._ignore_replies = 0
        self._pending_explicit = False
        self._unsubscribe = session.subscribe(SessionEvent.STATE_CHANGED, lambda _: self.maybe_request_move())

    @property
    def waiting(self) -> bool:
        return self._pending is not None

    @property
    def engine_players(self) -> Set[Player]:
        return set(self._engine_players)

    @property
    def difficulty(self) -> str:
        return self._difficulty

    def start(self) -> None:
        self._dispatch("ucinewgame")
        self._dispatch(f"setoption name Difficulty value {self._difficulty}")
        self.maybe_request_move()

    def close(self) -> None:
        self._unsubscribe()
        self._abandon_pending()

    def set_engine_players(self, players: Iterable[Player]) -> None:
        self._engine_players = set(players)
        # Only a "Go" request outlives engine control of its side.
        if self._pending is not None and not self._pending_explicit and self._pending[2] not in self._engine_players:
            self._abandon_pending()
        self.maybe_request_move()

    def set_difficulty(self, difficulty: str) -> None:
        self._difficulty = DifficultyRegistry.resolve(difficulty).name
        self._dispatch(f"setoption name Difficulty value {self._difficulty}")

    def maybe_request_move(self) -> bool:
        if self._pending is not None and not self._pending_is_current():
            self._abandon_pending()
        if self._session.current_player not in self._engine_players:
            return False
        return self._request(explicit=False)

    def request_move(self) -> bool:
        """Ask the engine to move for the side to move, whoever controls it."""
        return self._request(explicit=True)

    def _request(self, *, explicit: bool) -> bool:
        session = self._session
        if session.phase is not GamePhase.PLAYING or self._pending is not None:
            return False
        snapshot = session.snapshot()
        self._pending = (snapshot.generation, snapshot.ply, snapshot.current_player)
        self._pending_explicit = explicit
        self._dispatch(f"position board {snapshot.board.notation()}")
        self._dispatch(build_go_command(self._movetime_ms))
        self._status(f"Engine thinking for {PLAYER_NAMES[snapshot.current_player]}")
        return True

    def on_bestmove(self, line: str) -> Optional[MoveResult]:
        if self._ignore_replies:
            self._ignore_replies -= 1
            return None
        if self._pending is None:
            return None
        current = self._pending_is_current()
        self._pending = None
        if not current:
            self._status("Discarded stale engine move")
            self.maybe_request_move()
            return None

        move = parse_bestmove(line)
        if move is None:
            self._status("Engine found no move")
            return None
        result = self._session.commit_move(move.from_row, move.from_col, move.to_row, move.to_col)
        if not result.success:
            self._status(f"Engine move rejected: {move.uci()}")
        elif result.winner is not None:
            self._status(f"{PLAYER_NAMES[result.winner]} wins: {result.reason}")
        return result

    def _pending_is_current(self) -> bool:
        if self._pending is None:
            return False
        generation, ply, player = self._pending
        session = self._session
        return (
            session.generation == generation
            and session.ply == ply
            and session.current_player is player
            and session.phase is GamePhase.PLAYING
        )

    def _abandon_pending(self) -> None:
        if self._pending is None:
            return
        self._pending = None
        self._ignore_replies += 1
        self._dispatch("stop")

    def _dispatch(self, command: str) -> None:
        self._send_command(self._engine, command)

    def _status(self, message: str) -> None:
        if self._on_status is not None:
            self._on_status(message)


def process_engine_output_line(
    line: str,
    *,
    coordinator: EngineMoveCoordinator,
    emit: Callable[[str], None],
) -> Optional[MoveResult]:
    emit(line)
    if line.startswith("bestmove"):
        return coordinator.on_bestmove(line)
    return None


def run_headless_self_play(args) -> GameSession:
    board = Board(args.board) if args.board else Board()
    quiet = bool(args.self_play_quiet)
    rng = random.Random(args.seed)
    time_limit = args.movetime / 1000.0 if getattr(args, "movetime", None) else None
    session = GameSession(board)
    players = {
        player: AnimalChessAI(player, args.difficulty, rng=rng, time_limit=time_limit)
        for player in Player
    }

    def log(message: str) -> None:
        if not quiet:
            print(info_text(message))

    def announce(winner: Player, reason: str) -> None:
        log(f"Game over: {PLAYER_NAMES[winner]} wins ({reason})")

    session.subscribe(SessionEvent.GAME_OVER, announce)
    log(f"Self-play started at difficulty {args.difficulty}")

    max_plies = args.max_plies if args.max_plies is not None else DEFAULT_MAX_PLIES
    while session.phase is GamePhase.PLAYING and session.ply < max_plies:
        mover = session.current_player
        result = players[mover].play(session)
        if result is None:
            log(f"{PLAYER_NAMES[mover]} has no move available")
            break
        last = session.snapshot().move_history[-1]
        line = f"{session.ply:>3}. {PLAYER_NAMES[mover]} {last.move.uci()}"
        if last.captured is not None:
            line += f" takes {describe_piece(last.captured)}"
        log(line)

    if session.phase is GamePhase.PLAYING:
        log(f"Self-play stopped after {session.ply} plies")
    return session


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Animal Chess with a search-based opponent")
    parser.add_argument(
        "--board", help="Set the initial board state to the given board notation"
    )
    parser.add_argument("-dev", action="store_true", help="Enable debug mode")
    parser.add_argument(
        "--difficulty",
        choices=DifficultyRegistry.names(),
        default=DEFAULT_DIFFICULTY,
        help="Computer opponent strength",
    )
    parser.add_argument(
        "--ai-side",
        choices=("first", "second", "none"),
        default="second",
        help="Side played by the engine in GUI mode",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for the move noise")
    parser.add_argument(
        "--self-play",
        action="store_true",
        help="Run headless self-play and exit instead of launching the GUI",
    )
    parser.add_argument(
        "--self-play-quiet",
        action="store_true",
        help="Reduce console logging while running headless self-play",
    )
    parser.add_argument(
        "--max-plies",
        type=int,
        default=None,
        help="Stop headless self-play after this many plies",
    )
    parser.add_argument(
        "--movetime", type=int, default=None, help="Engine time budget per move in milliseconds"
    )
    return parser.parse_args(argv)


def engine_output_processor(
    proc: QProcessType,
    gui: "JungleGUI",
    coordinator: EngineMoveCoordinator,
    *,
    verbose: bool = False,
) -> None:
    while proc.canReadLine():
        output = bytes(proc.readLine()).decode().strip()
        if not output:
            continue

        def emit(line: str) -> None:
            if verbose or line.startswith("bestmove"):
                print(received_text(f"JungleFish {line}"))

        result = process_engine_output_line(output, coordinator=coordinator, emit=emit)
        if result is not None and not result.success:
            gui.set_info_message("Engine move rejected")


def start_engine_process(path: str) -> QProcessType:
    if QProcess is None:  # pragma: no cover - defensive
        raise ImportError("PySide6 is required to start GUI engine processes")
    proc = QProcess()
    proc.setProcessChannelMode(QProcess.MergedChannels)
    proc.start(sys.executable, [path])
    if not proc.waitForStarted(5000):
        print(f"info string Engine failed to start within timeout: {path}")
    return proc


def main():
    args = parse_args()
    script_dir = os.path.dirname(os.path.abspath(__file__))

    if args.self_play:
        run_headless_self_play(args)
        return

    if QApplication is None or QProcess is None:
        raise ImportError("PySide6 is required for GUI mode; install PySide6 or use --self-play.")

    from gui import JungleGUI, cleanup  # Local import to avoid PySide requirement for headless use

    board = Board(args.board) if args.board else Board()
    dev = bool(args.dev)
    reporting_level = ReportingLevel.VERBOSE if dev else ReportingLevel.BASIC
    ai_side = parse_player(args.ai_side)

    app = QApplication(sys.argv)
    session = GameSession(board)
    gui = JungleGUI(session, dev=dev, reporting_level=reporting_level, difficulty=args.difficulty)

    engine_path = os.path.join(script_dir, ENGINE_SCRIPT)
    if not os.path.exists(engine_path):
        raise FileNotFoundError(f"Engine script not found: {engine_path}")
    proc = start_engine_process(engine_path)
    print(info_text(f"Engine -> {engine_path}"))

    def send_command(process: QProcessType, command: str) -> None:
        if reporting_level >= ReportingLevel.VERBOSE:
            print(sending_text(f"JungleFish {command}"))
        process.write((command + "\n").encode())
        process.waitForBytesWritten()

    default_engine_players = {ai_side} if ai_side is not None else set()
    coordinator = EngineMoveCoordinator(
        session,
        proc,
        send_command,
        engine_players=default_engine_players,
        difficulty=args.difficulty,
        movetime_ms=args.movetime,
        on_status=gui.set_info_message,
    )
    proc.readyReadStandardOutput.connect(
        lambda: engine_output_processor(proc, gui, coordinator, verbose=dev)
    )

    def toggle_self_play(active: bool) -> None:
        coordinator.set_engine_players(set(Player) if active else default_engine_players)

    gui.set_engine_callbacks(
        go_callback=coordinator.request_move,
        difficulty_callback=coordinator.set_difficulty,
        self_play_callback=toggle_self_play,
        engine_busy=lambda: coordinator.waiting,
    )

    def shutdown():
        coordinator.close()
        if proc.state() != QProcess.NotRunning:
            try:
                send_command(proc, "quit")
                proc.closeWriteChannel()
            except Exception as exc:  # pragma: no cover - defensive logging
                if dev:
                    print(debug_text(f"Failed to send quit to engine: {exc}"))
        cleanup(proc, None, app, dev=dev, quit_app=False)

    app.aboutToQuit.connect(shutdown)

    coordinator.start()
    gui.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
