"""Line-oriented JungleFish engine process.

Speaks a small UCI-style protocol on stdin/stdout so a front end can run
the search in a separate process::

    uci / isready / ucinewgame
    position startpos [moves a3a4 ...]
    position board <notation> [moves ...]
    setoption name Difficulty value hard
    go [depth N] [movetime MS]
    debug on|off / stop / quit
"""

import io
import random
import sys
from typing import Callable, Dict, List, Optional

import jungle_logic
from board import Board, Move
from search import AlphaBetaSearcher, AnimalChessAI, DifficultyRegistry


class JungleEngine:
    def __init__(self, *, difficulty: str = "medium", seed: Optional[int] = None) -> None:
        self.engine_name = "JungleFish"
        self.engine_author = "JungleFish Project"
        self.board = Board()
        self.difficulty = DifficultyRegistry.resolve(difficulty).name
        self.running = True
        self.debug = False
        self._rng = random.Random(seed)
        self._handlers: Dict[str, Callable[[str], None]] = {
            "uci": self.handle_uci,
            "isready": self.handle_isready,
            "ucinewgame": self.handle_ucinewgame,
            "position": self.handle_position,
            "setoption": self.handle_setoption,
            "go": self.handle_go,
            "debug": self.handle_debug,
            "quit": self.handle_quit,
            "stop": lambda _: None,
        }

    def start(self) -> None:
        _ensure_line_buffered_stdout()
        while self.running:
            command = sys.stdin.readline()
            if not command:
                break
            self.handle_command(command)

    def handle_command(self, command: str) -> None:
        command = command.strip()
        if not command:
            return
        parts = command.split(" ", 1)
        name = parts[0].lower()
        args = parts[1] if len(parts) > 1 else ""
        handler = self._handlers.get(name)
        try:
            if handler is None:
                self.handle_unknown(command)
            else:
                handler(args)
        except Exception as exc:
            print(f"info string Error processing command: {exc}")
        finally:
            sys.stdout.flush()

    def handle_uci(self, _: str) -> None:
        print(f"id name {self.engine_name}")
        print(f"id author {self.engine_author}")
        choices = " ".join(f"var {name}" for name in DifficultyRegistry.names())
        print(f"option name Difficulty type combo default {self.difficulty} {choices}")
        print("uciok")

    def handle_isready(self, _: str) -> None:
        print("readyok")

    def handle_ucinewgame(self, _: str) -> None:
        self.board.reset()

    def handle_position(self, args: str) -> None:
        tokens = args.split()
        if not tokens:
            return

        move_tokens: List[str] = []
        if "moves" in tokens:
            move_index = tokens.index("moves")
            move_tokens = tokens[move_index + 1 :]
            tokens = tokens[:move_index]

        if tokens[0] == "startpos":
            board = Board()
        elif tokens[0] == "board":
            notation = " ".join(tokens[1:])
            try:
                board = Board(notation)
            except ValueError:
                print(f"info string Invalid board notation: {notation}")
                return
        else:
            print(f"info string Unsupported position command: {args}")
            return

        for move_text in move_tokens:
            if jungle_logic.check_win_condition(board) is not None:
                print(f"info string Game already decided, ignoring: {move_text}")
                break
            try:
                move = Move.from_uci(move_text)
            except ValueError:
                print(f"info string Invalid move in position command: {move_text}")
                break
            if not jungle_logic.is_valid_move(board, move, board.turn):
                print(f"info string Illegal move in position command: {move_text}")
                break
            jungle_logic.apply_move(board, move)
            board.turn = board.turn.opponent

        self.board = board
        self._log(f"position {self.board.notation()}")

    def handle_setoption(self, args: str) -> None:
        tokens = args.split()
        lowered = [token.lower() for token in tokens]
        if "name" not in lowered or "value" not in lowered:
            print("info string setoption expects 'name <id> value <x>'")
            return
        name = " ".join(tokens[lowered.index("name") + 1 : lowered.index("value")]).lower()
        value = " ".join(tokens[lowered.index("value") + 1 :])
        if name != "difficulty":
            print(f"info string Unknown option: {name}")
            return
        try:
            self.difficulty = DifficultyRegistry.resolve(value).name
        except ValueError as exc:
            print(f"info string {exc}")
            return
        self._log(f"Difficulty set to {self.difficulty}")

    def handle_go(self, args: str) -> None:
        move = self._select_move(args)
        if move is None:
            print("bestmove (none)")
            return
        print(f"bestmove {move.uci()}")

    def handle_debug(self, args: str) -> None:
        setting = args.strip().lower()
        if setting == "on":
            self.debug = True
        elif setting == "off":
            self.debug = False
        else:
            print("info string debug expects 'on' or 'off'")
            return
        self._log(f"Debug set to {self.debug}")

    def handle_quit(self, _: str) -> None:
        self.running = False
        print("info string JungleFish shutting down")

    def handle_unknown(self, command: str) -> None:
        print(f"info string Unknown command: {command}")

    def _select_move(self, args: str) -> Optional[Move]:
        if jungle_logic.check_win_condition(self.board) is not None:
            return None

        depth: Optional[int] = None
        movetime: Optional[int] = None
        tokens = args.split()
        for index, token in enumerate(tokens[:-1]):
            try:
                if token == "depth":
                    depth = max(1, int(tokens[index + 1]))
                elif token == "movetime":
                    movetime = max(1, int(tokens[index + 1]))
            except ValueError:
                print(f"info string Invalid value for {token}: {tokens[index + 1]}")

        time_limit = movetime / 1000.0 if movetime is not None else None
        ai = AnimalChessAI(self.board.turn, self.difficulty, rng=self._rng, time_limit=time_limit)
        if depth is not None and ai.settings.use_search:
            searcher = AlphaBetaSearcher(
                self.board,
                self.board.turn,
                random_factor=ai.settings.random_factor,
                rng=self._rng,
                time_limit=time_limit,
            )
            score, move = searcher.search(depth)
            self._log(f"depth {searcher.completed_depth} nodes {searcher.nodes} score {score:.1f}")
            if move is not None:
                return move
        move = ai.choose_move(self.board)
        if ai.last_error is not None:
            print(f"info string Search failed, playing a random move: {ai.last_error}")
        self._log(f"difficulty {ai.difficulty} nodes {ai.last_nodes}")
        return move

    def _log(self, message: str) -> None:
        if self.debug:
            print(f"info string {message}")


def _ensure_line_buffered_stdout() -> None:
    stdout = sys.stdout
    if isinstance(stdout, io.TextIOBase) and getattr(stdout, "line_buffering", False):
        return
    buffer = getattr(stdout, "buffer", None)
    if buffer is None:
        return
    sys.stdout = io.TextIOWrapper(buffer, line_buffering=True)


if __name__ == "__main__":
    JungleEngine().start()
