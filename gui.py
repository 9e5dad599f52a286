# GUI
import sys
from typing import Callable, Dict, Optional, Tuple

from PySide6.QtCore import QProcess, Qt, QSize
from PySide6.QtGui import QColor, QFont, QPalette
from PySide6.QtWidgets import (
    QApplication,
    QComboBox,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

import utils
from board import COLS, FILES, ROWS, Player, Terrain, square_name
from search import DifficultyRegistry
from session import GamePhase, GameSession, GameSnapshot, MoveResult, SessionEvent
from utils import ReportingLevel

SQUARE_STYLE = {
    "normal": "#c8b27d",
    "river": "#4a7fb5",
    "trap": "#9c6b3f",
    "den": "#6d4c8f",
    "selected_color": "#4f6f52",
    "legal_color": "#8fbf72",
    "prev_moved_color": "#6b8f71",
}
PIECE_COLORS = {Player.FIRST: "#b3261e", Player.SECOND: "#1d3f8f"}


def cleanup(process, thread, app, dev=False, quit_app=True):
    if dev:
        print(utils.debug_text("Cleaning up resources..."))

    if process is not None:
        if process.state() != QProcess.NotRunning:
            process.terminate()
            if not process.waitForFinished(2000):
                if dev:
                    print(utils.debug_text("Engine process unresponsive; forcing termination"))
                process.kill()
                process.waitForFinished(1000)
        process.close()

    if thread is not None:
        thread.join(timeout=1)

    if quit_app and app is not None:
        app.quit()


def center_on_screen(window):
    screen = QApplication.primaryScreen()
    if screen is None:
        return
    screen_geometry = screen.geometry()
    window_size = window.size()
    x = (screen_geometry.width() - window_size.width()) // 2 + screen_geometry.left()
    y = (screen_geometry.height() - window_size.height()) // 2 + screen_geometry.top()
    window.move(x, y)


class JungleGUI(QMainWindow):
    def __init__(
        self,
        session: GameSession,
        dev=False,
        reporting_level: ReportingLevel = ReportingLevel.BASIC,
        difficulty: str = "medium",
        go_callback: Optional[Callable[[], bool]] = None,
        difficulty_callback: Optional[Callable[[str], None]] = None,
        self_play_callback: Optional[Callable[[bool], None]] = None,
        engine_busy: Optional[Callable[[], bool]] = None,
    ):
        super().__init__()
        self.session = session
        self.dev = dev
        self.reporting_level = reporting_level
        self.difficulty = DifficultyRegistry.resolve(difficulty).name
        self.go_callback = go_callback
        self.difficulty_callback = difficulty_callback
        self.self_play_callback = self_play_callback
        self.engine_busy = engine_busy
        self.self_play_active = False
        self.square_font = QFont("Noto Sans CJK SC", 20)
        self.control_button_font = QFont("Segoe UI", 11)
        self.apply_theme()
        print(utils.info_text("Starting Game..."))
        if self.dev:
            print(utils.debug_text("Debug Mode ENABLED"))

        self.init_ui()
        self._unsubscribers = [
            session.subscribe(SessionEvent.STATE_CHANGED, self.update_board),
            session.subscribe(SessionEvent.GAME_OVER, self.on_game_over),
        ]

    @property
    def full_reporting(self) -> bool:
        return self.reporting_level >= ReportingLevel.VERBOSE

    def apply_theme(self):
        app = QApplication.instance()
        if app and app.style().objectName().lower() != "fusion":
            QApplication.setStyle("Fusion")

        palette = QPalette()
        palette.setColor(QPalette.Window, QColor("#1c1f24"))
        palette.setColor(QPalette.WindowText, QColor("#f5f7fb"))
        palette.setColor(QPalette.Base, QColor("#1c1f24"))
        palette.setColor(QPalette.Text, QColor("#f5f7fb"))
        palette.setColor(QPalette.Button, QColor("#2b3038"))
        palette.setColor(QPalette.ButtonText, QColor("#f5f7fb"))
        palette.setColor(QPalette.Highlight, QColor("#5865f2"))
        palette.setColor(QPalette.HighlightedText, QColor("#ffffff"))

        if app:
            app.setPalette(palette)

        self.setStyleSheet(
            """
            QMainWindow { background-color: #1c1f24; }
            QLabel#turnIndicator { font-size: 18px; font-weight: 600; }
            QLabel#infoIndicator { color: #b0b7c3; font-size: 12px; }
            QLabel#capturedIndicator { color: #d5d9e3; font-size: 12px; }
            QWidget#boardContainer {
                background-color: #171a1f;
                border-radius: 12px;
                padding: 6px;
            }
            QPushButton[panel="control"] {
                background-color: #2d333c;
                color: #f5f7fb;
                border: 1px solid #3a414d;
                border-radius: 8px;
                padding: 6px 10px;
            }
            """
        )

    def style_control_button(self, button):
        button.setProperty("panel", "control")
        button.setFont(self.control_button_font)
        button.setCursor(Qt.PointingHandCursor)
        button.setFocusPolicy(Qt.NoFocus)
        button.setMinimumWidth(72)
        button.style().unpolish(button)
        button.style().polish(button)
        button.update()

    def init_ui(self):
        self.setWindowTitle("JungleFish")
        self.setMinimumSize(420, 640)

        central_widget = QWidget(self)
        self.setCentralWidget(central_widget)
        main_layout = QVBoxLayout(central_widget)
        main_layout.setContentsMargins(8, 8, 8, 8)
        main_layout.setSpacing(6)

        self.turn_indicator = QLabel(self._turn_text(self.session.current_player))
        self.turn_indicator.setObjectName("turnIndicator")
        self.turn_indicator.setAlignment(Qt.AlignCenter)
        main_layout.addWidget(self.turn_indicator)

        self.info_indicator = QLabel("Game Started")
        self.info_indicator.setObjectName("infoIndicator")
        self.info_indicator.setAlignment(Qt.AlignCenter)
        main_layout.addWidget(self.info_indicator)

        board_widget = QWidget()
        board_widget.setObjectName("boardContainer")
        grid_layout = QGridLayout(board_widget)
        grid_layout.setContentsMargins(0, 0, 0, 0)
        grid_layout.setSpacing(0)
        main_layout.addWidget(board_widget)

        label_font = QFont("Segoe UI", 11)
        label_font.setBold(True)
        label_style = "color: #d5d9e3;"

        # Row 0 (the first player's den) is drawn at the bottom.
        for col in range(COLS):
            file_label = QLabel(FILES[col])
            file_label.setAlignment(Qt.AlignCenter)
            file_label.setFont(label_font)
            file_label.setStyleSheet(label_style)
            grid_layout.addWidget(file_label, ROWS, col + 1)
        for row in range(ROWS):
            rank_label = QLabel(str(row + 1))
            rank_label.setAlignment(Qt.AlignCenter)
            rank_label.setFont(label_font)
            rank_label.setStyleSheet(label_style)
            grid_layout.addWidget(rank_label, ROWS - 1 - row, 0)

        self.squares: Dict[Tuple[int, int], QPushButton] = {}
        for row in range(ROWS):
            for col in range(COLS):
                button = QPushButton("")
                button.setFixedSize(QSize(48, 48))
                button.setFont(self.square_font)
                button.setCursor(Qt.PointingHandCursor)
                button.setFocusPolicy(Qt.NoFocus)
                button.setProperty("square", square_name(row, col))
                button.clicked.connect(self.on_square_clicked)
                grid_layout.addWidget(button, ROWS - 1 - row, col + 1)
                self.squares[(row, col)] = button

        self.captured_indicator = QLabel("")
        self.captured_indicator.setObjectName("capturedIndicator")
        self.captured_indicator.setAlignment(Qt.AlignCenter)
        main_layout.addWidget(self.captured_indicator)

        button_layout = QHBoxLayout()
        button_layout.setSpacing(10)
        button_layout.setContentsMargins(0, 12, 0, 0)
        main_layout.addLayout(button_layout)

        reset_button = QPushButton("Reset board")
        reset_button.clicked.connect(self.reset_game)
        self.style_control_button(reset_button)
        button_layout.addWidget(reset_button)

        go_button = QPushButton("Go")
        go_button.clicked.connect(self.go_command)
        self.style_control_button(go_button)
        button_layout.addWidget(go_button)
        self.go_button = go_button

        selfplay_button = QPushButton("Start Self-Play")
        selfplay_button.clicked.connect(self.toggle_self_play)
        self.style_control_button(selfplay_button)
        button_layout.addWidget(selfplay_button)
        self.self_play_button = selfplay_button
        button_layout.addStretch(1)

        difficulty_row = QHBoxLayout()
        difficulty_row.setSpacing(10)
        difficulty_label = QLabel("Difficulty")
        difficulty_label.setFont(QFont("Segoe UI", 10))
        difficulty_row.addWidget(difficulty_label)
        self.difficulty_combo = QComboBox()
        self.difficulty_combo.addItems(list(DifficultyRegistry.names()))
        self.difficulty_combo.setCurrentText(self.difficulty)
        self.difficulty_combo.currentTextChanged.connect(self.change_difficulty)
        difficulty_row.addWidget(self.difficulty_combo)
        difficulty_row.addStretch(1)
        main_layout.addLayout(difficulty_row)

        self.update_board()
        center_on_screen(self)

    @staticmethod
    def _turn_text(player: Player) -> str:
        return f"{utils.PLAYER_NAMES[player]}'s turn"

    def update_board(self, snapshot: Optional[GameSnapshot] = None):
        snapshot = snapshot or self.session.snapshot()
        last_move = snapshot.move_history[-1].move if snapshot.move_history else None
        last_squares = (last_move.origin, last_move.target) if last_move else ()

        for (row, col), button in self.squares.items():
            piece = snapshot.board.piece_at(row, col)
            button.setText(utils.get_piece_symbol(piece) if piece else "")
            button.setStyleSheet(
                self.get_square_style(snapshot, row, col, last_squares)
            )

        self.turn_indicator.setText(self._turn_text(snapshot.current_player))
        captured = []
        for player in Player:
            pieces = "".join(utils.get_piece_symbol(piece) for piece in snapshot.captured_pieces[player])
            captured.append(f"{utils.PLAYER_NAMES[player]} captured: {pieces or '-'}")
        self.captured_indicator.setText("    ".join(captured))

    def get_square_style(self, snapshot: GameSnapshot, row: int, col: int, last_squares=()):
        terrain = snapshot.board.terrain_at(row, col)
        square_color = {
            Terrain.NORMAL: SQUARE_STYLE["normal"],
            Terrain.RIVER: SQUARE_STYLE["river"],
            Terrain.TRAP: SQUARE_STYLE["trap"],
            Terrain.DEN: SQUARE_STYLE["den"],
        }[terrain]

        if snapshot.selection == (row, col):
            square_color = SQUARE_STYLE["selected_color"]
        elif (row, col) in snapshot.legal_moves:
            square_color = SQUARE_STYLE["legal_color"]
        elif (row, col) in last_squares:
            square_color = SQUARE_STYLE["prev_moved_color"]

        piece = snapshot.board.piece_at(row, col)
        text_color = PIECE_COLORS[piece.owner] if piece else "#2b2626"
        return (
            f"background-color: {square_color}; color: {text_color}; "
            f"border-radius: 6px; border: 1px solid rgba(0, 0, 0, 0.2);"
        )

    def on_square_clicked(self):
        clicked_button = self.sender()
        clicked_square = next(
            square for square, button in self.squares.items() if button == clicked_button
        )
        row, col = clicked_square
        name = square_name(row, col)

        if self.engine_busy is not None and self.engine_busy():
            self.set_info_message("Engine is thinking")
            return

        previous = self.session.selection
        result = self.session.select_cell(row, col)
        if isinstance(result, MoveResult):
            mover = self.session.snapshot().move_history[-1].player
            print(
                utils.info_text(
                    f"{square_name(*previous)}{name} {utils.color_text('Valid Move', '32')} by {utils.PLAYER_NAMES[mover]}"
                )
            )
        elif result:
            if self.dev and self.full_reporting:
                state = "Selected" if self.session.selection else "Unselected"
                print(utils.debug_text(f"{name} {state}"))
        elif previous is not None:
            print(
                utils.info_text(
                    f"{square_name(*previous)}{name} {utils.color_text('Invalid Move', '31')} attempted by {utils.PLAYER_NAMES[self.session.current_player]}"
                )
            )
        elif self.dev and self.full_reporting:
            print(utils.debug_text("No Piece on Square/ Wrong side"))

    def on_game_over(self, winner: Player, reason: str):
        message = f"{utils.PLAYER_NAMES[winner]} wins: {reason}."
        print(utils.info_text(f"Game Over: {message}"))
        self.set_info_message(message)
        QMessageBox.information(self, "Game Over", message)

    def reset_game(self):
        print(utils.info_text("Resetting game..."))
        self.session.reset()
        self.set_info_message("Game Reset")

    def go_command(self):
        if self.session.phase is not GamePhase.PLAYING:
            self.set_info_message("Game is over")
            return
        if not self.go_callback:
            print(utils.debug_text("Go callback not set"))
            return
        if not self.go_callback():
            self.set_info_message("Engine is already thinking")

    def change_difficulty(self, difficulty: str):
        self.difficulty = DifficultyRegistry.resolve(difficulty).name
        if self.difficulty_callback:
            self.difficulty_callback(self.difficulty)
        self.set_info_message(f"Difficulty: {self.difficulty}")

    def toggle_self_play(self):
        self.set_self_play_active(not self.self_play_active)
        if self.self_play_callback:
            self.self_play_callback(self.self_play_active)
        else:
            print(utils.debug_text("Self-play callback not set"))

    def set_self_play_active(self, active: bool) -> None:
        self.self_play_active = active
        self.self_play_button.setText("Stop Self-Play" if active else "Start Self-Play")

    def set_engine_callbacks(
        self,
        go_callback: Optional[Callable[[], bool]] = None,
        difficulty_callback: Optional[Callable[[str], None]] = None,
        self_play_callback: Optional[Callable[[bool], None]] = None,
        engine_busy: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.go_callback = go_callback
        self.difficulty_callback = difficulty_callback
        self.self_play_callback = self_play_callback
        self.engine_busy = engine_busy

    def set_info_message(self, message: str) -> None:
        self.info_indicator.setText(message)

    def closeEvent(self, event):
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        super().closeEvent(event)


if __name__ == "__main__":
    app = QApplication(sys.argv)
    window = JungleGUI(GameSession(), dev=True, reporting_level=ReportingLevel.VERBOSE)
    window.show()
    sys.exit(app.exec())
