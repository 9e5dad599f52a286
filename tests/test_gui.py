import re
from unittest.mock import patch

import pytest

pytest.importorskip("PySide6")
pytestmark = pytest.mark.gui

from PySide6.QtCore import Qt
from PySide6.QtTest import QTest
from PySide6.QtWidgets import QApplication, QMessageBox, QPushButton

from board import Animal, Board, Piece, Player
from gui import JungleGUI, SQUARE_STYLE
from session import GameSession
from utils import ReportingLevel

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")


def _strip_ansi(text: str) -> str:
    return ANSI_ESCAPE.sub("", text)


@pytest.fixture(scope="session")
def app():
    application = QApplication.instance()
    if application is None:
        application = QApplication([])
    return application


@pytest.fixture()
def jungle_gui(app):
    gui = JungleGUI(
        GameSession(),
        dev=True,
        reporting_level=ReportingLevel.VERBOSE,
    )
    gui.show()
    QTest.qWait(50)
    yield gui
    gui.close()
    QTest.qWait(20)


def test_window_properties(jungle_gui):
    assert jungle_gui.isVisible()
    assert jungle_gui.windowTitle() == "JungleFish"
    assert jungle_gui.minimumWidth() >= 420
    assert jungle_gui.minimumHeight() >= 640
    assert jungle_gui.turn_indicator.text() == "First's turn"
    assert jungle_gui.info_indicator.text() == "Game Started"
    assert len(jungle_gui.squares) == 63


def test_control_buttons_present(jungle_gui):
    button_texts = {button.text() for button in jungle_gui.findChildren(QPushButton)}
    assert {"Reset board", "Go", "Start Self-Play"}.issubset(button_texts)
    assert [jungle_gui.difficulty_combo.itemText(i) for i in range(jungle_gui.difficulty_combo.count())] == [
        "easy",
        "medium",
        "hard",
    ]


def test_board_shows_pieces_and_terrain(jungle_gui):
    assert jungle_gui.squares[(0, 0)].text() == "狮"
    assert jungle_gui.squares[(2, 6)].text() == "象"
    assert jungle_gui.squares[(4, 3)].text() == ""
    assert SQUARE_STYLE["river"] in jungle_gui.squares[(4, 1)].styleSheet()
    assert SQUARE_STYLE["den"] in jungle_gui.squares[(8, 3)].styleSheet()


def test_board_interaction_moves_piece(jungle_gui):
    QTest.mouseClick(jungle_gui.squares[(2, 0)], Qt.LeftButton)
    assert SQUARE_STYLE["selected_color"] in jungle_gui.squares[(2, 0)].styleSheet()
    assert SQUARE_STYLE["legal_color"] in jungle_gui.squares[(3, 0)].styleSheet()

    QTest.mouseClick(jungle_gui.squares[(3, 0)], Qt.LeftButton)
    QTest.qWait(20)

    board = jungle_gui.session.snapshot().board
    assert board.piece_at(3, 0) == Piece(Animal.RAT, Player.FIRST)
    assert board.piece_at(2, 0) is None
    assert jungle_gui.squares[(3, 0)].text() == "鼠"
    assert jungle_gui.turn_indicator.text() == "Second's turn"
    assert SQUARE_STYLE["prev_moved_color"] in jungle_gui.squares[(2, 0)].styleSheet()


def test_invalid_move_logs_message(jungle_gui, capfd):
    capfd.readouterr()

    QTest.mouseClick(jungle_gui.squares[(2, 2)], Qt.LeftButton)
    QTest.mouseClick(jungle_gui.squares[(4, 2)], Qt.LeftButton)
    QTest.qWait(20)

    output = _strip_ansi(capfd.readouterr().out)
    assert "Invalid Move" in output
    assert jungle_gui.session.ply == 0


def test_clicks_ignored_while_engine_busy(jungle_gui):
    jungle_gui.engine_busy = lambda: True
    QTest.mouseClick(jungle_gui.squares[(2, 0)], Qt.LeftButton)
    assert jungle_gui.session.selection is None
    assert jungle_gui.info_indicator.text() == "Engine is thinking"


def test_engine_callbacks(jungle_gui):
    requests = []
    difficulties = []
    self_play = []
    jungle_gui.set_engine_callbacks(
        go_callback=lambda: requests.append("go") or True,
        difficulty_callback=difficulties.append,
        self_play_callback=self_play.append,
        engine_busy=lambda: False,
    )

    jungle_gui.go_command()
    assert requests == ["go"]

    jungle_gui.difficulty_combo.setCurrentText("hard")
    assert difficulties == ["hard"]
    assert jungle_gui.difficulty == "hard"

    jungle_gui.toggle_self_play()
    assert self_play == [True]
    assert jungle_gui.self_play_button.text() == "Stop Self-Play"
    jungle_gui.toggle_self_play()
    assert self_play == [True, False]
    assert jungle_gui.self_play_button.text() == "Start Self-Play"


def test_go_reports_busy_engine(jungle_gui):
    jungle_gui.set_engine_callbacks(go_callback=lambda: False)
    jungle_gui.go_command()
    assert jungle_gui.info_indicator.text() == "Engine is already thinking"


def test_game_over_shows_message(app):
    gui = JungleGUI(GameSession(Board("7/7/7/7/7/7/e6/3C3/7 f")))
    with patch.object(QMessageBox, "information") as information:
        gui.session.commit_move(7, 3, 8, 3)
    information.assert_called_once()
    assert information.call_args[0][1] == "Game Over"
    assert "First wins: reached enemy den" in gui.info_indicator.text()
    gui.close()


def test_reset_game(jungle_gui):
    jungle_gui.session.commit_move(2, 0, 3, 0)
    jungle_gui.reset_game()
    assert jungle_gui.session.ply == 0
    assert jungle_gui.turn_indicator.text() == "First's turn"
    assert jungle_gui.info_indicator.text() == "Game Reset"
    assert jungle_gui.squares[(2, 0)].text() == "鼠"
