import itertools

import pytest

import jungle_logic
from board import Animal, Board, Move, Piece, Player, Terrain

EMPTY = "7/7/7/7/7/7/7/7/7 f"


def _board(placements, turn: Player = Player.FIRST) -> Board:
    board = Board(EMPTY)
    for (row, col), piece in placements.items():
        board.set_piece_at(row, col, piece)
    board.turn = turn
    return board


def first(animal: Animal) -> Piece:
    return Piece(animal, Player.FIRST)


def second(animal: Animal) -> Piece:
    return Piece(animal, Player.SECOND)


def test_power_ordering_on_normal_terrain() -> None:
    for attacker, defender in itertools.product(Animal, repeat=2):
        if {attacker, defender} == {Animal.RAT, Animal.ELEPHANT}:
            continue
        expected = attacker.power >= defender.power
        assert jungle_logic.can_capture(first(attacker), second(defender), Terrain.NORMAL) is expected


@pytest.mark.parametrize("terrain", [Terrain.NORMAL, Terrain.DEN, Terrain.TRAP])
def test_rat_elephant_exception(terrain: Terrain) -> None:
    # On a trap the defender's own trap does not weaken it.
    guard = Player.SECOND if terrain is Terrain.TRAP else None
    assert jungle_logic.can_capture(first(Animal.RAT), second(Animal.ELEPHANT), terrain, guard) is True
    assert jungle_logic.can_capture(first(Animal.ELEPHANT), second(Animal.RAT), terrain, guard) is False


def test_empty_destination_is_always_capturable() -> None:
    assert jungle_logic.can_capture(first(Animal.CAT), None, Terrain.RIVER) is True


def test_only_a_rat_enters_the_river() -> None:
    board = _board({(2, 1): first(Animal.ELEPHANT), (2, 5): first(Animal.RAT)})
    assert (3, 1) not in jungle_logic.legal_moves_from(board, 2, 1)
    assert (3, 5) in jungle_logic.legal_moves_from(board, 2, 5)


def test_non_rat_cannot_capture_into_the_river() -> None:
    board = _board({(2, 1): first(Animal.ELEPHANT), (3, 1): second(Animal.RAT)})
    assert not jungle_logic.is_valid_move(board, Move(2, 1, 3, 1), Player.FIRST)


def test_rats_fight_inside_the_river() -> None:
    board = _board({(3, 1): first(Animal.RAT), (4, 1): second(Animal.RAT)})
    assert jungle_logic.is_valid_move(board, Move(3, 1, 4, 1), Player.FIRST)
    outcome = jungle_logic.apply_move(board, Move(3, 1, 4, 1))
    assert outcome.attacker_survived is False
    assert board.piece_at(4, 1) is None


@pytest.mark.parametrize("blocker_owner", list(Player))
def test_leap_is_blocked_by_any_rat(blocker_owner: Player) -> None:
    board = _board({(2, 1): first(Animal.LION), (4, 1): Piece(Animal.RAT, blocker_owner)})
    assert (6, 1) not in jungle_logic.legal_moves_from(board, 2, 1)
    assert jungle_logic.river_leap(board, 2, 1, 1, 0) is None

    board.remove_piece_at(4, 1)
    assert (6, 1) in jungle_logic.legal_moves_from(board, 2, 1)
    assert jungle_logic.river_leap(board, 2, 1, 1, 0) == (6, 1)


def test_only_lion_and_tiger_leap() -> None:
    board = _board({(2, 1): first(Animal.LEOPARD), (2, 4): first(Animal.TIGER)})
    assert jungle_logic.river_leap(board, 2, 1, 1, 0) is None
    assert (6, 4) in jungle_logic.legal_moves_from(board, 2, 4)


def test_leap_onto_stronger_piece_is_rejected() -> None:
    board = _board({(2, 1): first(Animal.TIGER), (6, 1): second(Animal.LION)})
    assert (6, 1) not in jungle_logic.legal_moves_from(board, 2, 1)


def test_trap_neutralizes_defender() -> None:
    board = _board({(0, 1): first(Animal.CAT), (0, 2): second(Animal.ELEPHANT)})
    assert board.terrain_at(0, 2) is Terrain.TRAP
    assert jungle_logic.is_valid_move(board, Move(0, 1, 0, 2), Player.FIRST)

    board = _board({(1, 2): first(Animal.ELEPHANT), (0, 2): second(Animal.RAT)})
    assert jungle_logic.is_valid_move(board, Move(1, 2, 0, 2), Player.FIRST)


def test_own_trap_does_not_weaken_defender() -> None:
    board = _board({(0, 1): second(Animal.CAT), (0, 2): first(Animal.ELEPHANT)}, Player.SECOND)
    assert not jungle_logic.is_valid_move(board, Move(0, 1, 0, 2), Player.SECOND)


def test_piece_cannot_enter_own_den() -> None:
    board = _board({(1, 3): first(Animal.DOG), (7, 3): second(Animal.DOG)})
    assert (0, 3) not in jungle_logic.legal_moves_from(board, 1, 3)
    assert (8, 3) not in jungle_logic.legal_moves_from(board, 7, 3)


def test_cannot_capture_own_piece() -> None:
    board = _board({(4, 0): first(Animal.ELEPHANT), (5, 0): first(Animal.RAT)})
    assert (5, 0) not in jungle_logic.legal_moves_from(board, 4, 0)


def test_equal_power_destroys_both_pieces() -> None:
    board = _board({(4, 0): first(Animal.WOLF), (5, 0): second(Animal.WOLF), (8, 6): second(Animal.CAT)})
    outcome = jungle_logic.apply_move(board, Move(4, 0, 5, 0))
    assert outcome.captured == second(Animal.WOLF)
    assert outcome.attacker_survived is False
    assert board.piece_at(4, 0) is None
    assert board.piece_at(5, 0) is None


def test_apply_move_requires_a_piece() -> None:
    board = _board({})
    with pytest.raises(ValueError):
        jungle_logic.apply_move(board, Move(4, 0, 5, 0))


def test_apply_then_undo_restores_every_position() -> None:
    board = Board()
    before = board.notation()
    for player in Player:
        for move in jungle_logic.all_legal_moves(board, player):
            outcome = jungle_logic.apply_move(board, move)
            jungle_logic.undo_move(board, outcome)
            assert board.notation() == before


def test_undo_restores_captures() -> None:
    board = _board({(4, 0): first(Animal.WOLF), (5, 0): second(Animal.WOLF)})
    before = board.notation()
    outcome = jungle_logic.apply_move(board, Move(4, 0, 5, 0))
    jungle_logic.undo_move(board, outcome)
    assert board.notation() == before


def test_is_valid_move_checks_owner_and_bounds() -> None:
    board = Board()
    assert jungle_logic.is_valid_move(board, Move(2, 0, 3, 0), Player.FIRST)
    assert not jungle_logic.is_valid_move(board, Move(2, 0, 3, 0), Player.SECOND)
    assert not jungle_logic.is_valid_move(board, Move(2, 0, -1, 0))
    assert not jungle_logic.is_valid_move(board, Move(4, 4, 5, 4))
    assert not jungle_logic.is_valid_move(board, Move(2, 0, 4, 0))


def test_starting_position_move_counts() -> None:
    board = Board()
    assert len(jungle_logic.all_legal_moves(board, Player.FIRST)) == 24
    assert jungle_logic.has_legal_moves(board, Player.SECOND)
    assert jungle_logic.get_possible_moves(board, 0, 0) == [Move(0, 0, 1, 0), Move(0, 0, 0, 1)]


def test_den_invasion_wins() -> None:
    board = _board({(1, 3): second(Animal.CAT), (4, 0): first(Animal.ELEPHANT)}, Player.SECOND)
    jungle_logic.apply_move(board, Move(1, 3, 0, 3))
    assert jungle_logic.check_win_condition(board) is Player.SECOND
    assert jungle_logic.get_win_reason(board, Player.SECOND) == jungle_logic.REASON_DEN


def test_elimination_wins() -> None:
    board = _board({(4, 0): first(Animal.ELEPHANT), (5, 0): second(Animal.LEOPARD)})
    assert jungle_logic.check_win_condition(board) is None
    jungle_logic.apply_move(board, Move(4, 0, 5, 0))
    assert jungle_logic.check_win_condition(board) is Player.FIRST
    assert jungle_logic.get_win_reason(board, Player.FIRST) == jungle_logic.REASON_ELIMINATION


def test_no_move_reason_when_neither_den_nor_elimination() -> None:
    board = _board({(4, 0): first(Animal.ELEPHANT), (8, 0): second(Animal.CAT)})
    assert jungle_logic.get_win_reason(board, Player.FIRST) == jungle_logic.REASON_NO_MOVES


def test_rat_steps_into_river_where_others_cannot() -> None:
    board = Board()
    leopard_move = Move(2, 2, 3, 2)
    assert board.terrain_at(3, 2) is Terrain.RIVER
    assert not jungle_logic.is_valid_move(board, leopard_move, Player.FIRST)

    jungle_logic.apply_move(board, Move(2, 0, 2, 1))
    rat_move = Move(2, 1, 3, 1)
    assert board.terrain_at(3, 1) is Terrain.RIVER
    assert jungle_logic.is_valid_move(board, rat_move, Player.FIRST)
    jungle_logic.apply_move(board, rat_move)
    assert board.piece_at(3, 1) == first(Animal.RAT)


def test_lion_leaps_across_lane_and_captures_tiger() -> None:
    board = _board({(4, 0): first(Animal.LION), (4, 3): second(Animal.TIGER)})
    moves = jungle_logic.get_possible_moves(board, 4, 0)
    leap = Move(4, 0, 4, 3)
    assert leap in moves
    assert Move(4, 0, 4, 1) not in moves

    outcome = jungle_logic.apply_move(board, leap)
    assert outcome.captured == second(Animal.TIGER)
    assert outcome.attacker_survived is True
    assert board.piece_at(4, 3) == first(Animal.LION)
    assert board.piece_at(4, 0) is None
