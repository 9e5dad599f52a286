"""Board and terrain model for JungleFish.

The board is the fixed 9x7 Dou Shou Qi grid.  Terrain never changes during
a game; only the piece occupying each cell does.  Row 0 is the first
player's home row (their den sits at column 3) and row 8 is the second
player's.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Iterator, List, Optional, Tuple

ROWS = 9
COLS = 7
FILES = "abcdefg"


class Player(Enum):
    FIRST = "first"
    SECOND = "second"

    @property
    def opponent(self) -> "Player":
        return Player.SECOND if self is Player.FIRST else Player.FIRST


class Terrain(Enum):
    NORMAL = 0
    RIVER = 1
    TRAP = 2
    DEN = 3


class Animal(IntEnum):
    """Animals ordered by rank; the value is the piece's power."""

    RAT = 1
    CAT = 2
    DOG = 3
    WOLF = 4
    LEOPARD = 5
    TIGER = 6
    LION = 7
    ELEPHANT = 8

    @property
    def power(self) -> int:
        return int(self)

    @property
    def can_swim(self) -> bool:
        return self is Animal.RAT

    @property
    def can_leap(self) -> bool:
        return self in (Animal.LION, Animal.TIGER)


ANIMAL_LETTERS: Dict[Animal, str] = {
    Animal.RAT: "r",
    Animal.CAT: "c",
    Animal.DOG: "d",
    Animal.WOLF: "w",
    Animal.LEOPARD: "p",
    Animal.TIGER: "t",
    Animal.LION: "l",
    Animal.ELEPHANT: "e",
}
LETTER_ANIMALS: Dict[str, Animal] = {letter: animal for animal, letter in ANIMAL_LETTERS.items()}

_N, _R, _T, _D = Terrain.NORMAL, Terrain.RIVER, Terrain.TRAP, Terrain.DEN

TERRAIN_LAYOUT: Tuple[Tuple[Terrain, ...], ...] = (
    (_N, _N, _T, _D, _T, _N, _N),
    (_N, _N, _N, _T, _N, _N, _N),
    (_N, _N, _N, _N, _N, _N, _N),
    (_N, _R, _R, _N, _R, _R, _N),
    (_N, _R, _R, _N, _R, _R, _N),
    (_N, _R, _R, _N, _R, _R, _N),
    (_N, _N, _N, _N, _N, _N, _N),
    (_N, _N, _N, _T, _N, _N, _N),
    (_N, _N, _T, _D, _T, _N, _N),
)

DEN_SQUARES: Dict[Player, Tuple[int, int]] = {
    Player.FIRST: (0, 3),
    Player.SECOND: (8, 3),
}

STARTING_PIECES: Dict[Player, Tuple[Tuple[Animal, int, int], ...]] = {
    Player.FIRST: (
        (Animal.LION, 0, 0),
        (Animal.TIGER, 0, 6),
        (Animal.DOG, 1, 1),
        (Animal.CAT, 1, 5),
        (Animal.RAT, 2, 0),
        (Animal.LEOPARD, 2, 2),
        (Animal.WOLF, 2, 4),
        (Animal.ELEPHANT, 2, 6),
    ),
    Player.SECOND: (
        (Animal.ELEPHANT, 6, 0),
        (Animal.WOLF, 6, 2),
        (Animal.LEOPARD, 6, 4),
        (Animal.RAT, 6, 6),
        (Animal.CAT, 7, 1),
        (Animal.DOG, 7, 5),
        (Animal.TIGER, 8, 0),
        (Animal.LION, 8, 6),
    ),
}

_SQUARE_PATTERN = re.compile(r"^([a-g])([1-9])$")
_MOVE_PATTERN = re.compile(r"^([a-g][1-9])([a-g][1-9])$")


def terrain_at(row: int, col: int) -> Terrain:
    return TERRAIN_LAYOUT[row][col]


def side_owner(row: int) -> Optional[Player]:
    """Return whose half of the board ``row`` belongs to (the river rows are nobody's)."""

    if row <= 2:
        return Player.FIRST
    if row >= 6:
        return Player.SECOND
    return None


def square_name(row: int, col: int) -> str:
    return f"{FILES[col]}{row + 1}"


def parse_square(name: str) -> Tuple[int, int]:
    match = _SQUARE_PATTERN.match(name.strip().lower())
    if not match:
        raise ValueError(f"Invalid square: {name!r}")
    return int(match.group(2)) - 1, FILES.index(match.group(1))


@dataclass(frozen=True)
class Piece:
    animal: Animal
    owner: Player

    @property
    def power(self) -> int:
        return self.animal.power

    def symbol(self) -> str:
        letter = ANIMAL_LETTERS[self.animal]
        return letter.upper() if self.owner is Player.FIRST else letter

    @classmethod
    def from_symbol(cls, symbol: str) -> "Piece":
        animal = LETTER_ANIMALS.get(symbol.lower())
        if animal is None:
            raise ValueError(f"Unknown piece symbol: {symbol!r}")
        owner = Player.FIRST if symbol.isupper() else Player.SECOND
        return cls(animal, owner)


@dataclass(frozen=True)
class Move:
    from_row: int
    from_col: int
    to_row: int
    to_col: int

    @property
    def origin(self) -> Tuple[int, int]:
        return self.from_row, self.from_col

    @property
    def target(self) -> Tuple[int, int]:
        return self.to_row, self.to_col

    def uci(self) -> str:
        return square_name(self.from_row, self.from_col) + square_name(self.to_row, self.to_col)

    @classmethod
    def from_uci(cls, text: str) -> "Move":
        match = _MOVE_PATTERN.match(text.strip().lower())
        if not match:
            raise ValueError(f"Invalid move: {text!r}")
        from_row, from_col = parse_square(match.group(1))
        to_row, to_col = parse_square(match.group(2))
        return cls(from_row, from_col, to_row, to_col)

    def __str__(self) -> str:
        return self.uci()


@dataclass
class Cell:
    terrain: Terrain
    piece: Optional[Piece] = None


class Board:
    """Mutable 9x7 occupancy grid over the fixed terrain layout."""

    def __init__(self, notation: Optional[str] = None) -> None:
        self.cells: List[List[Cell]] = [
            [Cell(TERRAIN_LAYOUT[row][col]) for col in range(COLS)] for row in range(ROWS)
        ]
        self.turn = Player.FIRST
        if notation is None:
            self.reset()
        else:
            self.set_notation(notation)

    def reset(self) -> None:
        self.clear()
        for player, placements in STARTING_PIECES.items():
            for animal, row, col in placements:
                self.cells[row][col].piece = Piece(animal, player)
        self.turn = Player.FIRST

    def clear(self) -> None:
        for row in self.cells:
            for cell in row:
                cell.piece = None

    def copy(self) -> "Board":
        clone = Board.__new__(Board)
        clone.cells = [[Cell(cell.terrain, cell.piece) for cell in row] for row in self.cells]
        clone.turn = self.turn
        return clone

    def piece_at(self, row: int, col: int) -> Optional[Piece]:
        return self.cells[row][col].piece

    def set_piece_at(self, row: int, col: int, piece: Optional[Piece]) -> None:
        self.cells[row][col].piece = piece

    def remove_piece_at(self, row: int, col: int) -> Optional[Piece]:
        piece = self.cells[row][col].piece
        self.cells[row][col].piece = None
        return piece

    def terrain_at(self, row: int, col: int) -> Terrain:
        return self.cells[row][col].terrain

    def iter_pieces(self, owner: Optional[Player] = None) -> Iterator[Tuple[int, int, Piece]]:
        for row in range(ROWS):
            for col in range(COLS):
                piece = self.cells[row][col].piece
                if piece is None:
                    continue
                if owner is not None and piece.owner is not owner:
                    continue
                yield row, col, piece

    def count_pieces(self, owner: Player) -> int:
        return sum(1 for _ in self.iter_pieces(owner))

    # ------------------------------------------------------------------
    # Text notation
    # ------------------------------------------------------------------
    def notation(self) -> str:
        rows = []
        for row in self.cells:
            text = ""
            empty = 0
            for cell in row:
                if cell.piece is None:
                    empty += 1
                    continue
                if empty:
                    text += str(empty)
                    empty = 0
                text += cell.piece.symbol()
            if empty:
                text += str(empty)
            rows.append(text)
        side = "f" if self.turn is Player.FIRST else "s"
        return f"{'/'.join(rows)} {side}"

    def set_notation(self, notation: str) -> None:
        parts = notation.strip().split()
        if not parts or len(parts) > 2:
            raise ValueError(f"Invalid board notation: {notation!r}")
        ranks = parts[0].split("/")
        if len(ranks) != ROWS:
            raise ValueError(f"Board notation needs {ROWS} rows: {notation!r}")

        grid: List[List[Optional[Piece]]] = []
        for rank in ranks:
            row: List[Optional[Piece]] = []
            for char in rank:
                if char.isdigit():
                    row.extend([None] * int(char))
                else:
                    row.append(Piece.from_symbol(char))
            if len(row) != COLS:
                raise ValueError(f"Row {rank!r} does not describe {COLS} cells")
            row_index = len(grid)
            for col_index, piece in enumerate(row):
                if piece is not None and not piece.animal.can_swim and TERRAIN_LAYOUT[row_index][col_index] is Terrain.RIVER:
                    raise ValueError(f"Only a rat may stand in the river ({square_name(row_index, col_index)})")
            grid.append(row)

        turn = Player.FIRST
        if len(parts) == 2:
            if parts[1] not in ("f", "s"):
                raise ValueError(f"Invalid side to move: {parts[1]!r}")
            turn = Player.FIRST if parts[1] == "f" else Player.SECOND

        for row_index, row in enumerate(grid):
            for col_index, piece in enumerate(row):
                self.cells[row_index][col_index].piece = piece
        self.turn = turn

    def __str__(self) -> str:
        lines = []
        for row_index in range(ROWS - 1, -1, -1):
            symbols = []
            for cell in self.cells[row_index]:
                if cell.piece is not None:
                    symbols.append(cell.piece.symbol())
                elif cell.terrain is Terrain.RIVER:
                    symbols.append("~")
                elif cell.terrain is Terrain.TRAP:
                    symbols.append("#")
                elif cell.terrain is Terrain.DEN:
                    symbols.append("@")
                else:
                    symbols.append(".")
            lines.append(f"{row_index + 1} {' '.join(symbols)}")
        lines.append(f"  {' '.join(FILES)}")
        return "\n".join(lines)


STARTING_NOTATION = Board().notation()
