from enum import IntEnum

from board import Animal, Piece, Player


class ReportingLevel(IntEnum):
    QUIET = 0
    BASIC = 1
    VERBOSE = 2


def color_text(text, color_code):
    return f"\033[{color_code}m{text}\033[0m"

def debug_text(text):
    return f"{color_text('DEBUG', '31')} {text}"

def info_text(text):
    return f"{color_text('INFO', '34')}  {text}"

def sending_text(text):
    return f"{color_text('SENDING  ', '32')} {text}"

def received_text(text):
    return f"{color_text('RECEIVED ', '35')} {text}"


ANIMAL_SYMBOLS = {
    Animal.RAT: '鼠', Animal.CAT: '猫', Animal.DOG: '狗', Animal.WOLF: '狼',
    Animal.LEOPARD: '豹', Animal.TIGER: '虎', Animal.LION: '狮', Animal.ELEPHANT: '象',
}

PLAYER_NAMES = {Player.FIRST: "First", Player.SECOND: "Second"}


def get_piece_symbol(piece: Piece) -> str:
    return ANIMAL_SYMBOLS[piece.animal]

def describe_piece(piece: Piece) -> str:
    return f"{PLAYER_NAMES[piece.owner]} {piece.animal.name.lower()}"
