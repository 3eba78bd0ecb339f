"""Compact move notation used on the wire and in game records.

A move is written as the sub-board letter (``A`` for sub-board 0 up to ``I``
for sub-board 8) followed by the cell digit (``1`` for cell 0 up to ``9`` for
cell 8), both in row-major order, so ``E5`` is the centre cell of the centre
sub-board.  Game records may append annotation marks after the token.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple

from .errors import InvalidNotation

Move = Tuple[int, int]

BOARD_LETTERS = "ABCDEFGHI"

_TOKEN_RE = re.compile(r"([A-Ia-i])([1-9])")
_ANNOTATED_RE = re.compile(r"([A-Ia-i])([1-9])([!/%#]*)")

__all__ = [
    "AnnotatedMove",
    "BOARD_LETTERS",
    "Move",
    "decode",
    "encode",
    "is_valid",
    "parse_annotated",
]


def encode(sub_board: int, cell: int) -> str:
    if not 0 <= sub_board < 9 or not 0 <= cell < 9:
        raise InvalidNotation("move components must be in range 0..8")
    return f"{BOARD_LETTERS[sub_board]}{cell + 1}"


def decode(token: str) -> Move:
    """Return ``(sub_board, cell)`` for a token such as ``"e5"`` or ``"B9"``."""

    match = _TOKEN_RE.fullmatch(token)
    if match is None:
        raise InvalidNotation(f"invalid move {token!r} (expected A1-I9)")
    return BOARD_LETTERS.index(match.group(1).upper()), int(match.group(2)) - 1


def is_valid(token: str) -> bool:
    return _TOKEN_RE.fullmatch(token) is not None


@dataclass(frozen=True)
class AnnotatedMove:
    """A move token as stored in a game record, with its result marks."""

    sub_board: int
    cell: int
    small_win: bool = False
    small_draw: bool = False
    game_draw: bool = False
    game_win: bool = False

    @property
    def move(self) -> Move:
        return self.sub_board, self.cell

    @property
    def token(self) -> str:
        marks = ""
        if self.small_win:
            marks += "!"
        if self.small_draw:
            marks += "/"
        if self.game_draw:
            marks += "%"
        if self.game_win:
            marks += "#"
        return encode(self.sub_board, self.cell) + marks


def parse_annotated(token: str) -> AnnotatedMove:
    match = _ANNOTATED_RE.fullmatch(token)
    if match is None:
        raise InvalidNotation(f"invalid annotated move {token!r}")
    marks = match.group(3)
    return AnnotatedMove(
        sub_board=BOARD_LETTERS.index(match.group(1).upper()),
        cell=int(match.group(2)) - 1,
        small_win="!" in marks,
        small_draw="/" in marks,
        game_draw="%" in marks,
        game_win="#" in marks,
    )
