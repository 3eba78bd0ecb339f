"""Local pre-submission check for candidate moves.

The server remains the referee.  These checks only stop input that is plainly
illegal against the last snapshot from ever reaching the network, and give the
user a precise reason for the rejection.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Union

import numpy as np

from .board import Board, Cell, Outcome
from .notation import BOARD_LETTERS, Move
from .snapshot import GameStatus

__all__ = [
    "CellAlreadyTaken",
    "GameNotInProgress",
    "IllegalReason",
    "LEGAL",
    "Legal",
    "NotYourTurn",
    "SubBoardAlreadyDecided",
    "WrongSubBoard",
    "check_move",
    "is_legal",
    "legal_action_mask",
    "legal_moves",
]


@dataclass(frozen=True)
class Legal:
    def __bool__(self) -> bool:
        return True


LEGAL = Legal()


class _Rejection:
    """Falsy base for every illegal-move reason."""

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class GameNotInProgress(_Rejection):
    message: str = "The game is not in progress"


@dataclass(frozen=True)
class NotYourTurn(_Rejection):
    message: str = "It is not your turn"


@dataclass(frozen=True)
class WrongSubBoard(_Rejection):
    required: int

    @property
    def message(self) -> str:
        return f"You must play in sub-board {BOARD_LETTERS[self.required]}"


@dataclass(frozen=True)
class SubBoardAlreadyDecided(_Rejection):
    sub_board: int

    @property
    def message(self) -> str:
        return f"Sub-board {BOARD_LETTERS[self.sub_board]} is already decided"


@dataclass(frozen=True)
class CellAlreadyTaken(_Rejection):
    sub_board: int
    cell: int

    @property
    def message(self) -> str:
        return f"{BOARD_LETTERS[self.sub_board]}{self.cell + 1} is already taken"


IllegalReason = Union[
    GameNotInProgress, NotYourTurn, WrongSubBoard, SubBoardAlreadyDecided, CellAlreadyTaken
]


def check_move(
    board: Board, is_your_turn: bool, status: GameStatus, move: Move
) -> Union[Legal, IllegalReason]:
    """Return :data:`LEGAL` or the first reason the move cannot be sent.

    The checks run in a fixed order: game status, turn, active sub-board,
    sub-board outcome, then the target cell.
    """

    sub_idx, cell_idx = move
    if not 0 <= sub_idx < 9 or not 0 <= cell_idx < 9:
        raise ValueError("move components must be in range 0..8")

    if status is not GameStatus.IN_PROGRESS:
        return GameNotInProgress()
    if not is_your_turn:
        return NotYourTurn()
    active = board.active_sub_board
    if active is not None and active != sub_idx:
        return WrongSubBoard(required=active)
    if board.outcome(sub_idx) is not Outcome.UNDECIDED:
        return SubBoardAlreadyDecided(sub_board=sub_idx)
    if board.cell(sub_idx, cell_idx) is not Cell.EMPTY:
        return CellAlreadyTaken(sub_board=sub_idx, cell=cell_idx)
    return LEGAL


def is_legal(board: Board, is_your_turn: bool, status: GameStatus, move: Move) -> bool:
    return check_move(board, is_your_turn, status, move) is LEGAL


def legal_moves(board: Board, is_your_turn: bool, status: GameStatus) -> List[Move]:
    moves: List[Move] = []
    for sub_idx in board.playable_sub_boards():
        for cell_idx in range(9):
            if is_legal(board, is_your_turn, status, (sub_idx, cell_idx)):
                moves.append((sub_idx, cell_idx))
    return moves


def legal_action_mask(board: Board, is_your_turn: bool, status: GameStatus) -> np.ndarray:
    """Return a boolean mask over the 81 global actions that may be submitted."""

    mask = np.zeros(81, dtype=bool)
    for sub_idx, cell_idx in legal_moves(board, is_your_turn, status):
        mask[sub_idx * 9 + cell_idx] = True
    return mask
