"""Mirror of the server's ultimate tic-tac-toe board.

The board is organised as nine 3x3 sub-boards.  Every cell is addressed by a
tuple ``(sub_board_index, cell_index)`` where both values are in the range
``0..8`` using row-major order.  The client never plays moves onto this board
itself: each :class:`Board` is an immutable snapshot decoded from a server
payload, and :class:`BoardModel` swaps whole snapshots in and out.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .notation import BOARD_LETTERS, decode

__all__ = ["Board", "BoardModel", "Cell", "Outcome", "SubBoard"]


class Cell(str, Enum):
    EMPTY = ""
    X = "X"
    O = "O"


class Outcome(str, Enum):
    UNDECIDED = "undecided"
    X = "X"
    O = "O"
    DRAW = "draw"


def _empty_cells() -> Tuple[Cell, ...]:
    return (Cell.EMPTY,) * 9


@dataclass(frozen=True)
class SubBoard:
    cells: Tuple[Cell, ...] = field(default_factory=_empty_cells)
    outcome: Outcome = Outcome.UNDECIDED

    def __post_init__(self) -> None:
        if len(self.cells) != 9:
            raise ValueError("a sub-board has exactly 9 cells")

    @property
    def decided(self) -> bool:
        return self.outcome is not Outcome.UNDECIDED


def _empty_sub_boards() -> Tuple[SubBoard, ...]:
    return tuple(SubBoard() for _ in range(9))


@dataclass(frozen=True)
class Board:
    """One authoritative snapshot of the nine sub-boards.

    ``active_sub_board`` is the index the next move is confined to, or
    ``None`` when the mover may pick any undecided sub-board.
    """

    sub_boards: Tuple[SubBoard, ...] = field(default_factory=_empty_sub_boards)
    active_sub_board: Optional[int] = None

    def __post_init__(self) -> None:
        if len(self.sub_boards) != 9:
            raise ValueError("a board has exactly 9 sub-boards")
        if self.active_sub_board is not None and not 0 <= self.active_sub_board < 9:
            raise ValueError("active sub-board must be in range 0..8")

    @classmethod
    def from_payload(cls, board: Mapping[str, Any], active_board: int) -> "Board":
        """Build a board from the wire ``board`` object and ``active_board``.

        Cells are ``""``, ``"X"`` or ``"O"``; ``board_states`` entries are
        ``"undecided"``, ``"X"``, ``"O"`` or ``"draw"``; ``active_board`` is
        ``-1`` for any sub-board.
        """

        boards = board.get("boards")
        states = board.get("board_states")
        if not isinstance(boards, list) or len(boards) != 9:
            raise ValueError("board.boards must list 9 sub-boards")
        if not isinstance(states, list) or len(states) != 9:
            raise ValueError("board.board_states must list 9 outcomes")
        if isinstance(active_board, bool) or not isinstance(active_board, int):
            raise ValueError("active_board must be an integer")
        if not -1 <= active_board < 9:
            raise ValueError("active_board must be -1 or in range 0..8")

        sub_boards: List[SubBoard] = []
        for index, (small, state) in enumerate(zip(boards, states)):
            cells = small.get("cells") if isinstance(small, Mapping) else None
            if not isinstance(cells, list) or len(cells) != 9:
                raise ValueError(f"sub-board {index} must have 9 cells")
            try:
                sub_boards.append(
                    SubBoard(
                        cells=tuple(Cell(value) for value in cells),
                        outcome=Outcome(state),
                    )
                )
            except (TypeError, ValueError) as exc:
                raise ValueError(f"sub-board {index}: {exc}") from None

        return cls(
            sub_boards=tuple(sub_boards),
            active_sub_board=None if active_board == -1 else active_board,
        )

    def cell(self, sub_board: int, cell: int) -> Cell:
        return self.sub_boards[sub_board].cells[cell]

    def cell_at(self, token: str) -> Cell:
        return self.cell(*decode(token))

    def outcome(self, sub_board: int) -> Outcome:
        return self.sub_boards[sub_board].outcome

    def playable_sub_boards(self) -> Sequence[int]:
        if self.active_sub_board is not None:
            return (self.active_sub_board,)
        return tuple(
            idx for idx, sub in enumerate(self.sub_boards) if not sub.decided
        )

    def render_ascii(self) -> str:
        def cell_value(sub: SubBoard, idx: int) -> str:
            value = sub.cells[idx].value
            return value if value else "."

        rows: List[str] = []
        for big_row in range(3):
            for inner_row in range(3):
                row_cells: List[str] = []
                for big_col in range(3):
                    sub = self.sub_boards[big_row * 3 + big_col]
                    start = inner_row * 3
                    row_cells.append(
                        " ".join(cell_value(sub, start + offset) for offset in range(3))
                    )
                rows.append(" || ".join(row_cells))
            if big_row < 2:
                rows.append("======++=======++======")

        legend = []
        for idx, sub in enumerate(self.sub_boards):
            mark = {Outcome.X: "X", Outcome.O: "O", Outcome.DRAW: "-"}.get(sub.outcome, " ")
            legend.append(f"{BOARD_LETTERS[idx]}[{mark}]")
        rows.append("")
        rows.append(" ".join(legend))
        if self.active_sub_board is None:
            rows.append("Play in: any open sub-board")
        else:
            rows.append(f"Play in: {BOARD_LETTERS[self.active_sub_board]}")
        return "\n".join(rows)


class BoardModel:
    """Holder of the current board snapshot.

    The only mutator is :meth:`replace_with`.  Single moves are never applied
    here; each snapshot supersedes everything shown before it.
    """

    def __init__(self, snapshot: Optional[Board] = None) -> None:
        self._snapshot = snapshot if snapshot is not None else Board()

    @property
    def snapshot(self) -> Board:
        return self._snapshot

    @property
    def active_sub_board(self) -> Optional[int]:
        return self._snapshot.active_sub_board

    def replace_with(self, snapshot: Board) -> None:
        self._snapshot = snapshot

    def cell(self, sub_board: int, cell: int) -> Cell:
        return self._snapshot.cell(sub_board, cell)

    def outcome(self, sub_board: int) -> Outcome:
        return self._snapshot.outcome(sub_board)
