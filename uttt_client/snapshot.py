"""Game session snapshot as reported by the server in ``game_state``."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Tuple

from .board import Board

__all__ = ["DRAW", "GameSession", "GameStatus", "Symbol", "opponent"]

DRAW = "Draw"


class Symbol(str, Enum):
    X = "X"
    O = "O"


class GameStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


def opponent(symbol: Symbol) -> Symbol:
    return Symbol.O if symbol is Symbol.X else Symbol.X


@dataclass(frozen=True)
class GameSession:
    """Everything the client knows about the game after one snapshot.

    ``winner`` is ``"X"``, ``"O"`` or ``"Draw"`` once the game is finished and
    ``None`` otherwise.  ``moves`` holds the confirmed move log in notation
    form, oldest first.
    """

    game_id: str
    your_symbol: Symbol
    player_names: Mapping[Symbol, str]
    current_turn: Symbol
    is_your_turn: bool
    status: GameStatus
    board: Board = field(default_factory=Board)
    winner: Optional[str] = None
    moves: Tuple[str, ...] = ()

    @property
    def finished(self) -> bool:
        return self.status is GameStatus.FINISHED

    @property
    def opponent_symbol(self) -> Symbol:
        return opponent(self.your_symbol)

    def name_of(self, symbol: Symbol) -> str:
        return self.player_names.get(symbol, symbol.value)

    def result_text(self) -> str:
        if not self.finished:
            return "In progress"
        if self.winner == DRAW or self.winner is None:
            return "Draw"
        return f"{self.name_of(Symbol(self.winner))} ({self.winner}) wins"
