"""Network client for two-player Ultimate Tic-Tac-Toe games."""
from .board import Board, BoardModel, Cell, Outcome, SubBoard
from .errors import (
    ClientError,
    InvalidNotation,
    MalformedPayload,
    NotConnectedError,
    ProtocolError,
    UnrecognizedMessageType,
)
from .events import EventKind, UIEvent
from .legality import LEGAL, check_move, is_legal
from .notation import decode, encode
from .protocol import decode_message
from .session import ActionResult, ClientState, SessionMachine
from .snapshot import GameSession, GameStatus, Symbol

__all__ = [
    "ActionResult",
    "Board",
    "BoardModel",
    "Cell",
    "ClientError",
    "ClientState",
    "EventKind",
    "GameSession",
    "GameStatus",
    "InvalidNotation",
    "LEGAL",
    "MalformedPayload",
    "NotConnectedError",
    "Outcome",
    "ProtocolError",
    "SessionMachine",
    "SubBoard",
    "Symbol",
    "UIEvent",
    "UnrecognizedMessageType",
    "check_move",
    "decode",
    "decode_message",
    "encode",
    "is_legal",
]
