"""Decoding of the JSON envelopes sent by the game server.

Every frame is ``{"type": <discriminator>, "payload": {...}}``.  The set of
discriminators is closed; :func:`decode_message` turns a frame into one of the
message dataclasses below or raises a :class:`~uttt_client.errors.ProtocolError`.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .board import Board
from .errors import InvalidNotation, MalformedPayload, UnrecognizedMessageType
from .notation import decode, parse_annotated
from .snapshot import DRAW, GameSession, GameStatus, Symbol

__all__ = [
    "DrawOfferNotice",
    "ErrorNotice",
    "GameOver",
    "GameState",
    "InfoNotice",
    "Message",
    "MESSAGE_TYPES",
    "MoveNotice",
    "Welcome",
    "decode_message",
    "encode_message",
]


@dataclass(frozen=True)
class Welcome:
    message: str
    player_id: Optional[str] = None
    player_name: Optional[str] = None


@dataclass(frozen=True)
class GameState:
    snapshot: GameSession


@dataclass(frozen=True)
class MoveNotice:
    player_name: str
    player_symbol: Symbol
    move: str
    board_index: int
    position: int


@dataclass(frozen=True)
class ErrorNotice:
    message: str


@dataclass(frozen=True)
class InfoNotice:
    message: str


@dataclass(frozen=True)
class GameOver:
    message: str
    winner: Optional[str] = None
    winner_name: Optional[str] = None
    comment: Optional[str] = None


@dataclass(frozen=True)
class DrawOfferNotice:
    message: str
    offered_by: Optional[str] = None


Message = Union[
    Welcome, GameState, MoveNotice, ErrorNotice, InfoNotice, GameOver, DrawOfferNotice
]


class _PayloadError(ValueError):
    pass


def _require_str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise _PayloadError(f"'{key}' must be a string")
    return value


def _optional_str(payload: Mapping[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise _PayloadError(f"'{key}' must be a string")
    return value


def _require_symbol(payload: Mapping[str, Any], key: str) -> Symbol:
    value = payload.get(key)
    if value not in ("X", "O"):
        raise _PayloadError(f"'{key}' must be 'X' or 'O'")
    return Symbol(value)


def _optional_index(payload: Mapping[str, Any], key: str) -> Optional[int]:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 9:
        raise _PayloadError(f"'{key}' must be an integer in range 0..8")
    return value


def _decode_welcome(payload: Mapping[str, Any]) -> Welcome:
    return Welcome(
        message=_require_str(payload, "message"),
        player_id=_optional_str(payload, "player_id"),
        player_name=_optional_str(payload, "player_name"),
    )


def _decode_game_state(payload: Mapping[str, Any]) -> GameState:
    status_value = payload.get("game_status")
    if status_value not in ("in_progress", "finished"):
        raise _PayloadError("'game_status' must be 'in_progress' or 'finished'")
    is_your_turn = payload.get("is_your_turn")
    if not isinstance(is_your_turn, bool):
        raise _PayloadError("'is_your_turn' must be a boolean")
    board = payload.get("board")
    if not isinstance(board, Mapping):
        raise _PayloadError("'board' must be an object")
    try:
        mirrored = Board.from_payload(board, payload.get("active_board"))
    except ValueError as exc:
        raise _PayloadError(str(exc)) from None

    winner = _optional_str(payload, "winner")
    if winner is not None and winner not in ("X", "O", DRAW):
        raise _PayloadError("'winner' must be 'X', 'O' or 'Draw'")

    moves = payload.get("ugn_moves", [])
    if moves is None:
        moves = []
    if not isinstance(moves, list) or not all(isinstance(m, str) for m in moves):
        raise _PayloadError("'ugn_moves' must be a list of move tokens")
    try:
        tokens = tuple(parse_annotated(m).token for m in moves)
    except InvalidNotation as exc:
        raise _PayloadError(str(exc)) from None

    x_name = _require_str(payload, "player_x_name")
    o_name = _require_str(payload, "player_o_name")
    snapshot = GameSession(
        game_id=_require_str(payload, "game_id"),
        your_symbol=_require_symbol(payload, "your_symbol"),
        player_names=MappingProxyType({Symbol.X: x_name, Symbol.O: o_name}),
        current_turn=_require_symbol(payload, "current_turn"),
        is_your_turn=is_your_turn,
        status=GameStatus(status_value),
        board=mirrored,
        winner=winner,
        moves=tokens,
    )
    return GameState(snapshot=snapshot)


def _decode_move(payload: Mapping[str, Any]) -> MoveNotice:
    token = _require_str(payload, "move")
    try:
        sub_idx, cell_idx = decode(token)
    except InvalidNotation as exc:
        raise _PayloadError(str(exc)) from None
    board_index = _optional_index(payload, "board_index")
    position = _optional_index(payload, "position")
    return MoveNotice(
        player_name=_require_str(payload, "player_name"),
        player_symbol=_require_symbol(payload, "player_symbol"),
        move=token.upper(),
        board_index=sub_idx if board_index is None else board_index,
        position=cell_idx if position is None else position,
    )


def _decode_error(payload: Mapping[str, Any]) -> ErrorNotice:
    return ErrorNotice(message=_require_str(payload, "message"))


def _decode_info(payload: Mapping[str, Any]) -> InfoNotice:
    return InfoNotice(message=_require_str(payload, "message"))


def _decode_game_over(payload: Mapping[str, Any]) -> GameOver:
    return GameOver(
        message=_require_str(payload, "message"),
        winner=_optional_str(payload, "winner"),
        winner_name=_optional_str(payload, "winner_name"),
        comment=_optional_str(payload, "comment"),
    )


def _decode_draw_offer(payload: Mapping[str, Any]) -> DrawOfferNotice:
    return DrawOfferNotice(
        message=_require_str(payload, "message"),
        offered_by=_optional_str(payload, "offered_by"),
    )


_DECODERS: Dict[str, Callable[[Mapping[str, Any]], Message]] = {
    "welcome": _decode_welcome,
    "game_state": _decode_game_state,
    "move": _decode_move,
    "error": _decode_error,
    "info": _decode_info,
    "game_over": _decode_game_over,
    "draw_offer": _decode_draw_offer,
}

MESSAGE_TYPES = tuple(_DECODERS)


def decode_message(raw: str) -> Message:
    try:
        envelope = json.loads(raw)
    except (TypeError, ValueError, RecursionError) as exc:
        raise MalformedPayload(f"frame is not valid JSON: {exc}", raw) from None
    if not isinstance(envelope, dict):
        raise MalformedPayload("frame is not a JSON object", raw)

    msg_type = envelope.get("type")
    decoder = _DECODERS.get(msg_type) if isinstance(msg_type, str) else None
    if decoder is None:
        raise UnrecognizedMessageType(f"unrecognized message type {msg_type!r}", raw)

    payload = envelope.get("payload")
    if not isinstance(payload, dict):
        raise MalformedPayload(f"'{msg_type}' payload must be an object", raw)
    try:
        return decoder(payload)
    except _PayloadError as exc:
        raise MalformedPayload(f"malformed '{msg_type}' payload: {exc}", raw) from None


def encode_message(msg_type: str, payload: Mapping[str, Any]) -> str:
    if msg_type not in _DECODERS:
        raise ValueError(f"unknown message type {msg_type!r}")
    return json.dumps({"type": msg_type, "payload": dict(payload)})
