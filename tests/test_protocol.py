import json

import pytest

from uttt_client.board import Cell, Outcome
from uttt_client.errors import MalformedPayload, ProtocolError, UnrecognizedMessageType
from uttt_client.protocol import (
    DrawOfferNotice,
    ErrorNotice,
    GameOver,
    GameState,
    InfoNotice,
    MoveNotice,
    Welcome,
    decode_message,
    encode_message,
)
from uttt_client.snapshot import GameStatus, Symbol


def test_decode_game_state(make_frame):
    frame = make_frame(
        cells={(4, 4): "X", (4, 0): "O"},
        states={2: "draw"},
        active_board=0,
        your_symbol="O",
        current_turn="O",
        ugn_moves=["E5", "a5", "C3/"],
    )
    message = decode_message(frame)
    assert isinstance(message, GameState)
    snapshot = message.snapshot
    assert snapshot.game_id == "game-1"
    assert snapshot.your_symbol is Symbol.O
    assert snapshot.opponent_symbol is Symbol.X
    assert snapshot.name_of(Symbol.X) == "alice"
    assert snapshot.status is GameStatus.IN_PROGRESS
    assert snapshot.winner is None
    assert snapshot.moves == ("E5", "A5", "C3/")
    assert snapshot.board.cell(4, 4) is Cell.X
    assert snapshot.board.outcome(2) is Outcome.DRAW
    assert snapshot.board.active_sub_board == 0


def test_decode_finished_game_state_keeps_winner(make_frame):
    snapshot = decode_message(make_frame(game_status="finished", winner="Draw")).snapshot
    assert snapshot.finished
    assert snapshot.winner == "Draw"
    assert snapshot.result_text() == "Draw"


@pytest.mark.parametrize(
    "overrides",
    [
        {"game_status": "paused"},
        {"your_symbol": "Z"},
        {"current_turn": None},
        {"is_your_turn": "yes"},
        {"active_board": -2},
        {"board": []},
        {"ugn_moves": ["E5", "Z9"]},
        {"winner": "nobody"},
        {"game_id": 7},
    ],
)
def test_malformed_game_state(make_frame, overrides):
    frame = make_frame(**overrides)
    with pytest.raises(MalformedPayload) as info:
        decode_message(frame)
    assert info.value.raw == frame


def test_decode_simple_variants(make_frame):
    welcome = decode_message(make_frame("welcome", {"player_id": "p1", "player_name": "alice", "message": "hi"}))
    assert welcome == Welcome(message="hi", player_id="p1", player_name="alice")
    assert decode_message(make_frame("error", {"message": "bad"})) == ErrorNotice("bad")
    assert decode_message(make_frame("info", {"message": "queued"})) == InfoNotice("queued")
    over = decode_message(
        make_frame("game_over", {"winner": "X", "winner_name": "alice", "message": "alice wins", "comment": ""})
    )
    assert over == GameOver(message="alice wins", winner="X", winner_name="alice", comment=None)
    offer = decode_message(make_frame("draw_offer", {"message": "Opponent offers a draw"}))
    assert offer == DrawOfferNotice(message="Opponent offers a draw")


def test_decode_move_fills_indices_from_token(make_frame):
    notice = decode_message(make_frame("move", {"player_name": "bob", "player_symbol": "O", "move": "c7"}))
    assert notice == MoveNotice(player_name="bob", player_symbol=Symbol.O, move="C7", board_index=2, position=6)


def test_unknown_type_is_unrecognized():
    raw = json.dumps({"type": "ping", "payload": {}})
    with pytest.raises(UnrecognizedMessageType) as info:
        decode_message(raw)
    assert info.value.raw == raw


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2]",
        json.dumps({"type": "info"}),
        json.dumps({"type": "info", "payload": {"message": 3}}),
        json.dumps({"type": "move", "payload": {"player_name": "bob", "player_symbol": "O", "move": "K1"}}),
    ],
)
def test_malformed_frames(raw):
    with pytest.raises(MalformedPayload):
        decode_message(raw)


def test_missing_type_is_unrecognized():
    with pytest.raises(ProtocolError):
        decode_message(json.dumps({"payload": {}}))


def test_encode_message_produces_decodable_frames():
    frame = encode_message("info", {"message": "Draw offer sent"})
    assert decode_message(frame) == InfoNotice("Draw offer sent")
    with pytest.raises(ValueError):
        encode_message("ping", {})


def test_deeply_nested_frame_is_malformed():
    raw = "[" * 100000
    with pytest.raises(MalformedPayload) as info:
        decode_message(raw)
    assert info.value.raw == raw
