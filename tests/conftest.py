import json
from typing import Dict, Optional, Tuple

import pytest


def build_state_payload(
    cells: Optional[Dict[Tuple[int, int], str]] = None,
    states: Optional[Dict[int, str]] = None,
    **overrides,
) -> dict:
    boards = [{"cells": [""] * 9, "state": "undecided"} for _ in range(9)]
    board_states = ["undecided"] * 9
    for (sub_idx, cell_idx), value in (cells or {}).items():
        boards[sub_idx]["cells"][cell_idx] = value
    for sub_idx, value in (states or {}).items():
        boards[sub_idx]["state"] = value
        board_states[sub_idx] = value

    payload = {
        "game_id": "game-1",
        "your_symbol": "X",
        "player_x_name": "alice",
        "player_o_name": "bob",
        "current_turn": "X",
        "game_status": "in_progress",
        "winner": "",
        "is_your_turn": True,
        "active_board": -1,
        "board": {"boards": boards, "board_states": board_states},
        "ugn_moves": [],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_state():
    return build_state_payload


@pytest.fixture
def make_frame():
    def build(msg_type: str = "game_state", payload: Optional[dict] = None, **state) -> str:
        if payload is None:
            payload = build_state_payload(**state)
        return json.dumps({"type": msg_type, "payload": payload})

    return build
