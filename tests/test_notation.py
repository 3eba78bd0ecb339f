import pytest

from uttt_client.errors import InvalidNotation
from uttt_client.notation import AnnotatedMove, decode, encode, is_valid, parse_annotated


def test_every_cell_round_trips_through_its_token():
    tokens = set()
    for sub_idx in range(9):
        for cell_idx in range(9):
            token = encode(sub_idx, cell_idx)
            tokens.add(token)
            assert decode(token) == (sub_idx, cell_idx)
    assert len(tokens) == 81


def test_encode_uses_letter_then_one_based_digit():
    assert encode(0, 0) == "A1"
    assert encode(4, 4) == "E5"
    assert encode(8, 8) == "I9"


@pytest.mark.parametrize("token", ["J1", "A0", "A10", "", "5E", "AA", "E 5", "E5!"])
def test_decode_rejects_malformed_tokens(token):
    with pytest.raises(InvalidNotation):
        decode(token)
    assert not is_valid(token)


def test_decode_accepts_lower_case_letters():
    assert decode("e5") == (4, 4)
    assert decode("b9") == (1, 8)


@pytest.mark.parametrize("token", [" A1", "A1\n", "  b9 ", "\u01311", "A1\t"])
def test_decode_rejects_surrounding_whitespace_and_non_ascii_letters(token):
    with pytest.raises(InvalidNotation):
        decode(token)
    assert not is_valid(token)
    with pytest.raises(InvalidNotation):
        parse_annotated(token)


def test_encode_rejects_out_of_range():
    with pytest.raises(InvalidNotation):
        encode(9, 0)
    with pytest.raises(ValueError):
        encode(0, -1)


def test_parse_annotated_reads_result_marks():
    move = parse_annotated("c7!#")
    assert move.move == (2, 6)
    assert move.small_win and move.game_win
    assert not move.small_draw and not move.game_draw
    assert move.token == "C7!#"


def test_annotated_token_orders_marks():
    move = AnnotatedMove(sub_board=8, cell=0, game_draw=True, small_draw=True)
    assert move.token == "I1/%"
    assert parse_annotated("I1%/") == move


def test_parse_annotated_rejects_unknown_marks():
    with pytest.raises(InvalidNotation):
        parse_annotated("A1?")
