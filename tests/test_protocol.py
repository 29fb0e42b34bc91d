import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from htmlshot.protocol import next_id, parse_target_message


def test_next_id_strictly_increases():
    first = next_id()
    second = next_id()
    third = next_id()
    assert first < second < third
    assert second == first + 1


def test_next_id_is_positive():
    assert next_id() >= 1


def test_next_id_unique_across_threads():
    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(lambda _: next_id(), range(1600)))
    assert len(ids) == 1600
    assert len(set(ids)) == 1600
    assert min(ids) >= 1


def test_parse_target_message_round_trip():
    payload = {"id": 7, "result": {"root": {"nodeId": 1}}}
    assert parse_target_message({"message": json.dumps(payload)}) == payload


def test_parse_target_message_strips_surrounding_quotes():
    payload = {"id": 3, "result": {}}
    text = '"' + json.dumps(payload) + '"'
    assert parse_target_message({"message": text}) == payload


def test_parse_target_message_missing_field():
    with pytest.raises(KeyError):
        parse_target_message({"sessionId": "abc"})


def test_parse_target_message_not_a_string():
    with pytest.raises(TypeError):
        parse_target_message({"message": 5})


def test_parse_target_message_invalid_json():
    with pytest.raises(json.JSONDecodeError):
        parse_target_message({"message": "not json"})