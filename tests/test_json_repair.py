"""Tests for utils.json_repair."""

import json

import pytest

from utils.json_repair import parse_llm_json


@pytest.mark.parametrize(
    "text",
    [
        '{"pages": []}',
        '```json\n{"pages": []}\n```',
        'Here you go:\n{"pages": []}\nLet me know!',
        '{"pages": [],}',
        'Result [v2]: {"pages": []}',
        'See [1] below: {"pages": []}',
        'Notes {draft} follow.\n{"pages": [],}\nDone.',
    ],
)
def test_parses_common_wrappings(text):
    assert parse_llm_json(text) == {"pages": []}


def test_parsed_values_pass_through():
    value = {"a": 1}
    assert parse_llm_json(value) is value


def test_default_on_failure():
    assert parse_llm_json("no json here", default=None) is None
    assert parse_llm_json("", default={}) == {}


def test_raises_without_default():
    with pytest.raises(json.JSONDecodeError):
        parse_llm_json("definitely {not json")
    with pytest.raises(json.JSONDecodeError):
        parse_llm_json("   ")


def test_array_after_prose():
    assert parse_llm_json('Pages [draft]: [{"name": "Home"}] done') == [{"name": "Home"}]


def test_bracketed_prose_without_json_uses_default():
    assert parse_llm_json("See [a] and {b} for details", default=None) is None
