import pytest

from leadgen.errors import EmptyResponse, UnparsableResponse
from leadgen.parsing import parse_json_response


@pytest.mark.parametrize("text", [
    'Sure! Here you go:\n```json\n{"companyNames": ["Acme"]}\n```\nLet me know if you need more.',
    '```JSON\n{"companyNames": ["Acme"]}\n```',
    'Result:\n```\n{"companyNames": ["Acme"]}\n```',
])
def test_fenced_block_wins_regardless_of_prose(text):
    assert parse_json_response(text) == {"companyNames": ["Acme"]}


def test_brace_span_fallback():
    text = 'I researched the company. {"leads": [{"businessName": "Acme"}]} Hope that helps!'
    assert parse_json_response(text) == {"leads": [{"businessName": "Acme"}]}


def test_invalid_fence_falls_back_to_braces():
    text = '```json\nnot json at all\n``` but later {"ok": true}'
    assert parse_json_response(text) == {"ok": True}


def test_plain_json():
    assert parse_json_response('{"a": 1}') == {"a": 1}


def test_no_json_keeps_raw_text():
    text = "I'm sorry, I could not find any businesses."
    with pytest.raises(UnparsableResponse) as exc_info:
        parse_json_response(text)
    assert exc_info.value.raw_text == text


def test_unbalanced_braces_are_unparsable():
    with pytest.raises(UnparsableResponse):
        parse_json_response('{"leads": [')


@pytest.mark.parametrize("text", ["", "   \n\t"])
def test_blank_text_is_empty_response(text):
    with pytest.raises(EmptyResponse):
        parse_json_response(text)
