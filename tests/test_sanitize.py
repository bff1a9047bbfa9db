"""Tests for signature field extraction and body re-encoding."""

import json

import pytest

from core.exceptions import BodyParseError, EmptyCredentialsError, FieldTypeError
from core.sanitize import PayloadSanitizer, encode_json


@pytest.fixture
def sanitizer():
    return PayloadSanitizer()


def test_strips_signature_fields(sanitizer):
    payload = sanitizer.sanitize(b'{"sec":"c2ln","secval":"1000|order123","amount":1000}')

    assert payload.content == b'{"amount":1000}'
    assert payload.sec == "c2ln"
    assert payload.secval == "1000|order123"


def test_other_fields_are_untouched(sanitizer):
    original = {
        "amount": 1000,
        "price": 12.5,
        "note": None,
        "flags": [True, False],
        "customer": {"name": "Zahra", "tags": ["a", "b"], "sec": "nested stays"},
        "big": 12345678901234567890,
    }
    body = json.dumps({"sec": "s", "secval": "v", **original}).encode()

    payload = sanitizer.sanitize(body)

    assert json.loads(payload.content) == original


def test_only_signature_fields_remain(sanitizer):
    payload = sanitizer.sanitize(b'{"sec":"s","secval":"v"}')

    assert payload.content == b"{}"


def test_non_ascii_is_kept_as_utf8(sanitizer):
    payload = sanitizer.sanitize('{"sec":"s","secval":"v","city":"تهران"}'.encode())

    assert payload.content == '{"city":"تهران"}'.encode()


def test_keys_are_sorted():
    assert encode_json({"b": 1, "a": {"d": 2, "c": 3}}) == b'{"a":{"c":3,"d":2},"b":1}'


@pytest.mark.parametrize(
    "body",
    [
        b"",
        b"not json",
        b'{"sec": "s", "secval": "v"',
        b'["sec", "secval"]',
        b'"sec"',
        b"null",
        b"42",
        b'{"sec":"s","secval":"v","amount":NaN}',
        b'{"sec":"s","secval":"v","amount":Infinity}',
        b'{"sec":"s","secval":"v","amount":1e400}',
        b'{"sec":"s","secval":"v","amount":-1e400}',
        b'{"sec":"s","secval":"\xff"}',
    ],
)
def test_body_must_be_a_json_object(sanitizer, body):
    with pytest.raises(BodyParseError):
        sanitizer.sanitize(body)


@pytest.mark.parametrize(
    "body",
    [
        {"secval": "v"},
        {"sec": "s"},
        {},
        {"sec": 1, "secval": "v"},
        {"sec": "s", "secval": 1000},
        {"sec": None, "secval": "v"},
        {"sec": ["s"], "secval": "v"},
        {"sec": "s", "secval": {"amount": 1}},
        # type errors win over empty values
        {"sec": "", "secval": 1},
        {"secval": ""},
    ],
)
def test_fields_must_be_strings(sanitizer, body):
    with pytest.raises(FieldTypeError):
        sanitizer.sanitize(json.dumps(body).encode())


@pytest.mark.parametrize(
    "body",
    [
        {"sec": "", "secval": ""},
        {"sec": "", "secval": "1000|order123"},
        {"sec": "c2ln", "secval": ""},
    ],
)
def test_empty_fields(sanitizer, body):
    with pytest.raises(EmptyCredentialsError):
        sanitizer.sanitize(json.dumps(body).encode())


def test_empty_fields_map_to_not_found():
    assert EmptyCredentialsError.status_code == 404
    assert FieldTypeError.status_code == 400
    assert BodyParseError.status_code == 400


def test_duplicate_keys_last_wins(sanitizer):
    payload = sanitizer.sanitize(b'{"sec":"first","sec":"second","secval":"v","a":1,"a":2}')

    assert payload.sec == "second"
    assert payload.content == b'{"a":2}'
