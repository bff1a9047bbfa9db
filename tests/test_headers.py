"""Tests for the upstream header allow-list."""

import pytest

from core.headers import HeaderBuilder, is_forwardable_header


@pytest.mark.parametrize("name", ["x-request-id", "X-Request-Id", "X-TRACE", "x-", "X-Forwarded-For"])
def test_custom_headers_are_forwardable(name):
    assert is_forwardable_header(name)


@pytest.mark.parametrize(
    "name",
    ["authorization", "Cookie", "host", "content-type", "user-agent", "x", "ax-foo", "xx-foo", "x_foo", ""],
)
def test_other_headers_are_dropped(name):
    assert not is_forwardable_header(name)


def test_builder_keeps_order_and_repeats():
    inbound = [
        ("authorization", "Bearer secret"),
        ("x-trace", "a"),
        ("cookie", "session=1"),
        ("X-Trace", "b"),
        ("x-merchant", " spaced value "),
    ]

    assert HeaderBuilder().build_upstream_headers(inbound) == [
        ("x-trace", "a"),
        ("X-Trace", "b"),
        ("x-merchant", " spaced value "),
    ]


def test_builder_with_no_custom_headers():
    assert HeaderBuilder().build_upstream_headers([("accept", "*/*")]) == []
