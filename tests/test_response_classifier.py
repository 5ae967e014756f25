from __future__ import annotations

import pytest

from core.services.response_classifier import classify, response_lines


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("", True),
        ("250 OK\n", True),
        ("250 OK\n250 OK\n250 closing connection\n", True),
        ("515 Something went wrong\n", False),
        ("250 OK\n515 Authentication failed\n250 closing connection\n", False),
        ("250 OK\n\n250 OK\n", True),
        # Sin anclar al inicio de línea.
        ("650 STATUS 250\n", True),
    ],
)
def test_classify(raw, expected):
    assert classify(raw) is expected


def test_classify_is_pure():
    raw = "250 OK\n515 nope\n"

    assert classify(raw) == classify(raw) is False


def test_unterminated_last_line_is_dropped():
    # La última línea sin `\n` se descarta antes de clasificar.
    assert classify("250 OK\n515 Something went wrong") is True
    assert response_lines("250 OK\n515 Something went wrong") == ["250 OK"]


def test_response_lines_drop_only_trailing_element():
    assert response_lines("250 OK\n250 closing connection\n") == ["250 OK", "250 closing connection"]
    assert response_lines("") == []


def test_crlf_terminator():
    raw = "250 OK\r\n515 Bad\r\n"

    assert response_lines(raw, "\r\n") == ["250 OK", "515 Bad"]
    assert classify(raw, "\r\n") is False
    assert classify("250 OK\r\n250 closing connection\r\n", "\r\n") is True
