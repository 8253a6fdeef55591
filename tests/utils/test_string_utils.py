from __future__ import annotations

import pytest

from utils.string_utils import StringUtils


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Sign up today", True),
        ("Café", True),
        ("OK", False),
        ("   ab  ", False),
        ("12:30", False),
        ("$ 9.99", False),
        ("--", False),
        ("https://example.com/pricing", False),
        ("MAX_RETRIES", False),
        ("Version 2", True),
    ],
)
def test_is_linguistic(text: str, expected: bool) -> None:
    assert StringUtils.is_linguistic(text) is expected


def test_is_linguistic_respects_min_length() -> None:
    assert StringUtils.is_linguistic("Go", min_length=2) is True
    assert StringUtils.is_linguistic("Hello", min_length=6) is False


def test_normalize_text_trims_and_composes() -> None:
    assert StringUtils.normalize_text("  Café ") == "Café"
    assert StringUtils.normalize_text(None) == ""  # type: ignore[arg-type]


def test_split_padding_keeps_surrounding_whitespace() -> None:
    assert StringUtils.split_padding("\n  Welcome back \t") == ("\n  ", "Welcome back", " \t")
    assert StringUtils.split_padding("Welcome") == ("", "Welcome", "")
    assert StringUtils.split_padding("   ") == ("   ", "", "")


def test_canonical_json_is_order_independent() -> None:
    first: str = StringUtils.canonical_json({"text": "Hola", "targetLang": "es", "context": None})
    second: str = StringUtils.canonical_json({"context": None, "targetLang": "es", "text": "Hola"})

    assert first == second
    assert first == '{"context":null,"targetLang":"es","text":"Hola"}'


def test_ensure_str() -> None:
    assert StringUtils.ensure_str(None) == ""
    assert StringUtils.ensure_str(12) == "12"  # type: ignore[arg-type]
    assert StringUtils.ensure_str("text") == "text"
