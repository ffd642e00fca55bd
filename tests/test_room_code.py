"""
Tests for room code generation and validation.
"""

import random

import pytest

from roomchat import generate_room_code, is_valid_room_code
from roomchat.room_code import (
    ROOM_CODE_ALPHABET,
    ROOM_CODE_LENGTH,
    normalize_room_code,
)


def test_generated_codes_are_six_uppercase_alphanumerics():
    """Test the shape of generated codes."""
    for _ in range(200):
        code = generate_room_code()
        assert len(code) == ROOM_CODE_LENGTH
        assert all(char in ROOM_CODE_ALPHABET for char in code)
        assert is_valid_room_code(code)


def test_generation_is_deterministic_with_seeded_rng():
    """Test that an injected random source controls generation."""
    first = generate_room_code(random.Random(42))
    second = generate_room_code(random.Random(42))
    assert first == second


@pytest.mark.parametrize("code", ["AB12CD", "000000", "ZZZZZZ", "A1B2C3"])
def test_valid_codes(code):
    assert is_valid_room_code(code)


@pytest.mark.parametrize(
    "code", ["", "AB12C", "AB12CDE", "ab12cd", "AB_12C", "ÄB12CD"]
)
def test_invalid_codes(code):
    assert not is_valid_room_code(code)


def test_normalize_room_code():
    """Test that codes are trimmed and upper-cased."""
    assert normalize_room_code("  ab12cd\n") == "AB12CD"
