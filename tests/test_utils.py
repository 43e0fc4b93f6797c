from fractions import Fraction

import pytest

from bmsparser.utils import (
    parse_base36,
    parse_float,
    parse_fraction,
    parse_hex,
    parse_int,
    split_tokens,
)


def test_parse_base36_is_case_insensitive():
    assert parse_base36("ZZ") == 1295
    assert parse_base36("zz") == 1295
    assert parse_base36("0A") == 10


def test_parse_base36_treats_invalid_characters_as_zero():
    assert parse_base36("0!") == 0
    assert parse_base36("1!") == 36


def test_split_tokens_ignores_trailing_character():
    assert split_tokens("01020") == ["01", "02"]
    assert split_tokens("") == []
    assert split_tokens("1") == []


def test_parse_int():
    assert parse_int(" 12 ") == 12
    assert parse_int("-3") == -3
    with pytest.raises(ValueError):
        parse_int("1.5")
    with pytest.raises(ValueError):
        parse_int("abc")


def test_parse_float_rejects_special_values():
    assert parse_float("150.5") == 150.5
    assert parse_float(".5") == 0.5
    with pytest.raises(ValueError):
        parse_float("inf")
    with pytest.raises(ValueError):
        parse_float("nan")


def test_parse_fraction_is_exact():
    assert parse_fraction("0.75") == Fraction(3, 4)
    assert parse_fraction("1") == Fraction(1)
    with pytest.raises(ValueError):
        parse_fraction("3/4")


def test_parse_hex():
    assert parse_hex("B4") == 180
    with pytest.raises(ValueError):
        parse_hex("ZZ")
