"""
Classes and functions that provide general utility.
"""
import re

from fractions import Fraction

__all__ = [
    "parse_int",
    "parse_float",
    "parse_fraction",
    "parse_base36",
    "parse_hex",
    "split_tokens",
]

INT_REGEX = re.compile(r"^[+-]?\d+$")
FLOAT_REGEX = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
BASE36_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def parse_int(s: str) -> int:
    """
    Parse a decimal integer, allowing surrounding whitespace.

    :raises ValueError: if the string is not an integer.
    """
    s = s.strip()
    if not INT_REGEX.match(s):
        raise ValueError(f"invalid integer (got {s!r})")
    return int(s)


def parse_float(s: str) -> float:
    """
    Parse a decimal number, allowing surrounding whitespace.

    Unlike :func:`float`, special values such as ``inf`` and ``nan`` are rejected.

    :raises ValueError: if the string is not a number.
    """
    s = s.strip()
    if not FLOAT_REGEX.match(s):
        raise ValueError(f"invalid number (got {s!r})")
    return float(s)


def parse_fraction(s: str) -> Fraction:
    """
    Parse a decimal number into an exact fraction.

    :raises ValueError: if the string is not a number.
    """
    s = s.strip()
    if not FLOAT_REGEX.match(s):
        raise ValueError(f"invalid number (got {s!r})")
    return Fraction(s)


def parse_base36(s: str) -> int:
    """
    Parse a two-character base-36 token.

    Digits are case-insensitive. Any invalid character counts as zero, so this never fails.
    """
    value = 0
    for c in s.upper():
        digit = BASE36_DIGITS.find(c)
        value = value * 36 + max(digit, 0)
    return value


def parse_hex(s: str) -> int:
    """
    Parse a hexadecimal token.

    :raises ValueError: if the token is not hexadecimal.
    """
    return int(s, 16)


def split_tokens(payload: str) -> list[str]:
    """Split a payload into two-character tokens. A trailing odd character is ignored."""
    return [payload[i : i + 2] for i in range(0, len(payload) - 1, 2)]
