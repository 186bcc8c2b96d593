"""Parsing of the numeric strings that appear in timeline detail responses."""

from __future__ import annotations

import re

__all__ = [
    "NoMatchError",
    "parse_float_with_period",
    "parse_float_with_comma",
    "parse_numeric_value_from_string",
]

_PERIOD_PATTERN = re.compile(r"[^\d]*(\d+)\.?(\d*)", re.ASCII)
_NON_NUMERIC = re.compile(r"[^0-9,.-]")
_COMMA_PATTERN = re.compile(r"\s*([+-]?\d+(?:\.\d{3})*)(?:,(\d+))?\s*", re.ASCII)
_NUMERIC_VALUE = re.compile(r"(\d+\.?\d*,?\d+)", re.ASCII)

_STRIPPED_TOKENS = ("€", "$", "COP", "MXN", "USD", "+")


class NoMatchError(ValueError):
    """Raised when a value does not match the expected pattern."""

    def __init__(self, value: str) -> None:
        super().__init__(f"value did not match the pattern: {value!r}")
        self.value = value


def parse_float_with_period(src: str) -> float:
    """Parse a number written with a decimal period, ignoring any leading text."""
    match = _PERIOD_PATTERN.fullmatch(src)
    if match is None:
        raise NoMatchError(src)
    return float(f"{match[1]}.{match[2]}")


def parse_float_with_comma(src: str, is_negative: bool = False) -> float:
    """Parse a number with a decimal comma and period thousand separators.

    Currency symbols, signs, percent signs and letters are dropped first; a
    string left without any characters counts as zero.
    """
    for token in _STRIPPED_TOKENS:
        src = src.replace(token, "")
    src = src.strip().replace("%", "")
    src = _NON_NUMERIC.sub("", src) or "0"

    match = _COMMA_PATTERN.fullmatch(src)
    if match is None:
        raise ValueError(f"value did not match the pattern: '{src}'")

    value = match[1].replace(".", "")
    if match[2]:
        value += "." + match[2]

    result = float(value)
    return -result if is_negative else result


def parse_numeric_value_from_string(src: str) -> str:
    """Return the first number-looking fragment found in ``src``."""
    match = _NUMERIC_VALUE.search(src)
    if match is None:
        raise NoMatchError(src)
    return match[1]