"""Decoding utilities: hex quantities, extra-data text, and numeric fields.

All monetary and fee figures end up as `float`. Parsing never raises into the
pipeline: `parse_numeric` returns a `ParseResult` carrying either the value or
a `NumericParseError` plus the sentinel `NUMERIC_SENTINEL`.
"""

from __future__ import annotations

import math
import string
from typing import Any, NamedTuple

from eth_utils import decode_hex, is_0x_prefixed, remove_0x_prefix

from blockwatch.core.errors import NumericParseError

NUMERIC_SENTINEL = 0.0


class ParseResult(NamedTuple):
    """Outcome of a numeric parse: the value (or sentinel) and the error, if any."""

    value: float
    error: NumericParseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def int_to_hex(n: int) -> str:
    """Return a 0x-prefixed hex quantity for a non-negative integer."""
    if n < 0:
        raise ValueError(f"negative quantity: {n}")
    return hex(n)


def hex_to_int(value: str | int) -> int:
    """Parse a 0x-prefixed (or bare) hex quantity as an unsigned integer."""
    if isinstance(value, bool):
        raise NumericParseError(value, "boolean is not a quantity")
    if isinstance(value, int):
        if value < 0:
            raise NumericParseError(value, "negative quantity")
        return value
    if not isinstance(value, str):
        raise NumericParseError(value, f"unexpected type {type(value).__name__}")
    digits = remove_0x_prefix(value.strip())  # type: ignore[arg-type]
    if not digits:
        raise NumericParseError(value, "empty hex string")
    if any(c not in string.hexdigits for c in digits):
        raise NumericParseError(value, "invalid hex digits")
    return int(digits, 16)


def hex_to_bytes(value: str) -> bytes:
    """Decode a hex data string (with or without 0x) into raw bytes."""
    try:
        return decode_hex(value)
    except (ValueError, TypeError) as e:
        raise NumericParseError(value, "invalid hex data") from e


def decode_extra_data(value: str | None) -> str:
    """Render a block's extraData as display text (invalid UTF-8 replaced)."""
    if not value:
        return ""
    return hex_to_bytes(value).decode("utf-8", errors="replace")


def parse_numeric(raw: Any) -> ParseResult:
    """Parse a hex string, decimal string or JSON number into a float.

    `None` means the upstream omitted the field: the sentinel is returned
    without an error.
    """
    if raw is None:
        return ParseResult(NUMERIC_SENTINEL)
    if isinstance(raw, bool):
        return ParseResult(NUMERIC_SENTINEL, NumericParseError(raw, "boolean is not a number"))
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            return ParseResult(NUMERIC_SENTINEL, NumericParseError(raw, "out of float range"))
    elif isinstance(raw, str):
        s = raw.strip()
        if not s:
            return ParseResult(NUMERIC_SENTINEL, NumericParseError(raw, "empty string"))
        if is_0x_prefixed(s):
            try:
                value = float(hex_to_int(s))
            except NumericParseError as e:
                return ParseResult(NUMERIC_SENTINEL, e)
            except OverflowError:
                return ParseResult(NUMERIC_SENTINEL, NumericParseError(raw, "out of float range"))
        else:
            try:
                value = float(s)
            except ValueError:
                return ParseResult(NUMERIC_SENTINEL, NumericParseError(raw, "not a decimal number"))
    else:
        return ParseResult(NUMERIC_SENTINEL, NumericParseError(raw, f"unexpected type {type(raw).__name__}"))

    if not math.isfinite(value):
        return ParseResult(NUMERIC_SENTINEL, NumericParseError(raw, "not a finite number"))
    return ParseResult(value)
