"""Helpers for Clarity values as they appear in chainhook payloads.

Some relays deliver print events only as the textual representation of the
printed tuple, e.g.

    (tuple (event "donated-stx") (campaignId u1) (amount u1000) (donor 'SP...))

parse_clarity_repr() recovers the fundraising fields from that text with one
independent lookup per key, so field order does not matter and unknown
fields are ignored.
"""

import math
import re
from typing import Any, Dict, Optional, Pattern

STRING_FIELDS = ("event", "token")
UINT_FIELDS = ("campaignId", "campaign_id", "amount", "amountUstx", "amountSats", "ts", "timestamp")
PRINCIPAL_FIELDS = ("donor", "owner", "beneficiary")

_DIGITS = re.compile(r"^\d+$")

# Largest values the storage columns hold: BIGINT and NUMERIC(78, 0)
MAX_BIGINT = 2 ** 63 - 1
MAX_TOKEN_AMOUNT = 10 ** 78 - 1


def _field_pattern(key: str, value_pattern: str) -> Pattern[str]:
    # "(key value" with the key matched whole, so "amount" never hits "amountUstx"
    return re.compile(r"\(\s*" + re.escape(key) + r"\s+" + value_pattern)


# string-ascii is "..." and string-utf8 is u"..."
_STRING_PATTERNS = {key: _field_pattern(key, r'u?"((?:[^"\\]|\\.)*)"') for key in STRING_FIELDS}
_UINT_PATTERNS = {key: _field_pattern(key, r"u(\d+)") for key in UINT_FIELDS}
_PRINCIPAL_PATTERNS = {key: _field_pattern(key, r"'([^\s()]+)") for key in PRINCIPAL_FIELDS}


def to_uint(value: Any) -> Optional[int]:
    """Normalize a numeric-looking value to a non-negative int.

    Accepts ints, finite floats (truncated) and strings of decimal digits.
    Anything else, including booleans and negative numbers, yields None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        if not math.isfinite(value) or value < 0:
            return None
        return math.trunc(value)
    if isinstance(value, str) and _DIGITS.match(value):
        return int(value)
    return None


def to_bounded_uint(value: Any, maximum: int) -> Optional[int]:
    """to_uint(), with values above `maximum` treated as absent."""
    number = to_uint(value)
    if number is None or number > maximum:
        return None
    return number


def parse_clarity_repr(text: str) -> Dict[str, Any]:
    """Extract fundraising fields from a Clarity tuple representation.

    Args:
        text: Clarity value repr

    Returns:
        Mapping of every recognized key found in the text to its value
        (str for strings and principals, int for uints). Keys that are not
        present are simply missing.
    """
    fields: Dict[str, Any] = {}

    for key, pattern in _STRING_PATTERNS.items():
        match = pattern.search(text)
        if match:
            fields[key] = match.group(1)

    for key, pattern in _UINT_PATTERNS.items():
        match = pattern.search(text)
        if match:
            fields[key] = int(match.group(1))

    for key, pattern in _PRINCIPAL_PATTERNS.items():
        match = pattern.search(text)
        if match:
            fields[key] = match.group(1)

    return fields
