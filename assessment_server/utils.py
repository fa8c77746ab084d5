"""
Utility functions
"""
import re
import uuid
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional


_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def new_id() -> str:
    """Fresh record identifier (uuid4 string)"""
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    """
    Current UTC time as ISO-8601 with millisecond precision and a Z suffix

    Example:
        >>> utc_now_iso()  # doctest: +SKIP
        '2025-03-14T09:26:53.589Z'
    """
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def parse_leading_int(value: Any) -> Optional[int]:
    """
    Parse the leading integer of a value, the way a lenient form parser does

    Args:
        value: int, float or string

    Returns:
        Parsed integer, or None when there is no leading integer

    Example:
        >>> parse_leading_int("4abc")
        4
        >>> parse_leading_int("x4") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def clean_str(value: Any) -> str:
    """Trimmed string form of a value; None becomes empty string"""
    if value is None:
        return ""
    return str(value).strip()


def round_half_up(numerator: Any, denominator: Any = 1, places: int = 1) -> float:
    """
    Divide and round to a fixed number of decimals, ties away from zero

    Works on exact decimal values, so 61 * 100 / 80 = 76.25 becomes 76.3
    where the built-in round() would give 76.2.

    Example:
        >>> round_half_up(6100, 80, 1)
        76.3
        >>> round_half_up(17, 8, 2)
        2.13
    """
    value = Decimal(str(numerator)) / Decimal(str(denominator))
    return float(value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))
