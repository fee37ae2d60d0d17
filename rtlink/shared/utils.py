from __future__ import annotations
import math
from typing import Any

# ========================================
#           INPUT VALIDATION HELPERS
# ========================================
"""
Helpers the request structs and the connection call to decide whether a
caller-supplied value has the shape the remote API expects.
"""


def is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def is_integer(value: Any) -> bool:
    """
    True for ints (bools excluded) and for floats with no fractional part.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value) and value.is_integer()


def is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and not (isinstance(value, float) and math.isnan(value))


def is_latitude(value: Any) -> bool:
    """
    Degrees in [-90, 90].
    """
    return is_number(value) and -90 <= value <= 90


def is_longitude(value: Any) -> bool:
    """
    Degrees in [-180, 180].
    """
    return is_number(value) and -180 <= value <= 180


def is_non_empty_string_list(value: Any) -> bool:
    """
    A list (or tuple) whose every item is a non-empty string. An empty list is accepted.
    """
    return isinstance(value, (list, tuple)) and all(is_non_empty_string(v) for v in value)


def is_timestamp(value: Any) -> bool:
    """
    Times are sent either as epoch numbers or as strings the server parses.
    """
    return is_number(value) or isinstance(value, str)
