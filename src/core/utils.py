"""
Core Utility Functions.

Loose value coercion shared by request parsing, the filter compiler,
the executors and the response assembler. Client-supplied values are
never trusted to have the right type: helpers return None (or a
default) instead of raising.
"""

import math
from typing import Any, Dict, Optional


def is_blank(value: Any) -> bool:
    """
    True for values that mean "filter not set": None and empty or
    whitespace-only strings.
    """
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def to_filter_string(value: Any) -> Optional[str]:
    """
    Render a scalar in the string form used for attribute equality.

    Booleans become "true"/"false", integral floats drop their ".0".
    Containers are not scalars and return None.

    Examples:
        >>> to_filter_string(True)
        'true'
        >>> to_filter_string(55.0)
        '55'
        >>> to_filter_string("Samsung")
        'Samsung'
    """
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return str(value)
        if value.is_integer():
            return str(int(value))
    return str(value)


def coerce_number(value: Any) -> Optional[float]:
    """
    Coerce a client value to a finite number.

    Accepts ints, floats and numeric strings. Booleans, containers,
    NaN, infinities and non-numeric strings return None.

    Examples:
        >>> coerce_number("1000")
        1000.0
        >>> coerce_number("abc") is None
        True
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_int(value: Any, default: int) -> int:
    """
    Coerce a query-string value to an int, keeping the integer part.

    "2" -> 2, "2.7" -> 2, "abc" -> default, None -> default.
    """
    number = coerce_number(value)
    if number is None:
        return default
    return int(number)


def clamp(value: int, lower: int, upper: int) -> int:
    """Clamp value into [lower, upper]."""
    return max(lower, min(upper, value))


def safe_get(obj: Any, *keys: str, default: Any = None) -> Any:
    """
    Safely get nested dictionary values.

    Args:
        obj: Dictionary or object
        *keys: Keys to traverse
        default: Default value if key not found

    Example:
        >>> safe_get({'attributes': {'brand': 'LG'}}, 'attributes', 'brand')
        'LG'
        >>> safe_get({'attributes': {}}, 'attributes', 'brand', default=None) is None
        True
    """
    current = obj
    for key in keys:
        if isinstance(current, dict):
            current = current.get(key)
        elif hasattr(current, key):
            current = getattr(current, key)
        else:
            return default
        if current is None:
            return default
    return current


def get_path(document: Dict[str, Any], path: str, default: Any = None) -> Any:
    """Read a dotted path such as "attributes.brand" from a document."""
    return safe_get(document, *path.split("."), default=default)
