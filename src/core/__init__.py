"""
Core module for cross-cutting concerns.

This module provides:
- Structured logging configuration
- Request tracing middleware
- Loose value coercion helpers
"""

from core.logging import configure_logging, get_logger
from core.utils import coerce_int, coerce_number, is_blank, safe_get, to_filter_string

__all__ = [
    "configure_logging",
    "get_logger",
    "coerce_int",
    "coerce_number",
    "is_blank",
    "safe_get",
    "to_filter_string",
]
