"""
Utility helper functions for safe handling of raw API records.
"""
import html
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def safe_str(value: Any, default: Optional[str] = None) -> Optional[str]:
    """
    Safely convert value to string, handling None.

    Args:
        value: Any value to convert
        default: Returned if value is None

    Returns:
        String representation or default
    """
    if value is None:
        return default
    return str(value)


def safe_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    """
    Safely convert value to int, handling None and invalid values.

    Args:
        value: Any value to convert
        default: Returned if conversion fails

    Returns:
        Integer value or default
    """
    if value is None:
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def decode_snippet(raw: Optional[str]) -> Optional[str]:
    """Decode HTML entities in a snippet and strip surrounding whitespace."""
    if not raw:
        return raw
    return html.unescape(raw).strip()


def epoch_ms_to_datetime(value: Any) -> Optional[datetime]:
    """Convert an epoch-milliseconds value (int or numeric string) to an aware UTC datetime."""
    millis = safe_int(value)
    if millis is None:
        return None
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def first_header(headers: Optional[List[Dict[str, Any]]], name: str) -> Optional[str]:
    """
    Get the first value of a header by case-insensitive name.

    Args:
        headers: Gmail ``payload.headers`` list of ``{"name", "value"}`` dicts
        name: Header name, e.g. "Subject"

    Returns:
        Header value, or None if absent
    """
    wanted = name.lower()
    for header in headers or []:
        if safe_str(header.get("name"), "").lower() == wanted:
            return safe_str(header.get("value"))
    return None
