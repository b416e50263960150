"""Utility functions for answer parsing, percentages and text sanitization."""

import html
import math
from typing import Any, Iterable, Optional

import bleach


def parse_numeric(value: Any) -> Optional[float]:
    """Parse a rating answer ("4", 4, "4.0") into a float.

    Returns None for anything that is not a finite number, including
    booleans, blank strings and lists.
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

    if not math.isfinite(number):
        return None
    return number


def percentage(part: float, whole: float) -> Optional[float]:
    """Return ``part / whole * 100``, or None when ``whole`` is zero.

    None means "not available" and must never be shown as 0%.
    """
    if whole <= 0:
        return None
    return part / whole * 100


def mean(values: Iterable[float]) -> Optional[float]:
    values = list(values)
    if not values:
        return None
    return sum(values) / len(values)


def plain_text(text: str) -> str:
    """Strip all HTML from free-text answers before they leave the engine as plain text."""
    sanitized = bleach.clean(text, tags=[], strip=True)
    return html.unescape(sanitized).strip()
