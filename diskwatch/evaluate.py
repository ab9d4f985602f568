"""
diskwatch.evaluate
AUTHOR: carter-vin

Threshold decision for a single utilization reading

No hysteresis, no debounce, no suppression. Every run at or above the
threshold alerts again; an hourly schedule means one alert per hour until
usage drops.
"""

from __future__ import annotations


def _check_pct(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if not 0 <= value <= 100:
        raise ValueError(f"{name} must be within 0..100, got {value}")


def exceeds_threshold(used_pct: int, threshold: int) -> bool:
    """
    True iff used_pct >= threshold (inclusive)
    """
    _check_pct("used_pct", used_pct)
    _check_pct("threshold", threshold)
    return used_pct >= threshold
