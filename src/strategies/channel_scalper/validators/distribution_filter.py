"""Distribution filter for the channel scalper.

A window only describes a range worth trading when prices keep crossing
their mean. A trending window has spread too, but price will not come back
through it, so such windows are rejected.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence

DEFAULT_MIN_SWITCH_RATIO = 0.4


def _classify(value: Decimal, mean: Decimal) -> bool | None:
    diff = value - mean
    if diff > 0:
        return True
    if diff < 0:
        return False
    return None


def count_mean_crossings(window: Sequence[Decimal], mean: Decimal | None = None) -> int:
    """Return how many times ``window`` switches side around its mean.

    Values sitting exactly on the mean are skipped; each classified value is
    compared with the last classified one. ``mean`` may be passed in when the
    caller already keeps a running sum.
    """

    if not window:
        return 0
    if mean is None:
        mean = sum(window, Decimal("0")) / len(window)
    switches = 0
    previous: bool | None = None
    for value in window:
        current = _classify(value, mean)
        if current is None:
            continue
        if previous is not None and current != previous:
            switches += 1
        previous = current
    return switches


def is_evenly_distributed(
    window: Sequence[Decimal],
    *,
    min_ratio: float = DEFAULT_MIN_SWITCH_RATIO,
    mean: Decimal | None = None,
) -> bool:
    """Return ``True`` when ``window`` oscillates around its mean.

    The window is accepted when the number of mean crossings divided by the
    number of points is at least ``min_ratio``.
    """

    if not window:
        return False
    if (len(window) - 1) / len(window) < min_ratio:
        return False
    switches = count_mean_crossings(window, mean)
    ratio = switches / len(window)
    return ratio >= min_ratio


__all__ = ["count_mean_crossings", "is_evenly_distributed", "DEFAULT_MIN_SWITCH_RATIO"]
