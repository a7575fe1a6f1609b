"""Match a target date to the applicable close in a historical series."""
from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from .models import PriceBar


def closest_quote(series: Sequence[PriceBar], target: date) -> Optional[PriceBar]:
    """Return the last bar dated on or before ``target``.

    ``series`` must be sorted ascending by date. When ``target`` predates every
    bar the earliest bar is returned instead of None, so early valuations use
    the first known close rather than leaving a hole.
    """

    if not series:
        return None
    for bar in reversed(series):
        if bar.date <= target:
            return bar
    return series[0]


__all__ = ["closest_quote"]
