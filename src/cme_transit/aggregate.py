"""
aggregate.py
------------
Gap-tolerant mean of one column over an hourly index range.

Values equal to the column's fill code, or not numeric at all, are treated
as missing. When the requested range holds nothing usable it is widened by
one row on each side until a value turns up or the range grows past
MAX_WINDOW_WIDTH rows, in which case FALLBACK_VALUE is returned.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np
import pandas as pd

FALLBACK_VALUE = 1e-5
MAX_WINDOW_WIDTH = 24
DEFAULT_SENTINEL = 999


def coerce_column(values: Iterable) -> pd.Series:
    """Raw tokens -> float64 Series, non-numeric tokens become NaN."""
    raw = pd.Series(list(values), dtype=object)
    return pd.to_numeric(raw, errors="coerce").astype("float64").reset_index(drop=True)


def valid_segment(column: pd.Series, low: int, high: int, sentinel: float) -> pd.Series:
    """Usable values of ``column`` in the inclusive range [low, high].

    Indices outside the column contribute nothing. The fill-code test
    compares the integer part, so 999.9 and 9999999. match 999 and 9999999.
    """
    lo = max(low, 0)
    hi = min(high, len(column) - 1)
    if hi < lo:
        return column.iloc[0:0]
    seg = column.iloc[lo:hi + 1]
    return seg[np.isfinite(seg) & (np.trunc(seg) != sentinel)]


def get_mean(values, low: int, high: int, sentinel: float = DEFAULT_SENTINEL) -> float:
    column = values if isinstance(values, pd.Series) and values.dtype == "float64" else coerce_column(values)
    low, high = sorted((int(low), int(high)))

    while True:
        seg = valid_segment(column, low, high, sentinel)
        if len(seg):
            return round(float(seg.mean()), 5)
        low -= 1
        high += 1
        if high - low > MAX_WINDOW_WIDTH:
            return FALLBACK_VALUE
