"""
time_index.py
-------------
Maps a CME onset time to its row in an hourly yearly table
(row 0 = Jan 1 00:00 of the onset's year).
"""

from __future__ import annotations

from datetime import datetime
from typing import Union

import pandas as pd

OnsetLike = Union[str, datetime, pd.Timestamp]


def parse_onset(value: OnsetLike) -> pd.Timestamp:
    """Return a naive UTC Timestamp; tz-aware input is converted to UTC first."""
    ts = pd.Timestamp(value)
    if pd.isna(ts):
        raise ValueError(f"unparseable onset time: {value!r}")
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def resolve_hour_index(onset: OnsetLike) -> int:
    """Zero-based hourly row index of ``onset`` within its calendar year.

    No bounds check; an index past the end of a short table is left to the
    aggregator's widening/fallback.
    """
    ts = parse_onset(onset)
    return (ts.dayofyear - 1) * 24 + ts.hour
