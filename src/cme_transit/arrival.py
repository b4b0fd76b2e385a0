"""
arrival.py
----------
Predicted transit time (hours) -> calendar Earth-arrival time.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Optional

import pandas as pd

from cme_transit.errors import InvalidPrediction
from cme_transit.time_index import OnsetLike, parse_onset

TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


@dataclass(frozen=True)
class ArrivalReport:
    onset: str
    arrival: str
    transit_hours: float
    error_hours: Optional[int] = None  # predicted - actual, whole hours

    def to_dict(self) -> dict:
        return asdict(self)


def validate_transit(hours) -> float:
    try:
        value = float(hours)
    except (TypeError, ValueError):
        raise InvalidPrediction(hours) from None
    if not math.isfinite(value) or value <= 0:
        raise InvalidPrediction(hours)
    return value


def add_hours(onset: OnsetLike, hours: float) -> str:
    """Shift ``onset`` by a (possibly fractional or negative) number of hours.

    The shift is rounded to the millisecond so 66.8 h is exactly 66:48:00.
    """
    ts = parse_onset(onset) + pd.Timedelta(milliseconds=round(float(hours) * 3_600_000))
    return ts.strftime(TIME_FORMAT)


def predict_arrival(onset: OnsetLike, transit_hours) -> str:
    return add_hours(onset, validate_transit(transit_hours))


def hours_between(later: OnsetLike, earlier: OnsetLike) -> int:
    """Signed whole hours from ``earlier`` to ``later``, truncated toward zero."""
    delta = parse_onset(later) - parse_onset(earlier)
    return int(delta.total_seconds() / 3600)


def arrival_report(onset: OnsetLike, transit_hours, actual: Optional[OnsetLike] = None) -> ArrivalReport:
    hours = validate_transit(transit_hours)
    arrival = add_hours(onset, hours)
    error = hours_between(arrival, actual) if actual is not None else None
    return ArrivalReport(
        onset=parse_onset(onset).strftime(TIME_FORMAT),
        arrival=arrival,
        transit_hours=round(hours, 2),
        error_hours=error,
    )
