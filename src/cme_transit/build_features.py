"""
build_features.py
-----------------
Turns CME event scalars + a solar-wind snapshot into the model input vector.

Each requested feature name is looked up in EVENT_FEATURES first, then in
SOLAR_WIND_FEATURES; anything unresolved becomes 0.0, so the vector always
has one entry per requested name, in request order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

# Event feature name -> EventParameters attribute
EVENT_FEATURES: Dict[str, str] = {
    "CME Average Speed":   "speed",           # km/s, linear fit
    "CME Final Speed":     "speed_final",     # km/s
    "CME Angular Width":   "width",           # deg
    "CME Mass":            "mass",            # g
    "CME Position Angle":  "position_angle",  # deg
    "CME Source Latitude": "latitude",        # deg
    "CME Source Longitude": "longitude",      # deg
    "CME Acceleration":    "acceleration",    # m/s^2
    "CME Speed at 20 Rs":  "speed_20rs",      # km/s
}

# Solar wind feature name -> snapshot key (solar_wind.QUANTITIES)
SOLAR_WIND_FEATURES: Dict[str, str] = {
    "Solar Wind Bz":              "Bz",
    "Solar Wind Speed":           "V",
    "Solar Wind Temperature":     "T",
    "Solar Wind Pressure":        "P",
    "Solar Wind Longitude":       "Lon",
    "Solar Wind Latitude":        "Lat",
    "Solar Wind He Proton Ratio": "Ratio",
    "Solar Wind Bx":              "Bx",
}

DEFAULT_FEATURES = [
    "CME Average Speed",
    "CME Final Speed",
    "CME Angular Width",
    "CME Mass",
    "Solar Wind Bz",
    "Solar Wind Speed",
    "Solar Wind Temperature",
    "Solar Wind Pressure",
    "Solar Wind Longitude",
    "Solar Wind He Proton Ratio",
    "Solar Wind Bx",
    "CME Position Angle",
]

MISSING_FEATURE_VALUE = 0.0


@dataclass(frozen=True)
class EventParameters:
    speed: Optional[float] = None
    speed_final: Optional[float] = None
    width: Optional[float] = None
    mass: Optional[float] = None
    position_angle: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    acceleration: Optional[float] = None
    speed_20rs: Optional[float] = None

    def scalars(self) -> Dict[str, float]:
        """Event feature name -> value, for the attributes that are set."""
        out = {}
        for name, attr in EVENT_FEATURES.items():
            value = getattr(self, attr)
            if value is not None:
                out[name] = value
        return out


def _resolve(name: str, event_scalars: Mapping[str, float], snapshot: Mapping[str, float]) -> float:
    if name in event_scalars:
        return float(event_scalars[name])
    key = SOLAR_WIND_FEATURES.get(name)
    if key is not None and snapshot.get(key) is not None:
        return float(snapshot[key])
    return MISSING_FEATURE_VALUE


def build_feature_vector(
    event: EventParameters,
    snapshot: Mapping[str, float],
    features: Sequence[str],
    *,
    sort: bool = False,
) -> np.ndarray:
    names = sorted(features) if sort else list(features)
    scalars = event.scalars()
    return np.array([_resolve(n, scalars, snapshot) for n in names], dtype="float64")


def build_feature_frame(
    events: Sequence[EventParameters],
    snapshots: Sequence[Mapping[str, float]],
    features: Sequence[str],
) -> pd.DataFrame:
    """One row per event, columns in request order."""
    if len(events) != len(snapshots):
        raise ValueError(f"{len(events)} events but {len(snapshots)} snapshots")
    rows = [build_feature_vector(e, s, features) for e, s in zip(events, snapshots)]
    matrix = np.vstack(rows) if rows else np.empty((0, len(features)))
    return pd.DataFrame(matrix, columns=list(features))
