import numpy as np
import pytest

from cme_transit.build_features import (
    DEFAULT_FEATURES,
    EVENT_FEATURES,
    SOLAR_WIND_FEATURES,
    EventParameters,
    build_feature_frame,
    build_feature_vector,
)
from cme_transit.solar_wind import QUANTITIES

EVENT = EventParameters(speed=1212, speed_final=1243, width=360, mass=1.9e16, position_angle=163)
WIND = {"Bz": -3.2, "Ratio": 0.04, "V": 420.0, "Lat": -1.1, "P": 2.3, "Lon": 0.5, "Bx": 1.7, "T": 98000.0}


def test_default_request_order():
    x = build_feature_vector(EVENT, WIND, DEFAULT_FEATURES)
    assert x.dtype == np.float64
    assert x.tolist() == [1212.0, 1243.0, 360.0, 1.9e16, -3.2, 420.0, 98000.0, 2.3, 0.5, 0.04, 1.7, 163.0]


def test_length_matches_request_when_wind_missing():
    x = build_feature_vector(EVENT, {}, DEFAULT_FEATURES)
    assert len(x) == len(DEFAULT_FEATURES)
    assert x[4:11].tolist() == [0.0] * 7
    assert x[-1] == 163.0


def test_unknown_and_unset_names_default_to_zero():
    names = ["Not A Feature", "CME Acceleration", "Bz", "CME Average Speed"]
    x = build_feature_vector(EVENT, WIND, names)
    # bare snapshot keys are not feature names
    assert x.tolist() == [0.0, 0.0, 0.0, 1212.0]


def test_name_table_covers_every_quantity():
    assert set(SOLAR_WIND_FEATURES.values()) == set(QUANTITIES)
    assert set(EVENT_FEATURES.values()) == set(EventParameters.__dataclass_fields__)


def test_latitude_and_optional_event_fields():
    event = EventParameters(speed=800, latitude=-12.0, speed_20rs=750)
    x = build_feature_vector(event, WIND, ["Solar Wind Latitude", "CME Source Latitude", "CME Speed at 20 Rs"])
    assert x.tolist() == [-1.1, -12.0, 750.0]


def test_sorted_request_variant():
    names = ["Solar Wind Speed", "CME Mass", "CME Average Speed"]
    x = build_feature_vector(EVENT, WIND, names, sort=True)
    assert x.tolist() == [1212.0, 1.9e16, 420.0]


def test_empty_request():
    assert build_feature_vector(EVENT, WIND, []).shape == (0,)


def test_build_is_repeatable():
    a = build_feature_vector(EVENT, WIND, DEFAULT_FEATURES)
    b = build_feature_vector(EVENT, WIND, DEFAULT_FEATURES)
    assert np.array_equal(a, b)


def test_feature_frame():
    events = [EVENT, EventParameters(speed=500, width=90)]
    df = build_feature_frame(events, [WIND, {}], ["CME Average Speed", "Solar Wind Bz"])
    assert list(df.columns) == ["CME Average Speed", "Solar Wind Bz"]
    assert df.to_numpy().tolist() == [[1212.0, -3.2], [500.0, 0.0]]


def test_feature_frame_length_mismatch():
    with pytest.raises(ValueError):
        build_feature_frame([EVENT], [], DEFAULT_FEATURES)
