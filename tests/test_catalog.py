import asyncio

import pandas as pd
import pytest

from cme_transit import catalog
from cme_transit.catalog import (
    CATALOG_FEATURES,
    build_training_set,
    parse_catalog,
    parse_catalog_row,
    read_catalog,
    save_training_table,
    synthetic_training_set,
)
from cme_transit.errors import CatalogRowMalformed, DataUnavailable, EmptyTrainingSet

LINES = [
    "# date       time   pa   speed  acc  width  transit",
    "2015/12/28 12:12  163  1212  -3.1   360    66.8",
    "2015/06/21 02:36  360  1366  12.0   360    39.5",
    "",
    "2015/03/15 01:48  240   719   2.2  Halo    40.0",   # width not numeric
    "2015/01/01 00:00  100   500   0.0   120     0.0",   # transit <= 0
    "2015/01/02 00:00  100   500",                       # short
    "2015/01/03 00:00  100   500   0.0   400    55.0",   # width out of range
]


def test_parse_row_offsets():
    assert parse_catalog_row(LINES[1]) == (1212.0, 360.0, 66.8)


def test_parse_row_rejects_bad_rows():
    for line in LINES[4:7]:
        with pytest.raises(CatalogRowMalformed):
            parse_catalog_row(line)


def test_parse_catalog_drops_malformed_rows():
    df = parse_catalog(LINES)
    assert list(df.columns) == ["speed", "width", "transit_time"]
    assert df.to_numpy().tolist() == [[1212.0, 360.0, 66.8], [1366.0, 360.0, 39.5]]


def test_training_set_uses_feature_builder():
    X, y = build_training_set(parse_catalog(LINES))
    assert list(X.columns) == CATALOG_FEATURES
    assert X.to_numpy().tolist() == [[1212.0, 360.0], [1366.0, 360.0]]
    assert y.tolist() == [66.8, 39.5]


def test_no_valid_rows_is_an_error():
    with pytest.raises(EmptyTrainingSet):
        build_training_set(parse_catalog(LINES[4:]))


def test_unreachable_catalog_gives_empty_frame(monkeypatch):
    async def boom(url, timeout):
        raise DataUnavailable("down")

    monkeypatch.setattr(catalog, "fetch_text", boom)
    df = asyncio.run(read_catalog("http://catalog.invalid/list.txt"))
    assert df.empty
    with pytest.raises(EmptyTrainingSet):
        build_training_set(df)


def test_read_catalog_parses_text(monkeypatch):
    async def fake(url, timeout):
        return "\n".join(LINES)

    monkeypatch.setattr(catalog, "fetch_text", fake)
    assert len(asyncio.run(read_catalog("http://catalog.invalid/list.txt"))) == 2


def test_synthetic_training_set_shape():
    X, y = synthetic_training_set(20, ["a", "b", "c"], seed=1)
    assert X.shape == (20, 3)
    assert len(y) == 20


def test_save_training_table(tmp_path):
    X, y = build_training_set(parse_catalog(LINES))
    path = save_training_table(X, y, tmp_path)
    table = pd.read_parquet(path)
    assert list(table.columns) == CATALOG_FEATURES + ["transit_time"]
    assert len(table) == 2


def test_non_positive_speed_rows_dropped():
    lines = [
        "2015/01/04 00:00  100     0   0.0   120    50.0",
        "2015/01/05 00:00  100  -250   0.0   120    50.0",
        "2015/01/06 00:00  100   650   0.0   120    50.0",
    ]
    df = parse_catalog(lines)
    assert df.to_numpy().tolist() == [[650.0, 120.0, 50.0]]
