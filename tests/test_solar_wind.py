import asyncio
import threading

import pytest

from cme_transit import solar_wind
from cme_transit.aggregate import FALLBACK_VALUE
from cme_transit.fetch_raw import FetchResult
from cme_transit.solar_wind import QUANTITIES, build_snapshot, read_omni, snapshot_from_file


def make_table(n_rows=48):
    """OMNI2-like rows: Bz = hour index, V mostly fill, T/Ratio all fill."""
    rows = []
    for i in range(n_rows):
        row = ["0"] * 55
        row[0], row[1], row[2] = "2015", str(i // 24 + 1), str(i % 24)
        row[14] = f"{i}.0"
        row[24] = "400." if i == 12 else "9999."
        row[22] = "9999999."
        row[27] = "9.999"
        row[28] = "2.50"
        row[12] = "-1.5"
        row[25] = "999.9" if i % 2 else "1.0"
        row[26] = "-2.0"
        rows.append(row)
    return rows


def test_snapshot_has_every_quantity():
    snap = build_snapshot(make_table(), "2015-01-01T02:30:00", 6)
    assert set(snap) == set(QUANTITIES)


def test_snapshot_values():
    snap = build_snapshot(make_table(), "2015-01-01T02:30:00", 6)
    assert snap["Bz"] == 5.0          # mean of rows 2..8
    assert snap["V"] == 400.0         # found after widening to row 12
    assert snap["T"] == FALLBACK_VALUE
    assert snap["Ratio"] == FALLBACK_VALUE
    assert snap["P"] == 2.5
    assert snap["Bx"] == -1.5
    assert snap["Lon"] == 1.0
    assert snap["Lat"] == -2.0


def test_duration_controls_window():
    snap = build_snapshot(make_table(), "2015-01-01T00:00:00", 2)
    assert snap["Bz"] == 1.0


def test_empty_table_gives_empty_snapshot():
    assert build_snapshot([], "2015-01-01T00:00:00") == {}


def test_short_rows_count_as_missing():
    table = make_table()
    table[3] = table[3][:10]
    snap = build_snapshot(table, "2015-01-01T03:00:00", 0)
    # row 3 lacks column 14; widening picks up rows 2 and 4
    assert snap["Bz"] == 3.0


def test_read_omni_uses_onset_year():
    seen = {}

    async def fetch(year, timeout):
        seen["year"], seen["timeout"] = year, timeout
        return FetchResult(ok=True, rows=make_table())

    snap = asyncio.run(read_omni("2015-01-01T02:30:00", 6, timeout=5.0, fetch=fetch))
    assert seen == {"year": 2015, "timeout": 5.0}
    assert snap["Bz"] == 5.0


def test_read_omni_degrades_on_fetch_failure():
    async def fetch(year, timeout):
        return FetchResult(ok=False, error="HTTP 404")

    assert asyncio.run(read_omni("2015-12-28T12:12:00", fetch=fetch)) == {}


def test_snapshot_from_saved_file(tmp_path):
    path = tmp_path / "omni2_2015.dat"
    path.write_text("\n".join(" ".join(r) for r in make_table()) + "\n", encoding="utf-8")
    snap = snapshot_from_file("2015-01-01T02:30:00", path)
    assert snap["Bz"] == 5.0


def test_snapshot_from_file_without_snapshot(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(FileNotFoundError):
        snapshot_from_file("1999-01-01T00:00:00")


def test_read_omni_aggregates_in_worker_thread(monkeypatch):
    threads = {}
    real_build = solar_wind.build_snapshot

    def build(table, onset, duration):
        threads["build"] = threading.get_ident()
        return real_build(table, onset, duration)

    monkeypatch.setattr(solar_wind, "build_snapshot", build)

    async def fetch(year, timeout):
        return FetchResult(ok=True, rows=make_table())

    async def run():
        threads["loop"] = threading.get_ident()
        return await read_omni("2015-01-01T02:30:00", 6, fetch=fetch)

    assert asyncio.run(run())["Bz"] == 5.0
    assert threads["build"] != threads["loop"]
