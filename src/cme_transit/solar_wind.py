"""
solar_wind.py
-------------
Ambient solar-wind conditions at CME onset: the gap-filled mean of eight
OMNI2 quantities over [onset hour, onset hour + duration].

A failed fetch degrades to an empty snapshot; callers treat every quantity
as unresolved in that case.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Awaitable, Callable, Dict, NamedTuple, Optional

from rich.console import Console

from cme_transit.aggregate import get_mean
from cme_transit.config import DEFAULT_DURATION_H, FETCH_TIMEOUT_S
from cme_transit.fetch_raw import FetchResult, RawSeriesTable, load_omni_file, read_omni_table
from cme_transit.time_index import OnsetLike, parse_onset, resolve_hour_index
from cme_transit.utils import latest_snapshot_entry

console = Console()
logger = logging.getLogger(__name__)


class Quantity(NamedTuple):
    column: int      # 0-based token index in an OMNI2 row
    sentinel: int    # fill code ("no measurement")
    description: str


QUANTITIES: Dict[str, Quantity] = {
    "Bz":    Quantity(14, 999,     "IMF Bz, GSE (nT)"),
    "Ratio": Quantity(27, 9,       "alpha/proton density ratio"),
    "V":     Quantity(24, 9999,    "plasma flow speed (km/s)"),
    "Lat":   Quantity(26, 999,     "plasma flow latitude (deg)"),
    "P":     Quantity(28, 99,      "flow pressure (nPa)"),
    "Lon":   Quantity(25, 999,     "plasma flow longitude (deg)"),
    "Bx":    Quantity(12, 999,     "IMF Bx, GSE (nT)"),
    "T":     Quantity(22, 9999999, "proton temperature (K)"),
}

SolarWindSnapshot = Dict[str, float]
TableFetcher = Callable[[int, float], Awaitable[FetchResult]]


def column_values(table: RawSeriesTable, column: int) -> list:
    return [row[column] if len(row) > column else None for row in table]


def build_snapshot(table: RawSeriesTable, onset: OnsetLike, duration: int = DEFAULT_DURATION_H) -> SolarWindSnapshot:
    if not table:
        return {}
    idx = resolve_hour_index(onset)
    return {
        name: get_mean(column_values(table, q.column), idx, idx + duration, q.sentinel)
        for name, q in QUANTITIES.items()
    }


async def read_omni(
    onset: OnsetLike,
    duration: int = DEFAULT_DURATION_H,
    *,
    timeout: float = FETCH_TIMEOUT_S,
    fetch: TableFetcher = read_omni_table,
) -> SolarWindSnapshot:
    """Fetch the onset year's table once and build the snapshot; {} on failure."""
    year = parse_onset(onset).year
    result = await fetch(year, timeout)
    if not result.ok:
        logger.warning("No solar wind data for %s (%s); using empty snapshot", onset, result.error)
        return {}
    return await asyncio.to_thread(build_snapshot, result.rows, onset, duration)


def snapshot_from_file(onset: OnsetLike, path: Optional[Path] = None, duration: int = DEFAULT_DURATION_H) -> SolarWindSnapshot:
    """Offline variant working from a saved yearly snapshot."""
    if path is None:
        path = Path(latest_snapshot_entry(parse_onset(onset).year)["file"])
    return build_snapshot(load_omni_file(path), onset, duration)


if __name__ == "__main__":
    if len(sys.argv) not in (2, 3):
        sys.exit("usage: python -m cme_transit.solar_wind ONSET [DURATION_H]")
    _onset = sys.argv[1]
    _duration = int(sys.argv[2]) if len(sys.argv) == 3 else DEFAULT_DURATION_H
    try:
        snap = snapshot_from_file(_onset, duration=_duration)
    except FileNotFoundError:
        snap = asyncio.run(read_omni(_onset, _duration))
    if not snap:
        console.print("[red]No solar wind data available[/red]")
        raise SystemExit(1)
    for name, value in snap.items():
        console.print(f"  {name:<6} {value:>14.5f}  [dim]{QUANTITIES[name].description}[/dim]")
