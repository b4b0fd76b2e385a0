"""
fetch_raw.py
-------------
Downloads the yearly hourly solar-wind (OMNI2) table.

- read_omni_table(): single async fetch with a bounded timeout, returns a
  FetchResult instead of raising (no retries).
- save_snapshot(): stores a dated copy under data/raw/ with SHA256
  integrity tracking in data/_snapshots/index.json.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import requests
from rich.console import Console

from cme_transit.config import DATA_RAW, FETCH_TIMEOUT_S, OMNI_URL_TEMPLATE, SNAPSHOT_INDEX
from cme_transit.errors import DataUnavailable
from cme_transit.utils import sha256sum, snapshot_entries, write_json

console = Console()
logger = logging.getLogger(__name__)

RawSeriesTable = List[List[str]]
CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class FetchResult:
    ok: bool
    rows: RawSeriesTable = field(default_factory=list)
    error: Optional[str] = None


def omni_url(year: int) -> str:
    return OMNI_URL_TEMPLATE.format(year=int(year))


def parse_omni_text(text: str) -> RawSeriesTable:
    """Newline-separated rows of whitespace-split tokens; blank lines dropped."""
    return [line.split() for line in text.splitlines() if line.strip()]


def load_omni_file(path: Path) -> RawSeriesTable:
    with open(path, "r", encoding="utf-8") as f:
        return parse_omni_text(f.read())


def download_text(url: str, timeout: float = FETCH_TIMEOUT_S) -> str:
    """Whole-transfer deadline of ``timeout`` seconds, enforced between chunks."""
    deadline = time.monotonic() + timeout
    chunks = []
    try:
        with requests.get(url, stream=True, timeout=(timeout, timeout)) as resp:
            resp.raise_for_status()
            encoding = resp.encoding or "utf-8"
            for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                if time.monotonic() > deadline:
                    raise DataUnavailable(f"{url}: timed out after {timeout:g}s")
                chunks.append(chunk)
    except requests.RequestException as e:
        raise DataUnavailable(f"{url}: {e}") from e
    return b"".join(chunks).decode(encoding, errors="replace")


async def fetch_text(url: str, timeout: float = FETCH_TIMEOUT_S) -> str:
    """Run the blocking download in a worker thread under a hard timeout."""
    try:
        return await asyncio.wait_for(asyncio.to_thread(download_text, url, timeout), timeout)
    except asyncio.TimeoutError as e:
        raise DataUnavailable(f"{url}: timed out after {timeout:g}s") from e


async def read_omni_table(year: int, timeout: float = FETCH_TIMEOUT_S) -> FetchResult:
    url = omni_url(year)
    try:
        text = await fetch_text(url, timeout)
    except DataUnavailable as e:
        logger.warning("Solar wind fetch failed: %s", e)
        return FetchResult(ok=False, error=str(e))
    rows = parse_omni_text(text)
    logger.info("Fetched %d hourly rows for %s", len(rows), year)
    return FetchResult(ok=True, rows=rows)


def save_snapshot(year: int, timeout: float = FETCH_TIMEOUT_S) -> Path:
    DATA_RAW.mkdir(parents=True, exist_ok=True)

    now = datetime.datetime.now(datetime.timezone.utc)
    fpath = DATA_RAW / f"omni2_{year}_{now:%Y%m%d_%H%M%S}.dat"
    url = omni_url(year)

    console.print(f"Fetching [cyan]{url}[/cyan] ...")
    text = download_text(url, timeout)
    with open(fpath, "w", encoding="utf-8") as f:
        f.write(text)

    sha = sha256sum(fpath)
    count = len(parse_omni_text(text))
    entry = {
        "file": fpath.as_posix(),
        "year": int(year),
        "rows": count,
        "sha256": sha,
        "timestamp_utc": now.replace(tzinfo=None).isoformat(timespec="seconds"),
    }

    index = snapshot_entries(SNAPSHOT_INDEX)
    index.append(entry)
    write_json(SNAPSHOT_INDEX, index)

    console.print(
        f"[green]Snapshot saved:[/green] {fpath.name} "
        f"({count} rows, sha256={sha[:12]}...)"
    )
    return fpath


if __name__ == "__main__":
    if len(sys.argv) != 2:
        sys.exit("usage: python -m cme_transit.fetch_raw YYYY")
    try:
        save_snapshot(int(sys.argv[1]))
    except Exception as e:
        console.print(f"[red]Fetch failed:[/red] {e}")
        raise SystemExit(1)
