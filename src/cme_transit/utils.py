from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from cme_transit.config import LOG_DIR, SNAPSHOT_INDEX


def setup_logging(name: str = "cme_transit", level: int = logging.INFO) -> Path:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOG_DIR / f"{name}.log"
    logging.basicConfig(
        filename=str(log_file),
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    return log_file


def sha256sum(path: Path) -> str:
    """Compute SHA256 hash of a file."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def snapshot_entries(index_path: Path = SNAPSHOT_INDEX) -> List[Dict[str, Any]]:
    if not index_path.exists():
        return []
    return read_json(index_path)


def latest_snapshot_entry(year: int, index_path: Path = SNAPSHOT_INDEX) -> Dict[str, Any]:
    """Most recent saved snapshot of the given year's solar-wind file."""
    entries = [e for e in snapshot_entries(index_path) if int(e.get("year", -1)) == int(year)]
    if not entries:
        raise FileNotFoundError(f"No snapshot for {year}. Run fetch_raw first.")
    return entries[-1]
