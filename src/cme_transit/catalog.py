"""
catalog.py
----------
Training data for the transit-time regressor.

Reads a plain-text CME catalog (one event per line, whitespace separated;
token 3 = linear speed, 5 = angular width, 6 = observed transit time in
hours). Lines that do not parse, or whose transit time is not positive,
are dropped. Surviving rows are checked with pandera before they are
turned into feature rows by the same builder used at prediction time.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import pandera as pa
from pandera import Check, Column

from cme_transit.build_features import DEFAULT_FEATURES, EventParameters, build_feature_frame
from cme_transit.config import FEATURE_DIR, FETCH_TIMEOUT_S
from cme_transit.errors import CatalogRowMalformed, DataUnavailable, EmptyTrainingSet
from cme_transit.fetch_raw import fetch_text

import warnings
warnings.filterwarnings("ignore", category=FutureWarning, module="pandera")

logger = logging.getLogger(__name__)

SPEED_COL, WIDTH_COL, TRANSIT_COL = 3, 5, 6
CATALOG_COLUMNS = ["speed", "width", "transit_time"]
CATALOG_FEATURES = ["CME Average Speed", "CME Angular Width"]
LABEL_COLUMN = "transit_time"


def build_schema() -> pa.DataFrameSchema:
    return pa.DataFrameSchema(
        columns={
            "speed": Column(pa.Float, checks=Check.gt(0)),
            "width": Column(pa.Float, checks=Check.in_range(0, 360)),
            "transit_time": Column(pa.Float, checks=Check.gt(0)),
        },
        coerce=True,
        strict=True,
    )


def parse_catalog_row(line: str) -> Tuple[float, float, float]:
    parts = line.split()
    try:
        speed = float(parts[SPEED_COL])
        width = float(parts[WIDTH_COL])
        transit = float(parts[TRANSIT_COL])
    except (IndexError, ValueError) as e:
        raise CatalogRowMalformed(f"unparseable row: {line.strip()!r}") from e
    if not all(np.isfinite([speed, width, transit])):
        raise CatalogRowMalformed(f"non-finite field: {line.strip()!r}")
    if transit <= 0:
        raise CatalogRowMalformed(f"transit time {transit} <= 0: {line.strip()!r}")
    return speed, width, transit


def parse_catalog(lines: Iterable[str]) -> pd.DataFrame:
    records, dropped = [], 0
    for line in lines:
        if not line.strip():
            continue
        try:
            records.append(parse_catalog_row(line))
        except CatalogRowMalformed as e:
            dropped += 1
            logger.debug("Dropping catalog row: %s", e)

    df = pd.DataFrame(records, columns=CATALOG_COLUMNS, dtype="float64")
    try:
        df = build_schema().validate(df, lazy=True)
    except pa.errors.SchemaErrors as err:
        bad = err.failure_cases["index"].dropna().unique()
        dropped += len(bad)
        logger.info("Dropping %d catalog rows failing schema checks", len(bad))
        df = df.drop(index=bad)

    logger.info("Parsed catalog: kept=%d dropped=%d", len(df), dropped)
    return df.reset_index(drop=True)


async def read_catalog(url: str, timeout: float = FETCH_TIMEOUT_S) -> pd.DataFrame:
    """Fetch + parse the catalog; an unreachable catalog yields an empty frame."""
    try:
        text = await fetch_text(url, timeout)
    except DataUnavailable as e:
        logger.warning("Catalog fetch failed: %s", e)
        return pd.DataFrame(columns=CATALOG_COLUMNS, dtype="float64")
    return parse_catalog(text.splitlines())


def build_training_set(frame: pd.DataFrame, features: Sequence[str] = CATALOG_FEATURES) -> Tuple[pd.DataFrame, pd.Series]:
    if frame.empty:
        raise EmptyTrainingSet("catalog produced no valid rows")
    events = [EventParameters(speed=r.speed, width=r.width) for r in frame.itertuples(index=False)]
    X = build_feature_frame(events, [{}] * len(events), features)
    y = frame[LABEL_COLUMN].astype("float64").reset_index(drop=True).rename(LABEL_COLUMN)
    return X, y


def synthetic_training_set(
    n_rows: int = 100,
    features: Sequence[str] = DEFAULT_FEATURES,
    seed: Optional[int] = None,
) -> Tuple[pd.DataFrame, pd.Series]:
    """Standard-normal features and labels, for exercising the training path."""
    rng = np.random.default_rng(seed)
    X = pd.DataFrame(rng.standard_normal((n_rows, len(features))), columns=list(features))
    y = pd.Series(rng.standard_normal(n_rows), name=LABEL_COLUMN)
    return X, y


def save_training_table(X: pd.DataFrame, y: pd.Series, feature_dir: Path = FEATURE_DIR) -> Path:
    """Persist the assembled training table (+ a 10-row CSV preview) for provenance."""
    feature_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    table = X.assign(**{LABEL_COLUMN: y.to_numpy()})

    feature_path = feature_dir / f"transit_features_{stamp}.parquet"
    table.to_parquet(feature_path, index=False)
    table.head(10).to_csv(feature_dir / f"transit_features_head_{stamp}.csv", index=False)
    logger.info("Training table saved: %s (rows=%d)", feature_path, len(table))
    return feature_path
