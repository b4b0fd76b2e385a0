"""
predict.py
----------
End-to-end prediction for one CME:
solar wind at onset -> feature vector -> engine -> Earth-arrival time.

Run as a module for the built-in example event (2015-12-28 halo CME).
Without a saved engine a throwaway one is trained on synthetic data.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional, Sequence

from rich.console import Console
from sklearn.neural_network import MLPRegressor
from sklearn.preprocessing import StandardScaler

from cme_transit.arrival import ArrivalReport, arrival_report
from cme_transit.build_features import DEFAULT_FEATURES, EventParameters, build_feature_vector
from cme_transit.catalog import synthetic_training_set
from cme_transit.config import DEFAULT_DURATION_H, FETCH_TIMEOUT_S
from cme_transit.engine import Predictor, TransitEngine, try_load_engine
from cme_transit.errors import InvalidPrediction
from cme_transit.fetch_raw import read_omni_table
from cme_transit.solar_wind import TableFetcher, read_omni
from cme_transit.time_index import OnsetLike
from cme_transit.utils import setup_logging

console = Console()
logger = logging.getLogger(__name__)

EXAMPLE_ONSET = "2015-12-28T12:12:00"
EXAMPLE_EVENT = EventParameters(
    speed=1212,          # km/s
    speed_final=1243,    # km/s
    width=360,           # deg (halo)
    mass=1.9e16,         # g
    position_angle=163,  # deg
)


def score_event(
    event: EventParameters,
    wind: Mapping[str, float],
    onset: OnsetLike,
    predictor: Predictor,
    features: Sequence[str] = DEFAULT_FEATURES,
    actual: Optional[OnsetLike] = None,
) -> ArrivalReport:
    """Vectorize, predict and report; blocking, no I/O."""
    x = build_feature_vector(event, wind, features)
    travel_time = predictor.predict(x)
    logger.info("onset=%s wind_keys=%d transit=%r", onset, len(wind), travel_time)
    return arrival_report(onset, travel_time, actual)


async def predict_transit(
    event: EventParameters,
    onset: OnsetLike,
    predictor: Predictor,
    features: Sequence[str] = DEFAULT_FEATURES,
    *,
    duration: int = DEFAULT_DURATION_H,
    actual: Optional[OnsetLike] = None,
    timeout: float = FETCH_TIMEOUT_S,
    fetch: TableFetcher = read_omni_table,
) -> ArrivalReport:
    """Raises InvalidPrediction if the predictor returns a non-finite or non-positive time.

    Snapshot aggregation and scoring run in worker threads, off the event loop.
    """
    wind = await read_omni(onset, duration, timeout=timeout, fetch=fetch)
    return await asyncio.to_thread(score_event, event, wind, onset, predictor, features, actual)


def synthetic_engine(features: Sequence[str] = DEFAULT_FEATURES, seed: Optional[int] = None) -> TransitEngine:
    X, y = synthetic_training_set(100, features, seed)
    scaler = StandardScaler().fit(X.to_numpy())
    model = MLPRegressor(hidden_layer_sizes=(64, 32), activation="relu", solver="adam",
                         batch_size=32, max_iter=50, random_state=seed)
    model.fit(scaler.transform(X.to_numpy()), y.to_numpy())
    return TransitEngine(scaler=scaler, model=model, feature_columns=list(features), version="synthetic")


def main() -> ArrivalReport:
    setup_logging("predict")
    engine = try_load_engine()
    if engine is None:
        console.print("[yellow]No saved engine; training on synthetic data[/yellow]")
        engine = synthetic_engine()
    features = engine.feature_columns or DEFAULT_FEATURES

    report = asyncio.run(predict_transit(EXAMPLE_EVENT, EXAMPLE_ONSET, engine, features))

    console.print(f"CME with onset time [cyan]{report.onset}[/cyan] UT")
    console.print(f"Will hit the Earth at [green]{report.arrival}[/green] UT")
    console.print(f"With a transit time of {report.transit_hours:.2f} hours")
    return report


if __name__ == "__main__":
    try:
        main()
    except InvalidPrediction as e:
        console.print(f"[red]Invalid prediction:[/red] {e}")
        raise SystemExit(2)
    except Exception as e:
        logging.exception("Unexpected failure: %s", e)
        console.print(f"[red]Prediction failed:[/red] {e}")
        raise SystemExit(1)
