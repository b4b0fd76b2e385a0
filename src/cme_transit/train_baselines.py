import asyncio
import datetime
import json
import logging
import pathlib
import sys

import numpy as np
import pandas as pd
from rich.console import Console

from sklearn.ensemble import RandomForestRegressor
from sklearn.linear_model import Ridge
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score
from sklearn.model_selection import train_test_split
from sklearn.neural_network import MLPRegressor
from sklearn.preprocessing import StandardScaler

from cme_transit.catalog import build_training_set, read_catalog, save_training_table, synthetic_training_set
from cme_transit.config import CATALOG_URL, DEFAULT_TRAIN_CONFIG, MODELS_DIR
from cme_transit.engine import MODEL_FILE, TransitEngine, save_engine
from cme_transit.errors import EmptyTrainingSet
from cme_transit.utils import read_json, setup_logging, write_json

console = Console()
logger = logging.getLogger(__name__)

CHAMPION_POINTER = MODELS_DIR / "champion.json"
SYNTHETIC_SOURCE = "synthetic"

# ---------------- helpers ----------------

def make_model(mtype, params, seed):
    params = dict(params)
    if mtype == "mlp":
        params["hidden_layer_sizes"] = tuple(params.get("hidden_layer_sizes", (64, 32)))
        params.setdefault("random_state", seed)
        return MLPRegressor(**params)
    if mtype == "random_forest":
        params.setdefault("random_state", seed)
        return RandomForestRegressor(**params)
    if mtype == "ridge":
        return Ridge(**params)
    return None


def regression_metrics(y_true, y_pred):
    return {
        "mae": float(mean_absolute_error(y_true, y_pred)),
        "rmse": float(np.sqrt(mean_squared_error(y_true, y_pred))),
        "r2": float(r2_score(y_true, y_pred)) if len(y_true) > 1 else float("nan"),
    }


def fail(msg):
    console.print(f"[red]{msg}[/red]")
    raise SystemExit(2)

# ------------- main ----------------------

def train_and_eval(X: pd.DataFrame, y: pd.Series, ver: str, cfg=None, models_dir=MODELS_DIR, source=SYNTHETIC_SOURCE):
    cfg = cfg or DEFAULT_TRAIN_CONFIG
    run_dir = pathlib.Path(models_dir) / ver
    seed = int(cfg.get("random_seed", 42))
    test_size = float(cfg["split"]["test_size"])
    feat_cols = list(X.columns)

    if len(X) < 2:
        raise EmptyTrainingSet(f"need at least 2 training rows, got {len(X)}")
    if X.isna().to_numpy().any() or y.isna().any():
        raise ValueError("NaNs in training data; aborting.")

    X_train, X_val, y_train, y_val = train_test_split(
        X.to_numpy(dtype="float64"), y.to_numpy(dtype="float64"),
        test_size=test_size, random_state=seed, shuffle=True,
    )

    # scaler fit on train only
    scaler = StandardScaler().fit(X_train)
    X_train_s, X_val_s = scaler.transform(X_train), scaler.transform(X_val)

    results = {}
    best_mae, best_key, best_model = float("inf"), None, None

    for key, mcfg in cfg["models"].items():
        mtype = mcfg.get("type")
        params = {k: v for k, v in mcfg.items() if k != "type"}
        model = make_model(mtype, params, seed)
        if model is None:
            logger.warning("Skipping unknown model type: %s", mtype)
            continue

        model.fit(X_train_s, y_train)
        results[key] = regression_metrics(y_val, model.predict(X_val_s))
        logger.info("%s: %s", key, results[key])

        if results[key]["mae"] < best_mae:
            best_mae, best_key, best_model = results[key]["mae"], key, model

    if best_model is None:
        raise ValueError("no trainable model in config")

    summary = {
        "version": ver,
        "random_seed": seed,
        "data_source": source,
        "generated_at": datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "rows_train": int(len(X_train)),
        "rows_val": int(len(X_val)),
        "feature_columns": feat_cols,
        "metrics_val": results,
        "candidate_selection": {
            "criterion": "min_mae",
            "winner_model_key": best_key,
            "winner_mae": best_mae,
        },
    }
    write_json(run_dir / "metrics.json", summary)
    write_json(run_dir / "train_config.json", cfg)

    engine = TransitEngine(scaler=scaler, model=best_model, feature_columns=feat_cols, version=ver)
    save_engine(engine, run_dir / MODEL_FILE)

    console.print(f"trained {len(results)} models, best={best_key} mae={best_mae:.3f}h")
    return summary


def promote_if_better(ver, summary, pointer=CHAMPION_POINTER):
    """Make ``ver`` the served engine if its validation MAE beats the champion's.

    Synthetic runs are never promoted. MAE is only compared between runs with
    the same data source and feature columns; otherwise the candidate replaces
    the champion outright.
    """
    now = datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%d %H:%M:%SZ")
    cand_mae = float(summary["candidate_selection"]["winner_mae"])
    source = summary.get("data_source", SYNTHETIC_SOURCE)
    feat_cols = list(summary.get("feature_columns") or [])

    if source == SYNTHETIC_SOURCE:
        console.print(f"NO PROMOTION: {ver} was trained on synthetic data")
        logger.info("NO PROMOTION %s | synthetic training data", ver)
        return False

    if pointer.exists():
        ptr = read_json(pointer)
        previous = ptr["champion_version"]
        comparable = ptr.get("data_source") == source and list(ptr.get("feature_columns") or []) == feat_cols
        if comparable:
            cur_mae = float(ptr["metrics_snapshot"]["mae"])
            if cand_mae >= cur_mae:
                console.print(f"NO PROMOTION: keep {previous} (candidate mae {cand_mae:.3f} >= champion mae {cur_mae:.3f})")
                return False
            reason = f"MAE {cand_mae:.3f} < {cur_mae:.3f}"
        else:
            reason = f"champion trained on different data ({ptr.get('data_source')})"
    else:
        previous, reason = None, "bootstrap (first model)"

    write_json(pointer, {
        "champion_version": ver,
        "previous_version": previous,
        "promoted_at": now,
        "reason": reason,
        "data_source": source,
        "feature_columns": feat_cols,
        "metrics_snapshot": {"mae": cand_mae},
    })
    console.print(f"[green]PROMOTED:[/green] {previous} -> {ver} ({reason})")
    logger.info("PROMOTED %s -> %s | %s", previous, ver, reason)
    return True


def load_training_data(catalog_url=None, seed=42):
    """Return (X, y, source); source is the catalog URL or SYNTHETIC_SOURCE."""
    if not catalog_url:
        console.print("[yellow]No catalog URL; training on synthetic data[/yellow]")
        X, y = synthetic_training_set(seed=seed)
        return X, y, SYNTHETIC_SOURCE
    frame = asyncio.run(read_catalog(catalog_url))
    X, y = build_training_set(frame)
    return X, y, catalog_url


if __name__ == "__main__":
    if len(sys.argv) not in (2, 3):
        fail("usage: python -m cme_transit.train_baselines vYYYYMMDD-HHMM [CATALOG_URL]")
    setup_logging("train_baselines")
    _ver = sys.argv[1]
    _url = sys.argv[2] if len(sys.argv) == 3 else CATALOG_URL
    try:
        X, y, _source = load_training_data(_url)
        save_training_table(X, y)
        _summary = train_and_eval(X, y, _ver, source=_source)
    except EmptyTrainingSet as e:
        fail(f"Empty training set: {e}")
    promote_if_better(_ver, _summary)
    console.print(json.dumps(_summary["candidate_selection"], indent=2))
