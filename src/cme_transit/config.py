# Data sources + feature contract for the transit-time pipeline.
# OMNI_URL_TEMPLATE: low-resolution (hourly) OMNI2 yearly files
#   one whitespace-delimited row per hour, starting Jan 1 00:00 of the year.
#
# Relevant 0-based columns and their fill codes live in solar_wind.QUANTITIES.
# Feature names (in order) used by the demonstration run live in
# build_features.DEFAULT_FEATURES; their order becomes the model input order.

import os
from pathlib import Path

OMNI_URL_TEMPLATE = os.getenv(
    "OMNI_URL_TEMPLATE",
    "https://spdf.gsfc.nasa.gov/pub/data/omni/low_res_omni/omni2_{year}.dat",
)
CATALOG_URL = os.getenv("CME_CATALOG_URL", "").strip() or None

FETCH_TIMEOUT_S = float(os.getenv("CME_FETCH_TIMEOUT", "30"))
DEFAULT_DURATION_H = 6

DATA_RAW       = Path("data/raw")
SNAPSHOT_INDEX = Path("data/_snapshots/index.json")
FEATURE_DIR    = Path("data/features")
MODELS_DIR     = Path("models")
LOG_DIR        = Path("logs")

DEFAULT_TRAIN_CONFIG = {
    "random_seed": 42,
    "split": {"test_size": 0.2},
    "models": {
        # 64-32-1 dense ReLU network, adam, 50 epochs of batch 32
        "mlp": {
            "type": "mlp",
            "hidden_layer_sizes": [64, 32],
            "activation": "relu",
            "solver": "adam",
            "batch_size": 32,
            "max_iter": 50,
        },
        "random_forest": {"type": "random_forest", "n_estimators": 200, "min_samples_leaf": 2},
        "ridge": {"type": "ridge", "alpha": 1.0},
    },
}
