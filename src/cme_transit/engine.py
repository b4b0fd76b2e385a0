"""
engine.py
---------
Saved {scaler, model} pair used to turn a feature vector into a transit time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Protocol

import joblib
import numpy as np

from cme_transit.config import MODELS_DIR
from cme_transit.utils import read_json

MODEL_FILE = "model.pkl"


class Predictor(Protocol):
    def predict(self, vector) -> float: ...


@dataclass
class TransitEngine:
    scaler: Any
    model: Any
    feature_columns: List[str] = field(default_factory=list)
    version: str = "unversioned"

    def transform(self, vector) -> np.ndarray:
        x = np.asarray(vector, dtype="float64").reshape(1, -1)
        if self.feature_columns and x.shape[1] != len(self.feature_columns):
            raise ValueError(f"expected {len(self.feature_columns)} features, got {x.shape[1]}")
        return self.scaler.transform(x) if self.scaler is not None else x

    def predict(self, vector) -> float:
        """Raw model output in hours; validity is checked by the caller."""
        return float(np.ravel(self.model.predict(self.transform(vector)))[0])


def save_engine(engine: TransitEngine, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    package = {
        "scaler": engine.scaler,
        "model": engine.model,
        "feature_columns": engine.feature_columns,
        "version": engine.version,
    }
    joblib.dump(package, path)
    return path


def load_engine(path: Path) -> TransitEngine:
    package = joblib.load(path)
    return TransitEngine(
        scaler=package.get("scaler"),
        model=package["model"],
        feature_columns=list(package.get("feature_columns") or []),
        version=package.get("version", Path(path).parent.name or "unknown"),
    )


def engine_dir() -> Path:
    """MODEL_DIR_OVERRIDE, else the champion named in models/champion.json, else models/latest."""
    override = os.getenv("MODEL_DIR_OVERRIDE", "").strip()
    if override:
        return Path(override)
    pointer = MODELS_DIR / "champion.json"
    if pointer.exists():
        ver = read_json(pointer).get("champion_version")
        if ver:
            return MODELS_DIR / ver
    return MODELS_DIR / "latest"


def try_load_engine(mdir: Optional[Path] = None) -> Optional[TransitEngine]:
    mdir = mdir or engine_dir()
    path = mdir / MODEL_FILE
    if not path.exists():
        return None
    return load_engine(path)
