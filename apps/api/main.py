from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
import time
from typing import Optional

from cme_transit.build_features import DEFAULT_FEATURES, EventParameters
from cme_transit.engine import engine_dir, try_load_engine
from cme_transit.errors import InvalidPrediction
from cme_transit.fetch_raw import read_omni_table
from cme_transit.predict import predict_transit

app = FastAPI(title="CME Arrival Time API", version="1.0.0")

# ---- Input schema ----
class CMEEvent(BaseModel):
    onset: str = Field(..., description="ISO onset time (UT), e.g. 2015-12-28T12:12:00")
    speed: float = Field(..., gt=0)
    width: float = Field(..., ge=0, le=360)
    speed_final: Optional[float] = Field(None, gt=0)
    mass: Optional[float] = Field(None, ge=0)
    position_angle: Optional[float] = Field(None, ge=0, le=360)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    acceleration: Optional[float] = None
    speed_20rs: Optional[float] = Field(None, gt=0)
    duration: int = Field(6, ge=0, le=24)
    actual_arrival: Optional[str] = None

    def event(self) -> EventParameters:
        return EventParameters(
            speed=self.speed, speed_final=self.speed_final, width=self.width,
            mass=self.mass, position_angle=self.position_angle,
            latitude=self.latitude, longitude=self.longitude,
            acceleration=self.acceleration, speed_20rs=self.speed_20rs,
        )

# ---- Engine loading ----
MODEL_DIR = str(engine_dir())
ENGINE = try_load_engine()
FETCH = read_omni_table

@app.get("/health")
def health():
    return {
        "status": "ok",
        "model_loaded": ENGINE is not None,
        "model_dir": MODEL_DIR
    }

@app.post("/predict")
async def predict(x: CMEEvent):
    t0 = time.time()
    if ENGINE is None:
        raise HTTPException(status_code=503, detail="model_not_loaded")

    features = ENGINE.feature_columns or DEFAULT_FEATURES
    try:
        report = await predict_transit(
            x.event(), x.onset, ENGINE, features,
            duration=x.duration, actual=x.actual_arrival, fetch=FETCH,
        )
    except InvalidPrediction as e:
        raise HTTPException(status_code=422, detail=f"invalid_prediction: {e}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"inference_error: {e}")

    return {
        **report.to_dict(),
        "model_version": ENGINE.version,
        "latency_ms": round((time.time() - t0) * 1000, 2)
    }
