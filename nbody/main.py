import logging
import os
import time

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import List, Optional

from nbody.constants import DEFAULT_DT, DEFAULT_SOFTENING, STEPS_PER_FRAME, TRAIL_LENGTH
from nbody.errors import NumericDegeneracy
from nbody.physics import format_share_string, samples_for_system
from nbody.presets import PRESETS

logger = logging.getLogger(__name__)

app = FastAPI()
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class Body(BaseModel):
    mass: float
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    color: Optional[str] = None


class SimulateRequest(BaseModel):
    bodies: Optional[List[Body]] = None
    share: Optional[str] = None
    preset: Optional[str] = None
    softening: float = DEFAULT_SOFTENING
    dt: float = DEFAULT_DT
    frames: int = 0
    stepsPerFrame: int = STEPS_PER_FRAME
    normalize: bool = False
    trailLength: int = TRAIL_LENGTH
    strict: Optional[bool] = None
    profile: Optional[bool] = False


class Sample(BaseModel):
    step: int
    t: Optional[float] = None
    positions: List[List[Optional[float]]]
    energy: Optional[float] = None


class BodyMetadata(BaseModel):
    index: int
    mass: float
    color: Optional[str] = None


class SimulateResponse(BaseModel):
    bodyMetadata: List[BodyMetadata]
    samples: List[Sample]
    trails: List[List[List[Optional[float]]]]
    meta: dict


class Preset(BaseModel):
    name: str
    bodies: List[Body]
    share: str


@app.get("/api/presets", response_model=List[Preset])
def presets():
    return [
        {
            "name": name,
            "bodies": [cond.to_dict() for cond in conditions],
            "share": format_share_string(conditions),
        }
        for name, conditions in PRESETS.items()
    ]


@app.post("/api/simulate", response_model=SimulateResponse)
def simulate(req: SimulateRequest):
    """
    Build a fresh system from the request, run it for the requested number of
    frames and return per-frame positions and energy. Timings are included
    in ``meta`` when `profile` is true.
    """
    payload = req.dict()
    start = time.perf_counter()
    try:
        result = samples_for_system(payload)
    except NumericDegeneracy as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        logger.info("rejected simulate request: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    meta = result["meta"]
    if req.profile:
        meta["profile"] = {
            "timingsMs": {
                "samples_for_system": (time.perf_counter() - start) * 1000.0,
                "simulate": meta["simulateMs"],
            },
            "serverTimestamp": time.time(),
        }
    del meta["simulateMs"]
    return result


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=os.getenv("NBODY_LOG_LEVEL", "WARNING").upper())
    uvicorn.run("nbody.main:app", host="127.0.0.1", port=8000)
