"""
Utilities for constructing a System instance from a request payload and
sampling it frame by frame for the frontend. This is the driver side of the
integrator: it owns the System, decides how many steps run between frames,
and keeps the trails.
"""

from __future__ import annotations

import json
import logging
import math
import os
import time
from typing import Any, Dict, List, Optional, Sequence

from .conditions import (
    InitialCondition,
    assign_colors,
    construct_system,
    normalize_conditions,
)
from .constants import (
    DEFAULT_DT,
    DEFAULT_SOFTENING,
    MAX_BODIES,
    MAX_STEPS_PER_REQUEST,
    STEPS_PER_FRAME,
    TRAIL_LENGTH,
)
from .errors import InvalidInitialCondition
from .presets import get_preset
from .system import System
from .trails import TrailBuffer

logger = logging.getLogger(__name__)


def parse_share_string(text: str) -> List[InitialCondition]:
    """
    Decode ``mass,x,y,vx,vy[,color]`` tuples separated by semicolons, the
    encoding used in shareable links. Empty segments are ignored.
    """
    conditions: List[InitialCondition] = []
    for idx, chunk in enumerate(seg for seg in text.split(";") if seg.strip()):
        parts = [p.strip() for p in chunk.split(",")]
        if len(parts) not in (5, 6):
            raise InvalidInitialCondition(
                f"expected 5 or 6 comma-separated fields, got {len(parts)}", index=idx
            )
        try:
            mass, x, y, vx, vy = (float(p) for p in parts[:5])
        except ValueError as exc:
            raise InvalidInitialCondition(str(exc), index=idx) from exc
        color = parts[5] if len(parts) == 6 and parts[5] else None
        conditions.append(InitialCondition(mass, x, y, vx, vy, color))

    return conditions


def format_share_string(conditions: Sequence[InitialCondition]) -> str:
    chunks = []
    for cond in conditions:
        fields = [repr(float(v)) for v in (cond.mass, cond.x, cond.y, cond.vx, cond.vy)]
        if cond.color:
            fields.append(cond.color)
        chunks.append(",".join(fields))
    return ";".join(chunks)


def _conditions_from_payload(cfg: Dict[str, Any]) -> List[InitialCondition]:
    if cfg.get("bodies") is not None:
        conditions = [InitialCondition.from_dict(body) for body in cfg["bodies"]]
    elif cfg.get("share") is not None:
        conditions = parse_share_string(cfg["share"])
    else:
        conditions = get_preset(cfg.get("preset") or "default")

    if len(conditions) > MAX_BODIES:
        raise InvalidInitialCondition(f"at most {MAX_BODIES} bodies are supported")

    if cfg.get("normalize"):
        conditions = normalize_conditions(conditions)
    return assign_colors(conditions)


def build_system(cfg: Dict[str, Any]) -> System:
    conditions = _conditions_from_payload(cfg)
    strict = cfg.get("strict")
    if strict is None:
        strict = os.getenv("NBODY_STRICT", "false").lower() == "true"
    return construct_system(
        conditions,
        softening=cfg.get("softening", DEFAULT_SOFTENING),
        dt=cfg.get("dt", DEFAULT_DT),
        strict=bool(strict),
    )


def _capture_sample(system: System) -> Dict[str, Any]:
    return {
        "step": system.step_count,
        "t": system.time,
        "positions": system.positions().tolist(),
        "energy": system.energy(),
    }


def run_frames(
    system: System,
    frame_count: int,
    steps_per_frame: int = STEPS_PER_FRAME,
    trails: Optional[TrailBuffer] = None,
) -> List[Dict[str, Any]]:
    """
    Run ``frame_count`` frames of ``steps_per_frame`` steps each and return one
    sample per frame, plus the initial state as the first sample. Trails, when
    given, receive the positions after every single step.
    """
    if frame_count < 0:
        raise ValueError("frame_count must be non-negative")
    if steps_per_frame <= 0:
        raise ValueError("steps_per_frame must be positive")

    samples: List[Dict[str, Any]] = [_capture_sample(system)]
    for _ in range(frame_count):
        for _ in range(steps_per_frame):
            system.step()
            if trails is not None:
                trails.record(system.positions())
        samples.append(_capture_sample(system))
    return samples


def _scrub_non_finite(value: Any) -> Any:
    """JSON has no NaN or Infinity; degenerate runs report them as null."""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, list):
        return [_scrub_non_finite(v) for v in value]
    if isinstance(value, dict):
        return {k: _scrub_non_finite(v) for k, v in value.items()}
    return value


def _body_metadata(system: System) -> List[Dict[str, Any]]:
    return [
        {"index": body.index, "mass": body.mass, "color": body.metadata.get("color")}
        for body in system.bodies
    ]


def samples_for_system(cfg: Dict[str, Any]) -> Dict[str, Any]:
    frames = int(cfg.get("frames", 0))
    steps_per_frame = int(cfg.get("stepsPerFrame", STEPS_PER_FRAME))
    if steps_per_frame <= 0:
        raise ValueError("stepsPerFrame must be positive")
    if frames * steps_per_frame > MAX_STEPS_PER_REQUEST:
        raise ValueError(
            f"frames * stepsPerFrame must not exceed {MAX_STEPS_PER_REQUEST}"
        )

    system = build_system(cfg)
    trails = TrailBuffer(int(cfg.get("trailLength", TRAIL_LENGTH)))

    start = time.perf_counter()
    samples = run_frames(system, frames, steps_per_frame, trails)
    elapsed_ms = (time.perf_counter() - start) * 1000.0

    initial_energy = samples[0]["energy"]
    final_energy = samples[-1]["energy"]
    if initial_energy != 0 and math.isfinite(initial_energy):
        drift = abs((final_energy - initial_energy) / initial_energy)
    else:
        drift = None
    logger.debug(
        "ran %d steps for %d bodies in %.1f ms (relative drift %s)",
        system.step_count,
        len(system),
        elapsed_ms,
        drift,
    )

    result = _scrub_non_finite({
        "bodyMetadata": _body_metadata(system),
        "samples": samples,
        "trails": trails.as_lists(),
        "meta": {
            "steps": system.step_count,
            "dt": system.dt,
            "softening": system.softening,
            "initialEnergy": initial_energy,
            "finalEnergy": final_energy,
            "relativeEnergyDrift": drift,
            "simulateMs": elapsed_ms,
        },
    })

    debug_enabled = os.getenv("NBODY_DEBUG", "false").lower() == "true"
    if debug_enabled:
        with open("simulation_samples.json", "w") as f:
            json.dump(result, f, indent=2)

    return result
