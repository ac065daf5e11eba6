"""
Initial conditions: validation, center-of-mass normalization, and turning a
condition list into a fresh System.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np

from .constants import BODY_PALETTE, DEFAULT_DT, DEFAULT_SOFTENING
from .errors import InvalidInitialCondition
from .system import System

logger = logging.getLogger(__name__)

FIELDS = ("mass", "x", "y", "vx", "vy")


@dataclass(frozen=True)
class InitialCondition:
    mass: float
    x: float
    y: float
    vx: float
    vy: float
    color: Optional[str] = None

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> InitialCondition:
        """
        Accept either flat ``x/y/vx/vy`` keys or ``position``/``velocity``
        pairs, the two shapes collaborators tend to send.
        """
        try:
            if "position" in cfg:
                x, y = cfg["position"]
                vx, vy = cfg.get("velocity") or (0.0, 0.0)
            else:
                x, y = cfg["x"], cfg["y"]
                vx, vy = cfg.get("vx", 0.0), cfg.get("vy", 0.0)
            return cls(
                mass=float(cfg["mass"]),
                x=float(x),
                y=float(y),
                vx=float(vx),
                vy=float(vy),
                color=cfg.get("color"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidInitialCondition(f"malformed condition {cfg!r}: {exc}") from exc

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "mass": self.mass,
            "x": self.x,
            "y": self.y,
            "vx": self.vx,
            "vy": self.vy,
        }
        if self.color is not None:
            data["color"] = self.color
        return data


def validate_conditions(conditions: Sequence[InitialCondition]) -> None:
    """
    Reject empty input, non-finite fields, and non-positive masses. Raises
    InvalidInitialCondition naming the first offending body and field.
    """
    if not conditions:
        raise InvalidInitialCondition("at least one body is required")
    for idx, cond in enumerate(conditions):
        values = {}
        for name in FIELDS:
            raw = getattr(cond, name)
            try:
                value = values[name] = float(raw)
            except (TypeError, ValueError):
                logger.info("rejected body %d: %s=%r", idx, name, raw)
                raise InvalidInitialCondition(
                    f"{name} must be a number, got {raw!r}", index=idx, field=name
                ) from None
            if not math.isfinite(value):
                logger.info("rejected body %d: %s=%r", idx, name, value)
                raise InvalidInitialCondition(
                    f"{name} must be finite, got {value!r}", index=idx, field=name
                )
        if values["mass"] <= 0:
            logger.info("rejected body %d: mass=%r", idx, cond.mass)
            raise InvalidInitialCondition(
                f"mass must be positive, got {cond.mass!r}", index=idx, field="mass"
            )


def normalize_conditions(
    conditions: Sequence[InitialCondition],
) -> List[InitialCondition]:
    """
    Shift conditions into the center-of-mass frame: subtract the
    mass-weighted mean position and velocity from every body. Relative
    positions and velocities are unchanged, net momentum becomes zero and
    the center of mass sits at the origin. Returns new conditions.
    """
    validate_conditions(conditions)
    masses = np.array([c.mass for c in conditions], dtype=float)
    positions = np.array([(c.x, c.y) for c in conditions], dtype=float)
    velocities = np.array([(c.vx, c.vy) for c in conditions], dtype=float)

    total_mass = masses.sum()
    com = masses @ positions / total_mass
    com_velocity = masses @ velocities / total_mass

    return [
        replace(
            cond,
            x=float(pos[0] - com[0]),
            y=float(pos[1] - com[1]),
            vx=float(vel[0] - com_velocity[0]),
            vy=float(vel[1] - com_velocity[1]),
        )
        for cond, pos, vel in zip(conditions, positions, velocities)
    ]


def assign_colors(conditions: Iterable[InitialCondition]) -> List[InitialCondition]:
    """Fill in missing colours by cycling the palette in body order."""
    return [
        cond if cond.color else replace(cond, color=BODY_PALETTE[idx % len(BODY_PALETTE)])
        for idx, cond in enumerate(conditions)
    ]


def construct_system(
    conditions: Sequence[InitialCondition],
    softening: float = DEFAULT_SOFTENING,
    dt: float = DEFAULT_DT,
    strict: bool = False,
) -> System:
    """
    Build a fresh System from validated conditions. Nothing is built if any
    condition is rejected. Normalization is not applied here; call
    :func:`normalize_conditions` first when a centered frame is wanted.
    """
    validate_conditions(conditions)
    system = System(softening=softening, dt=dt, strict=strict)
    system.add_bodies(
        [
            {
                "mass": cond.mass,
                "position": (cond.x, cond.y),
                "velocity": (cond.vx, cond.vy),
                "metadata": {"color": cond.color} if cond.color else None,
            }
            for cond in conditions
        ]
    )
    logger.debug(
        "constructed system: %d bodies, softening=%g, dt=%g, strict=%s",
        len(system),
        system.softening,
        system.dt,
        strict,
    )
    return system
