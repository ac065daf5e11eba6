"""
Named starting configurations offered to the UI.
"""

from __future__ import annotations

import math
from typing import Dict, List

from .conditions import InitialCondition


def _binary(separation: float = 1.0, m1: float = 1.0, m2: float = 1.0) -> List[InitialCondition]:
    """
    Circular pair about the origin. The relative speed sqrt(M/d) is shared
    inversely by mass so the center of mass stays at rest.
    """
    total = m1 + m2
    speed = math.sqrt(total / separation)
    return [
        InitialCondition(m1, -separation * m2 / total, 0.0, 0.0, -speed * m2 / total),
        InitialCondition(m2, separation * m1 / total, 0.0, 0.0, speed * m1 / total),
    ]


PRESETS: Dict[str, List[InitialCondition]] = {
    "default": [
        InitialCondition(1.2, -0.6, 0.2, 0.0, -0.42),
        InitialCondition(1.0, 0.6, -0.1, 0.0, 0.5),
        InitialCondition(0.8, 0.0, 0.55, -0.55, 0.0),
    ],
    # Chenciner & Montgomery (2000)
    "figure_eight": [
        InitialCondition(1.0, -0.97000436, 0.24308753, 0.466203685, 0.43236573),
        InitialCondition(1.0, 0.97000436, -0.24308753, 0.466203685, 0.43236573),
        InitialCondition(1.0, 0.0, 0.0, -0.93240737, -0.86473146),
    ],
    "binary": _binary(),
}

FIGURE_EIGHT_PERIOD = 6.32591398


def get_preset(name: str) -> List[InitialCondition]:
    try:
        return list(PRESETS[name])
    except KeyError:
        raise ValueError(
            f"unknown preset {name!r}; expected one of {sorted(PRESETS)}"
        ) from None
