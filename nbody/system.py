"""
Main class for handling a gravitating system of point bodies.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional, Sequence, Dict, Any

import numpy as np

from . import forces
from .body import PhysicsBody
from .errors import NumericDegeneracy

logger = logging.getLogger(__name__)


class System:
    """
    Container that owns PhysicsBody instances and advances them with a
    kick-drift-kick leapfrog.

    A System is meant to be held by exactly one driver. It is created when the
    driver resets, mutated in place by :meth:`step`, and thrown away whenever
    the initial conditions change. Build one through
    :func:`nbody.conditions.construct_system` so the conditions are validated.
    """

    def __init__(
        self,
        softening: float,
        dt: float,
        strict: bool = False,
    ):
        softening = float(softening)
        if not math.isfinite(softening) or softening < 0:
            raise ValueError("softening must be finite and non-negative")
        self.softening = softening
        self.dt = self._check_dt(dt)
        self.strict = strict
        self.bodies: List[PhysicsBody] = []
        self.step_count = 0
        self.time = 0.0

    @staticmethod
    def _check_dt(dt: float) -> float:
        dt = float(dt)
        if not math.isfinite(dt):
            raise ValueError("dt must be finite")
        return dt

    def add_body(
        self,
        mass: float,
        position: Iterable[float],
        velocity: Iterable[float],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> PhysicsBody:
        body = PhysicsBody(
            self, len(self.bodies), mass, position, velocity, metadata=metadata
        )
        self.bodies.append(body)
        return body

    def add_bodies(self, configs: Sequence[dict]) -> List[PhysicsBody]:
        created = []
        for cfg in configs:
            created.append(
                self.add_body(
                    mass=cfg["mass"],
                    position=cfg["position"],
                    velocity=cfg["velocity"],
                    metadata=cfg.get("metadata"),
                )
            )
        return created

    def __len__(self) -> int:
        return len(self.bodies)

    def masses(self) -> np.ndarray:
        return np.array([body.mass for body in self.bodies], dtype=float)

    def positions(self) -> np.ndarray:
        """Copy of the current positions, shape ``(n, 2)``."""
        return np.array([body.position for body in self.bodies], dtype=float).reshape(-1, 2)

    def velocities(self) -> np.ndarray:
        return np.array([body.velocity for body in self.bodies], dtype=float).reshape(-1, 2)

    def accelerations(self) -> np.ndarray:
        return forces.accelerations(self.positions(), self.masses(), self.softening)

    def momentum(self) -> np.ndarray:
        total = np.zeros(2, dtype=float)
        for body in self.bodies:
            total += body.momentum()
        return total

    def kinetic_energy(self) -> float:
        return forces.kinetic_energy(self.velocities(), self.masses())

    def potential_energy(self) -> float:
        return forces.potential_energy(self.positions(), self.masses(), self.softening)

    def energy(self) -> float:
        """
        Total mechanical energy, kinetic plus softened potential. Recomputed on
        every call and never cached. Under the leapfrog this is conserved up to
        a bounded oscillating error, not exactly.
        """
        energy = self.kinetic_energy() + self.potential_energy()
        if self.strict and not math.isfinite(energy):
            self._degenerate("energy is not finite")
        return energy

    def step(self, dt: Optional[float] = None) -> System:
        """
        Advance every body by one kick-drift-kick step and return ``self``.

        ``dt`` defaults to ``self.dt``; a negative value runs the system
        backwards, and stepping with ``-dt`` undoes a step with ``dt`` up to
        rounding. Non-finite state is propagated as-is unless ``strict`` is set.
        """
        dt = self.dt if dt is None else self._check_dt(dt)

        if self.bodies:
            for body, acc in zip(self.bodies, self.accelerations()):
                body.kick(acc, dt)
            for body in self.bodies:
                body.drift(dt)
            for body, acc in zip(self.bodies, self.accelerations()):
                body.kick(acc, dt)

        self.step_count += 1
        self.time += dt

        if self.strict and not self.is_finite():
            self._degenerate()
        return self

    def advance(self, steps: int, dt: Optional[float] = None) -> System:
        """Run ``steps`` consecutive steps. The caller bounds ``steps``."""
        if steps < 0:
            raise ValueError("steps must be non-negative")
        for _ in range(steps):
            self.step(dt)
        return self

    def is_finite(self) -> bool:
        return all(
            np.all(np.isfinite(body.position)) and np.all(np.isfinite(body.velocity))
            for body in self.bodies
        )

    def _degenerate(self, reason: Optional[str] = None) -> None:
        message = f"non-finite state after step {self.step_count}"
        if reason:
            message = f"{message}: {reason}"
        logger.warning("%s (softening=%g)", message, self.softening)
        raise NumericDegeneracy(self.step_count, message)
