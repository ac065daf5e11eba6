"""
Mutable representation of a body that belongs to a System.
"""

from __future__ import annotations

from typing import Iterable, TYPE_CHECKING, Optional, Dict, Any

import numpy as np

if TYPE_CHECKING:  # Avoid circular import during runtime
    from .system import System


class PhysicsBody:
    """
    Represents a single point-mass in the plane tracked by a System. The System
    instance is stored on the body as ``self.system`` so every body knows where
    it belongs. Mass is fixed at construction; only position and velocity move.
    """

    def __init__(
        self,
        system: System,
        index: int,
        mass: float,
        position: Iterable[float],
        velocity: Iterable[float],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.system = system
        self.index = index
        self._mass = float(mass)
        self.position = np.array(position, dtype=float)
        self.velocity = np.array(velocity, dtype=float)
        if self.position.shape != (2,) or self.velocity.shape != (2,):
            raise ValueError("position and velocity must be 2-element vectors")
        self.metadata: Dict[str, Any] = dict(metadata or {})

    @property
    def mass(self) -> float:
        return self._mass

    def kick(self, acceleration: np.ndarray, dt: float) -> None:
        """Half-kick: advance velocity by half a step of ``acceleration``."""
        self.velocity += 0.5 * acceleration * dt

    def drift(self, dt: float) -> None:
        self.position += self.velocity * dt

    def momentum(self) -> np.ndarray:
        return self._mass * self.velocity

    def __repr__(self) -> str:
        return (
            f"PhysicsBody(index={self.index}, mass={self._mass}, "
            f"position={self.position.tolist()}, velocity={self.velocity.tolist()})"
        )
