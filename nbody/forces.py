"""
Softened Newtonian gravity in dimensionless units (G = 1).

Every function here is a pure function of the arrays it is given. Positions
are ``(n, 2)``, masses ``(n,)``. The softening length is added in quadrature
to every pair separation, both in the force law and in the potential, so the
two stay consistent with each other.

Coincident bodies with zero softening are not guarded against: the result
carries NaN/Inf and the caller decides what to do with it.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np


def _pair_geometry(positions: np.ndarray, softening: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Return ``dr`` with ``dr[i, j] = r_j - r_i`` and the softened squared
    separations ``r2[i, j] = |r_j - r_i|^2 + softening^2``.
    """
    dr = positions[np.newaxis, :, :] - positions[:, np.newaxis, :]
    r2 = np.einsum("ijk,ijk->ij", dr, dr) + softening * softening
    return dr, r2


def accelerations(
    positions: np.ndarray, masses: np.ndarray, softening: float
) -> np.ndarray:
    """
    Net gravitational acceleration on every body from all the others.

    Direct O(n^2) summation. The self term is removed explicitly, so a lone
    body feels nothing even when ``softening`` is zero.
    """
    positions = np.asarray(positions, dtype=float)
    masses = np.asarray(masses, dtype=float)
    n = positions.shape[0]
    if n < 2:
        return np.zeros_like(positions)

    dr, r2 = _pair_geometry(positions, float(softening))
    with np.errstate(divide="ignore", invalid="ignore"):
        inv_r3 = r2 ** -1.5
        np.fill_diagonal(inv_r3, 0.0)
        weights = inv_r3 * masses[np.newaxis, :]
        return np.einsum("ij,ijk->ik", weights, dr)


def kinetic_energy(velocities: np.ndarray, masses: np.ndarray) -> float:
    velocities = np.asarray(velocities, dtype=float)
    masses = np.asarray(masses, dtype=float)
    return float(0.5 * np.sum(masses * np.einsum("ik,ik->i", velocities, velocities)))


def potential_energy(
    positions: np.ndarray, masses: np.ndarray, softening: float
) -> float:
    """Softened potential, each unordered pair counted once."""
    positions = np.asarray(positions, dtype=float)
    masses = np.asarray(masses, dtype=float)
    n = positions.shape[0]
    if n < 2:
        return 0.0

    _, r2 = _pair_geometry(positions, float(softening))
    iu = np.triu_indices(n, 1)
    mprod = (masses[:, np.newaxis] * masses[np.newaxis, :])[iu]
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(-np.sum(mprod / np.sqrt(r2[iu])))


def total_energy(
    positions: np.ndarray,
    velocities: np.ndarray,
    masses: np.ndarray,
    softening: float,
) -> float:
    return kinetic_energy(velocities, masses) + potential_energy(
        positions, masses, softening
    )
