"""
Errors raised at the boundaries of the integrator.
"""

from __future__ import annotations

from typing import Optional


class InvalidInitialCondition(ValueError):
    """
    A supplied initial condition has a non-positive mass or a non-finite
    field. Raised before any System exists, never from inside a step.
    """

    def __init__(
        self,
        message: str,
        index: Optional[int] = None,
        field: Optional[str] = None,
    ) -> None:
        if index is not None:
            message = f"body {index}: {message}"
        super().__init__(message)
        self.index = index
        self.field = field


class NumericDegeneracy(ArithmeticError):
    """Non-finite state observed by a System running in strict mode."""

    def __init__(self, step: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"non-finite state after step {step}")
        self.step = step
