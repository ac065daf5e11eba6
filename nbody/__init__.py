from .conditions import (
    InitialCondition,
    construct_system,
    normalize_conditions,
    validate_conditions,
)
from .errors import InvalidInitialCondition, NumericDegeneracy
from .system import System
from .trails import TrailBuffer

__all__ = [
    "InitialCondition",
    "construct_system",
    "normalize_conditions",
    "validate_conditions",
    "InvalidInitialCondition",
    "NumericDegeneracy",
    "System",
    "TrailBuffer",
]
