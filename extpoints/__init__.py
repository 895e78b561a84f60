"""
In-process extension points with ordered, filterable dispatch.
"""

from extpoints.exceptions import (
    ConfigurationError,
    ContractViolation,
    CycleDetected,
    DispatchFailure,
    ExtensionPointError,
)
from extpoints.extension import FIRST, LAST, Extension
from extpoints.points import Point
from extpoints.registry import (
    Registry,
    extends,
    get_default_registry,
    keys,
    point,
    reset_default_registry,
)

__all__ = [
    # Core types
    "Extension",
    "Point",
    "Registry",
    # Index sentinels
    "FIRST",
    "LAST",
    # Decorators
    "extends",
    # Default registry helpers
    "point",
    "keys",
    "get_default_registry",
    "reset_default_registry",
    # Exceptions
    "ExtensionPointError",
    "ContractViolation",
    "CycleDetected",
    "DispatchFailure",
    "ConfigurationError",
]
