"""Shared typing constructs for ftquant.

This package defines the enums used across the engine (connectives, event
flavors, approximations, algorithms, analysis status) and the immutable value
types of analysis results. It contains no analysis logic.
"""

from ftquant.types.base import (
    PROBABILITY_EPSILON,
    Algorithm,
    Approximation,
    Connective,
    Flavor,
    Status,
)
from ftquant.types.dto import Literal, Product

__all__ = [
    # Enums
    "Connective",
    "Flavor",
    "Approximation",
    "Algorithm",
    "Status",
    # Constants
    "PROBABILITY_EPSILON",
    # DTOs
    "Literal",
    "Product",
]
