"""Exceptions surfaced by the analysis engine.

Structural problems in the model raise `ValidationError`, bad probability
parameters raise `InvalidExpressionError`. Resource ceilings raise the
recoverable `AnalysisLimitExceeded` carrying the partial result, and a caller
request to stop raises `Cancelled`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Tuple


class ValidationRule(str, Enum):
    """Structural rule that a model element violated."""

    DUPLICATE_ARGUMENT = "duplicate-argument"
    SELF_CYCLE = "self-cycle"
    CYCLE = "cycle"
    DUPLICATE_EVENT = "duplicate-event"
    DUPLICATE_FAULT_TREE = "duplicate-fault-tree"
    TOP_GATE = "top-gate"
    ARITY = "arity"
    UNDEFINED_REFERENCE = "undefined-reference"
    MISSING_EXPRESSION = "missing-expression"
    CCF_GROUP = "ccf-group"


class FtquantError(Exception):
    """Base class for all engine errors."""


class ValidationError(FtquantError, ValueError):
    """A model element breaks a structural rule.

    Attributes:
        rule: The violated rule.
        entity: Name of the offending event, fault tree, or group.
        cycle: Event names along the cycle for CYCLE and SELF_CYCLE errors.
    """

    def __init__(
        self,
        rule: ValidationRule,
        entity: str,
        message: str,
        cycle: Tuple[str, ...] = (),
    ) -> None:
        super().__init__(message)
        self.rule = rule
        self.entity = entity
        self.cycle = cycle

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": type(self).__name__,
            "rule": self.rule.value,
            "entity": self.entity,
            "message": str(self),
            "cycle": list(self.cycle),
        }


class InvalidExpressionError(FtquantError, ValueError):
    """A probability expression has illegal parameters.

    Attributes:
        event: Name of the basic event owning the expression, if known.
    """

    def __init__(self, message: str, event: Optional[str] = None) -> None:
        if event is not None:
            message = f"Basic event '{event}': {message}"
        super().__init__(message)
        self.event = event

    def to_dict(self) -> dict[str, Any]:
        return {"error": type(self).__name__, "event": self.event, "message": str(self)}


class ProbabilityRangeError(FtquantError, ArithmeticError):
    """A computed probability fell outside [0, 1]."""


class AnalysisLimitExceeded(FtquantError):
    """A time or size ceiling stopped the analysis early.

    Attributes:
        partial: The best result obtained before the limit hit, or None.
        limit: Name of the limit that was hit (e.g., "time_limit").
    """

    def __init__(self, message: str, limit: str, partial: Any = None) -> None:
        super().__init__(message)
        self.limit = limit
        self.partial = partial


class Cancelled(FtquantError):
    """The caller cancelled the analysis."""
