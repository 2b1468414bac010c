"""Result artifacts of fault-tree analysis.

Exports the immutable containers handed back to callers. All of them are
created fresh per analysis run and never mutated afterwards.
"""

from __future__ import annotations

from .artifacts import (
    AnalysisResult,
    FaultTreeResult,
    ImportanceRecord,
    ImportanceTable,
    ProductSet,
    UncertaintyResult,
)

__all__ = [
    "AnalysisResult",
    "FaultTreeResult",
    "ProductSet",
    "ImportanceRecord",
    "ImportanceTable",
    "UncertaintyResult",
]
