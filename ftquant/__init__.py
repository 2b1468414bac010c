"""ftquant: fault-tree quantification engine.

ftquant turns a fault-tree model into minimal cut sets or prime implicants,
top-event probabilities, importance factors, and Monte Carlo uncertainty
distributions.

Primary API:
    analyze() - Analyse every fault tree of a model in one call
    RiskAnalysis - Reusable analysis with explicit settings and cancellation
    AnalysisSettings - Immutable analysis configuration
    Model, FaultTree, Gate, BasicEvent, HouseEvent - Fault-tree model
    CcfGroup - Common-cause failure group

Example:
    from ftquant import AND, OR, BasicEvent, ConstantExpression, FaultTree, Gate, Model, analyze

    model = Model()
    model.add_fault_tree(FaultTree("FT"))
    for name, p in (("A", 0.1), ("B", 0.2), ("C", 0.3)):
        model.add_basic_event(BasicEvent(name, ConstantExpression(p)))
    model.add_gate(Gate("G1", AND("B", "C")), "FT")
    model.add_gate(Gate("Top", OR("A", "G1")), "FT")

    result = analyze(model)
    result["FT"].probability  # 0.154
"""

from __future__ import annotations

from ftquant import logging
from ftquant._version import __version__
from ftquant.analysis import CancellationToken, RiskAnalysis, analyze
from ftquant.config import AnalysisSettings
from ftquant.errors import (
    AnalysisLimitExceeded,
    Cancelled,
    FtquantError,
    InvalidExpressionError,
    ProbabilityRangeError,
    ValidationError,
    ValidationRule,
)
from ftquant.model import (
    AND,
    ATLEAST,
    NAND,
    NOR,
    NOT,
    NULL,
    OR,
    XOR,
    BasicEvent,
    BetaDeviate,
    CcfGroup,
    CcfModel,
    ConstantExpression,
    ExponentialExpression,
    FaultTree,
    Formula,
    Gate,
    HouseEvent,
    LogNormalDeviate,
    Model,
    NormalDeviate,
    UniformDeviate,
)
from ftquant.results import (
    AnalysisResult,
    FaultTreeResult,
    ImportanceRecord,
    ImportanceTable,
    ProductSet,
    UncertaintyResult,
)
from ftquant.types import Algorithm, Approximation, Connective, Literal, Product, Status

__all__ = [
    # Version
    "__version__",
    # Model
    "Model",
    "FaultTree",
    "Gate",
    "BasicEvent",
    "HouseEvent",
    "CcfGroup",
    "CcfModel",
    "Formula",
    "AND",
    "OR",
    "NOT",
    "XOR",
    "NAND",
    "NOR",
    "NULL",
    "ATLEAST",
    # Expressions
    "ConstantExpression",
    "ExponentialExpression",
    "UniformDeviate",
    "NormalDeviate",
    "LogNormalDeviate",
    "BetaDeviate",
    # Analysis (primary API)
    "analyze",
    "RiskAnalysis",
    "AnalysisSettings",
    "CancellationToken",
    # Results
    "AnalysisResult",
    "FaultTreeResult",
    "ProductSet",
    "ImportanceRecord",
    "ImportanceTable",
    "UncertaintyResult",
    # Types
    "Approximation",
    "Algorithm",
    "Connective",
    "Status",
    "Literal",
    "Product",
    # Errors
    "FtquantError",
    "ValidationError",
    "ValidationRule",
    "InvalidExpressionError",
    "ProbabilityRangeError",
    "AnalysisLimitExceeded",
    "Cancelled",
    # Logging module
    "logging",
]
