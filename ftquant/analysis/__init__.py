"""Fault-tree analysis API.

This module provides the primary entry point for fault-tree analysis.

Usage:
    from ftquant import analyze

    # One-off analysis with setting overrides
    result = analyze(model, approximation="rare-event", importance=True)
    result["FT"].probability

    # Reusable analysis with explicit settings and cancellation
    token = CancellationToken()
    runner = RiskAnalysis(model, AnalysisSettings(prime_implicants=True))
    result = runner.analyze(token)
"""

from __future__ import annotations

from ftquant.analysis.bdd import Bdd
from ftquant.analysis.budget import CancellationToken, WorkBudget
from ftquant.analysis.importance import compute_importance, importance_record
from ftquant.analysis.mocus import Mocus
from ftquant.analysis.pdag import Pdag, normalize, normalize_fault_tree, variable_order
from ftquant.analysis.probability import (
    ProbabilityCalculator,
    annotate_products,
    event_probabilities,
)
from ftquant.analysis.products import generate_products
from ftquant.analysis.risk import RiskAnalysis, analyze
from ftquant.analysis.uncertainty import run_uncertainty, summarize

__all__ = [
    # Primary API
    "analyze",
    "RiskAnalysis",
    "CancellationToken",
    "WorkBudget",
    # Pipeline stages
    "Pdag",
    "normalize",
    "normalize_fault_tree",
    "variable_order",
    "Bdd",
    "Mocus",
    "generate_products",
    "ProbabilityCalculator",
    "event_probabilities",
    "annotate_products",
    "compute_importance",
    "importance_record",
    "run_uncertainty",
    "summarize",
]
