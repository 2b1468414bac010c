"""Monte Carlo uncertainty analysis of the top-event probability.

Every trial samples the expressions of the basic events in the products
(deviates draw, point expressions return their value) and quantifies the
top event with the configured approximation. Expressions shared by several
events are drawn once per trial.
"""

from __future__ import annotations

import math
import time
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from ftquant.analysis.budget import WorkBudget
from ftquant.analysis.probability import ProbabilityCalculator
from ftquant.config import AnalysisSettings
from ftquant.errors import AnalysisLimitExceeded
from ftquant.logging import get_logger
from ftquant.model.expression import Expression, SampleMemo
from ftquant.results.artifacts import UncertaintyResult
from ftquant.seed_manager import SeedManager

logger = get_logger(__name__)

#: Reported quantile levels.
QUANTILES = (0.05, 0.5, 0.95)

#: Two-sided 95% normal quantile.
Z_95 = 1.96


def summarize(samples: Sequence[float], num_bins: int) -> UncertaintyResult:
    """Statistics of sampled top-event probabilities.

    Args:
        samples: One probability per trial; must not be empty.
        num_bins: Histogram bin count.

    Returns:
        Mean, sample standard deviation, 95% confidence interval of the mean,
        error factor, quantiles, and density histogram.
    """
    values = np.asarray(samples, dtype=float)
    n = len(values)
    mean = float(values.mean())
    sigma = float(values.std(ddof=1)) if n > 1 else 0.0
    half_width = Z_95 * sigma / math.sqrt(n)
    quantiles = {q: float(v) for q, v in zip(QUANTILES, np.quantile(values, QUANTILES))}
    median = quantiles[0.5]
    error_factor = quantiles[0.95] / median if median > 0 else 1.0

    # Degenerate samples still get one bin of unit width around the value
    low, high = float(values.min()), float(values.max())
    if low == high:
        bin_range = (low, low + 1.0)
    else:
        bin_range = (low, high)
    density, edges = np.histogram(values, bins=num_bins, range=bin_range, density=True)
    histogram = tuple(
        (float(edges[i]), float(edges[i + 1]), float(density[i])) for i in range(len(density))
    )
    return UncertaintyResult(
        mean=mean,
        sigma=sigma,
        confidence_interval=(mean - half_width, mean + half_width),
        error_factor=error_factor,
        quantiles=quantiles,
        histogram=histogram,
        num_trials=n,
    )


def sample_probabilities(
    expressions: Mapping[str, Expression],
    rng: np.random.Generator,
    mission_time: float,
) -> Dict[str, float]:
    """Draw one probability per event, clipped to [0, 1]."""
    memo: SampleMemo = {}
    return {
        name: min(1.0, max(0.0, expr.sample(rng, mission_time, memo)))
        for name, expr in expressions.items()
    }


def run_uncertainty(
    fault_tree: str,
    calculator: ProbabilityCalculator,
    expressions: Mapping[str, Expression],
    settings: AnalysisSettings,
    budget: Optional[WorkBudget] = None,
) -> UncertaintyResult:
    """Monte Carlo distribution of the top-event probability.

    Args:
        fault_tree: Fault tree name; part of the derived sampling seed.
        calculator: Calculator over the fault tree's products.
        expressions: Expression of every event in ``calculator.events``.
        settings: Supplies ``num_trials``, ``num_bins``, ``seed`` and
            ``mission_time``.
        budget: Work budget ticked once per trial.

    Returns:
        Statistics over ``settings.num_trials`` trials.

    Raises:
        AnalysisLimitExceeded: On timeout, with the statistics of the trials
            completed so far as ``partial`` (None if there were none).
    """
    rng = SeedManager(settings.seed).create_generator("uncertainty", fault_tree)
    ordered = {name: expressions[name] for name in calculator.events}
    samples: List[float] = []
    start = time.time()
    try:
        for _ in range(settings.num_trials):
            if budget is not None:
                budget.tick()
            probabilities = sample_probabilities(ordered, rng, settings.mission_time)
            samples.append(calculator.value(probabilities))
    except AnalysisLimitExceeded as err:
        err.partial = summarize(samples, settings.num_bins) if samples else None
        raise
    logger.debug(
        f"Ran {len(samples)} uncertainty trials for '{fault_tree}' "
        f"in {time.time() - start:.3f} seconds"
    )
    return summarize(samples, settings.num_bins)
