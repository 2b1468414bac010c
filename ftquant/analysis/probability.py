"""Top-event probability from products.

Basic-event probabilities come from their expressions at the mission time.
The top-event probability is then computed from the product set with one of:

- ``NONE``: exact probability of the union of products, from a BDD built
  over the products (inclusion-exclusion without the blow-up);
- ``RARE_EVENT``: sum of product probabilities, clamped to 1;
- ``MCUB``: min cut upper bound, ``1 - prod(1 - P(product))``.

A `ProbabilityCalculator` is built once per product set and evaluated many
times for different probability vectors (importance factors, Monte Carlo
trials), so the BDD of the products is constructed only once.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ftquant.analysis.bdd import Bdd
from ftquant.analysis.budget import WorkBudget
from ftquant.errors import (
    InvalidExpressionError,
    ProbabilityRangeError,
    ValidationError,
    ValidationRule,
)
from ftquant.logging import get_logger
from ftquant.model.event import BasicEvent
from ftquant.model.model import Model
from ftquant.results.artifacts import ProductSet
from ftquant.types.base import PROBABILITY_EPSILON, Approximation

logger = get_logger(__name__)

#: Rare-event sums above this are flagged as unreliable.
RARE_EVENT_WARNING_THRESHOLD = 0.1


def event_probabilities(
    model: Model, names: Iterable[str], mission_time: float
) -> Dict[str, float]:
    """Evaluate basic-event expressions at the mission time.

    Args:
        model: Model holding the basic events.
        names: Basic event names to evaluate.
        mission_time: Time horizon for time-dependent expressions.

    Returns:
        Mapping of event name to probability.

    Raises:
        ValidationError: If an event has no expression.
        InvalidExpressionError: If an expression has illegal parameters or
            evaluates outside [0, 1].
    """
    result: Dict[str, float] = {}
    for name in names:
        event = model.basic_events[name]
        result[name] = _event_probability(event, mission_time)
    return result


def _event_probability(event: BasicEvent, mission_time: float) -> float:
    if event.expression is None:
        raise ValidationError(
            ValidationRule.MISSING_EXPRESSION,
            event.name,
            f"Basic event '{event.name}' has no probability expression.",
        )
    event.expression.validate(mission_time, event.name)
    value = event.expression.value(mission_time)
    return check_event_probability(value, event.name)


def check_event_probability(value: float, event: str) -> float:
    """Return ``value`` clamped to [0, 1] or raise if it is far outside."""
    if math.isnan(value) or not -PROBABILITY_EPSILON <= value <= 1.0 + PROBABILITY_EPSILON:
        raise InvalidExpressionError(f"probability {value} is outside [0, 1]", event)
    return min(1.0, max(0.0, value))


def check_range(value: float, what: str = "Top-event probability") -> float:
    """Clamp float noise at the [0, 1] edges.

    Raises:
        ProbabilityRangeError: If ``value`` is outside [0, 1] by more than
            the float tolerance.
    """
    if math.isnan(value) or not -PROBABILITY_EPSILON <= value <= 1.0 + PROBABILITY_EPSILON:
        raise ProbabilityRangeError(f"{what} {value} is outside [0, 1].")
    return min(1.0, max(0.0, value))


class ProbabilityCalculator:
    """Evaluates the top-event probability of a fixed product set.

    Args:
        products: Products to quantify.
        approximation: Quantification method.
        order: Event order for the exact BDD; defaults to sorted names.
        budget: Optional work budget for BDD construction.
    """

    def __init__(
        self,
        products: ProductSet,
        approximation: Approximation = Approximation.NONE,
        order: Optional[Sequence[str]] = None,
        budget: Optional[WorkBudget] = None,
    ) -> None:
        self.products = products
        self.approximation = approximation
        present = set(products.events())
        if order is None:
            self.events: List[str] = sorted(present)
        else:
            self.events = [name for name in order if name in present]
            self.events += sorted(present - set(self.events))
        self._index = {name: i for i, name in enumerate(self.events)}
        self._budget = budget
        self._literals: List[Tuple[int, ...]] = [
            tuple(
                -(self._index[lit.event] + 1) if lit.complement else self._index[lit.event] + 1
                for lit in product.literals
            )
            for product in products
        ]
        self._bdd: Optional[Bdd] = None
        self._root = 0
        if approximation == Approximation.NONE:
            self._build_bdd()

    def _build_bdd(self) -> None:
        self._bdd = Bdd(len(self.events), self._budget)
        self._root = self._bdd.from_products(self._literals)
        logger.debug(
            f"Product BDD over {len(self.events)} events has {len(self._bdd)} nodes"
        )

    def _vector(self, probabilities: Mapping[str, float]) -> List[float]:
        return [probabilities[name] for name in self.events]

    def product_probabilities(self, probabilities: Mapping[str, float]) -> List[float]:
        """Probability of each product, in product order."""
        p = self._vector(probabilities)
        return [_product_probability(lits, p) for lits in self._literals]

    def exact(self, probabilities: Mapping[str, float]) -> float:
        """Exact probability of the union of products."""
        if self._bdd is None:
            self._build_bdd()
        assert self._bdd is not None
        return self._bdd.probability(self._root, self._vector(probabilities))

    def rare_event(self, probabilities: Mapping[str, float]) -> float:
        """Sum of product probabilities, not clamped."""
        return math.fsum(self.product_probabilities(probabilities))

    def mcub(self, probabilities: Mapping[str, float]) -> float:
        """Min cut upper bound."""
        complement = 1.0
        for value in self.product_probabilities(probabilities):
            complement *= 1.0 - value
        return 1.0 - complement

    def value(self, probabilities: Mapping[str, float]) -> float:
        """Top-event probability with the configured approximation.

        The rare-event sum is clamped to 1 without a warning; use `quantify`
        to collect warnings.
        """
        if self.approximation == Approximation.RARE_EVENT:
            return min(1.0, self.rare_event(probabilities))
        if self.approximation == Approximation.MCUB:
            return check_range(self.mcub(probabilities))
        return check_range(self.exact(probabilities))

    def quantify(
        self,
        probabilities: Mapping[str, float],
        rare_event_divergence: Optional[float] = None,
    ) -> Tuple[float, List[str]]:
        """Top-event probability with warnings about the approximation.

        Args:
            probabilities: Basic event name -> probability.
            rare_event_divergence: Relative excess of the rare-event sum over
                the exact value that triggers a warning; None skips the check.

        Returns:
            (probability, warnings).

        Raises:
            ProbabilityRangeError: If the exact or MCUB value leaves [0, 1].
        """
        warnings: List[str] = []
        if self.approximation != Approximation.RARE_EVENT:
            return self.value(probabilities), warnings

        total = self.rare_event(probabilities)
        if any(p > RARE_EVENT_WARNING_THRESHOLD for p in self.product_probabilities(probabilities)):
            warnings.append(
                "The rare-event approximation may be inaccurate for products "
                f"with probability > {RARE_EVENT_WARNING_THRESHOLD}."
            )
        if rare_event_divergence is not None:
            exact = check_range(self.exact(probabilities))
            if exact > 0 and (total - exact) / exact > rare_event_divergence:
                warnings.append(
                    f"The rare-event approximation {total:.6g} diverges from the "
                    f"exact probability {exact:.6g} by more than "
                    f"{rare_event_divergence:.0%}."
                )
        if total > 1.0:
            warnings.append(
                f"The rare-event approximation {total:.6g} exceeds 1; "
                "the probability is clamped to 1."
            )
            total = 1.0
        for message in warnings:
            logger.warning(message)
        return total, warnings


def _product_probability(literals: Sequence[int], p: Sequence[float]) -> float:
    value = 1.0
    for lit in literals:
        q = p[abs(lit) - 1]
        value *= q if lit > 0 else 1.0 - q
    return value


def annotate_products(
    products: ProductSet,
    calculator: ProbabilityCalculator,
    probabilities: Mapping[str, float],
    total: float,
) -> ProductSet:
    """Attach probability and contribution to every product.

    Contribution is the product probability divided by the top-event
    probability, or 0 when the top event has zero probability.
    """
    values = calculator.product_probabilities(probabilities)
    annotated = tuple(
        replace(
            product,
            probability=value,
            contribution=value / total if total > 0 else 0.0,
        )
        for product, value in zip(products, values)
    )
    return replace(products, products=annotated)
